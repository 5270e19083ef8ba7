from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator


class TokenResponse(BaseModel):
    """Token endpoint body (authorization_code grant). Only `id_token` is required."""

    model_config = ConfigDict(extra="allow")

    id_token: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[Union[int, str]] = None
    scope: Optional[str] = None

    @field_validator("id_token")
    @classmethod
    def _id_token_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("id_token is empty")
        return v
