from __future__ import annotations

import base64
import os


def random_hex_token(nbytes: int = 24) -> str:
    return os.urandom(nbytes).hex()


def b64url_decode(segment: str) -> bytes:
    """
    Decode unpadded base64url (JWT segments drop the trailing `=`).
    """
    s = (segment or "").strip()
    s += "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode(s.encode("ascii"))
