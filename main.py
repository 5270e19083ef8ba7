#!/usr/bin/env python3
"""
Relying-party login demo - OAuth2 Authorization Code flow against Microsoft Entra ID.
"""

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run the relying-party login demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve on PORT (default 3000)
  python main.py --serve

  # Show the effective (non-secret) configuration
  python main.py --print-config
        """,
    )
    parser.add_argument("--serve", action="store_true", help="Run the web app with uvicorn")
    parser.add_argument("--print-config", action="store_true", help="Print non-secret configuration as JSON")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Listen port (default: $PORT or 3000)")
    parser.add_argument("--env-file", default=".env", help="Environment file to load if present (default: .env)")

    args = parser.parse_args()

    # Existing environment variables win over the file.
    load_dotenv(args.env_file, override=False)

    from relying_party.auth.config import load_auth_config

    try:
        if args.print_config:
            print(json.dumps(load_auth_config().public_summary(), indent=2))
            return

        if args.serve:
            from relying_party.api.web import run

            run(host=args.host, port=args.port)
            return

        parser.print_help()

    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
