"""Print a signing secret suitable for CHALLENGE_SECRET / SHARE_SECRET.

Usage:
    python scripts/generate_secret.py            # one 86-char secret
    python scripts/generate_secret.py --env      # both, as .env lines
"""

import argparse
import secrets
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from minnebo.config import check_signing_secret
from minnebo.errors import ConfigurationError


def new_secret() -> str:
    while True:
        secret = secrets.token_urlsafe(64)
        try:
            check_signing_secret("secret", secret)
        except ConfigurationError:
            continue
        return secret


def main():
    parser = argparse.ArgumentParser(description="Generate signing secrets")
    parser.add_argument("--env", action="store_true", help="Print .env lines for both secrets")
    args = parser.parse_args()

    if args.env:
        print(f"CHALLENGE_SECRET={new_secret()}")
        print(f"SHARE_SECRET={new_secret()}")
    else:
        print(new_secret())


if __name__ == "__main__":
    main()
