#!/usr/bin/env python3
"""
Mint a development access token.

The exam engine trusts tokens issued by the external auth service; this
script signs one with the local SECRET_KEY so the API can be exercised by hand.

Usage:
    python scripts/issue_token.py student-42
    python scripts/issue_token.py prof-1 --role instructor --minutes 120
"""

import argparse

from examcore.services.auth_service import ROLES, ROLE_STUDENT, create_access_token


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue a signed access token")
    parser.add_argument("user_id", help="Subject (student or instructor ID)")
    parser.add_argument("--role", choices=sorted(ROLES), default=ROLE_STUDENT)
    parser.add_argument("--minutes", type=int, default=None, help="Token lifetime")
    args = parser.parse_args()

    token, jti = create_access_token(args.user_id, args.role, args.minutes)
    print(token)
    print(f"jti: {jti}", flush=True)


if __name__ == "__main__":
    main()
