"""
Print a bearer token for local testing of the customers API.

Usage:
    python scripts/create_token.py user_2a9Xc --days 30
"""
import argparse
from datetime import timedelta

from cleaning_crm.lib.jwt import create_access_token


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue a JWT for the customers API")
    parser.add_argument("subject", help="Principal id to put in the 'sub' claim")
    parser.add_argument("--days", type=int, default=1, help="Token lifetime in days")
    args = parser.parse_args()

    print(create_access_token(args.subject, expires_delta=timedelta(days=args.days)))


if __name__ == "__main__":
    main()
