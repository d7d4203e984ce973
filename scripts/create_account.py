#!/usr/bin/env python3
"""
Script to create an account directly in the store.

Useful for support staff and for seeding test environments with accounts
that can log in right away.

Usage:
    python scripts/create_account.py --email ion@example.ro --phone 0712345678 \
        --surname Popescu --given-name Ion --verified
"""

import argparse
import asyncio
import getpass
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from itpnotify.config import load_config
from itpnotify.auth import AccountStore
from itpnotify.auth.errors import AuthError


async def create(args, password: str) -> int:
    store = AccountStore(file_path=load_config().store.accounts_file)

    try:
        account = await store.create_account(
            surname=args.surname,
            given_name=args.given_name,
            phone=args.phone,
            email=args.email,
            password=password,
            preferred_verification=args.channel,
            is_email_verified=args.verified,
            is_sms_verified=args.verified
        )
    except AuthError as e:
        print(f"❌ Failed to create account: {e.message}")
        return 1

    print()
    print("✅ Account created successfully!")
    print(f"   Account ID: {account.account_id}")
    print(f"   Name: {account.full_name}")
    print(f"   Email: {account.email}")
    print(f"   Phone: {account.phone}")
    print(f"   Verification: {account.preferred_verification} ({'verified' if account.is_verified() else 'pending'})")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Create a new account")
    parser.add_argument("--email", "-e", required=True, help="Email address")
    parser.add_argument("--phone", "-p", required=True, help="Romanian phone number")
    parser.add_argument("--surname", required=True, help="Surname (nume)")
    parser.add_argument("--given-name", required=True, help="Given name (prenume)")
    parser.add_argument("--channel", choices=["email", "sms"], default="email", help="Preferred verification channel")
    parser.add_argument("--verified", action="store_true", help="Mark both channels as verified")
    args = parser.parse_args()

    password = getpass.getpass("Enter password: ")
    confirm = getpass.getpass("Confirm password: ")

    if password != confirm:
        print("❌ Passwords do not match!")
        sys.exit(1)

    sys.exit(asyncio.run(create(args, password)))


if __name__ == "__main__":
    main()
