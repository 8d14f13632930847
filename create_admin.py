"""
Create an admin account from the command line.

    python create_admin.py --username admin --email admin@hotel.com --password 'secret123'

Unset options fall back to ADMIN_USERNAME / ADMIN_EMAIL / ADMIN_PASSWORD.
"""

import argparse
import getpass
import sys

from pydantic import ValidationError as SchemaValidationError

from config import settings
from database import Base, engine
from exceptions import HotelError
from schemas import UserCreate
from services import UserService


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a hotel admin account")
    parser.add_argument("--username", default=settings.ADMIN_USERNAME)
    parser.add_argument("--email", default=settings.ADMIN_EMAIL)
    parser.add_argument("--full-name", default="Administrator")
    parser.add_argument("--password", default=settings.ADMIN_PASSWORD or None)
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Admin password: ")

    Base.metadata.create_all(engine)
    try:
        data = UserCreate(
            username=args.username,
            email=args.email,
            full_name=args.full_name,
            password=password,
            role="admin",
        )
        # No session passed: @with_db opens and releases its own
        admin = UserService.create_user(data)
    except SchemaValidationError as e:
        print(f"Invalid admin data: {e}", file=sys.stderr)
        return 1
    except HotelError as e:
        print(f"Could not create admin: {e.message}", file=sys.stderr)
        for field, messages in (e.errors or {}).items():
            print(f"  {field}: {'; '.join(messages)}", file=sys.stderr)
        return 1

    print(f"Admin account '{admin.username}' created (id={admin.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
