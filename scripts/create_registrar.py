"""
Create Registrar User

Creates a registrar (admin) account for the enrollment admin panel.
Values come from the command line, falling back to environment variables.

Usage:
    python scripts/create_registrar.py --email registrar@school.edu --password MySecurePass123

Env (optional): REGISTRAR_EMAIL, REGISTRAR_USERNAME, REGISTRAR_PASSWORD,
REGISTRAR_FIRST_NAME, REGISTRAR_LAST_NAME
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy.exc import IntegrityError

from enrollment_api.core.database import create_database
from enrollment_api.core.security import hash_password
from enrollment_api.modules.auth.service import MIN_PASSWORD_LENGTH
from enrollment_api.modules.users.models import UserRole
from enrollment_api.modules.users.repository import UserRepository


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a registrar (admin) user.")
    parser.add_argument("--email", default=os.getenv("REGISTRAR_EMAIL", "registrar@school.edu"))
    parser.add_argument("--username", default=os.getenv("REGISTRAR_USERNAME"))
    parser.add_argument("--password", default=os.getenv("REGISTRAR_PASSWORD"))
    parser.add_argument("--first-name", default=os.getenv("REGISTRAR_FIRST_NAME", "Registrar"))
    parser.add_argument("--last-name", default=os.getenv("REGISTRAR_LAST_NAME", "Admin"))
    return parser.parse_args(argv)


async def create_registrar(args: argparse.Namespace) -> int:
    """Create the registrar account. Returns a process exit code."""
    if not args.password or len(args.password) < MIN_PASSWORD_LENGTH:
        print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        return 1

    email = args.email.strip().lower()
    username = args.username or email.split("@")[0]

    database = create_database()
    await database.init()

    try:
        async with database.session() as db:
            try:
                user = await UserRepository.create(
                    db,
                    email=email,
                    username=username,
                    password_hash=hash_password(args.password),
                    first_name=args.first_name,
                    last_name=args.last_name,
                    role=UserRole.ADMIN,
                )
            except IntegrityError:
                print(
                    "A user with that email or username already exists. "
                    "Use a different email/username or update the existing user to admin role."
                )
                return 1
    finally:
        await database.close()

    print("Registrar user created successfully!")
    print(f"  Email:    {user.email}")
    print(f"  Username: {user.username}")
    print(f"  ID:       {user.id}")
    print(f"  Role:     {user.role.value}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(create_registrar(parse_args())))
