#!/usr/bin/env python3
"""
Database management commands.
Creates and drops tables and bootstraps the administrator account.
"""

import asyncio
import argparse
import logging
import sys
from typing import Optional

from sqlalchemy import select

from app.config import settings
from app.database import AsyncSessionLocal, create_tables, drop_tables, close_db_connection
from app.models.user import User, UserRole

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def create_admin(name: Optional[str], email: Optional[str], password: Optional[str]) -> None:
    """
    Create the administrator, or re-activate and promote an existing account
    with the same email. A supplied password always replaces the stored one.
    """
    name = name or settings.admin_name
    email = User.validate_email_format(email or settings.admin_email)
    password = password or settings.admin_password

    async with AsyncSessionLocal() as session:
        try:
            result = await session.execute(select(User).where(User.email == email))
            admin = result.scalar_one_or_none()

            if admin:
                admin.role = UserRole.ADMIN
                admin.is_active = True
                if password:
                    admin.set_password(password)
                logger.info(f"Existing account {email} promoted to active admin")
            else:
                if not password:
                    raise ValueError("An admin password is required (--password or ADMIN_PASSWORD)")
                admin = User(name=name, email=email, role=UserRole.ADMIN, is_active=True)
                admin.set_password(password)
                session.add(admin)
                logger.info(f"Admin user created: {email}")

            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create admin: {e}")
            raise


async def run(args: argparse.Namespace) -> None:
    try:
        if args.command == "create-tables":
            await create_tables()
        elif args.command == "drop-tables":
            await drop_tables()
        elif args.command == "create-admin":
            await create_tables()
            await create_admin(args.name, args.email, args.password)
    finally:
        await close_db_connection()


def main():
    """Main CLI interface for database management."""
    parser = argparse.ArgumentParser(description=f"{settings.app_name} management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create-tables", help="Create all tables")

    drop_parser = subparsers.add_parser("drop-tables", help="Drop all tables (not allowed in production)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm dropping every table")

    admin_parser = subparsers.add_parser("create-admin", help="Create or re-activate the admin account")
    admin_parser.add_argument("--name", help="Admin display name")
    admin_parser.add_argument("--email", help="Admin email")
    admin_parser.add_argument("--password", help="Admin password")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    if args.command == "drop-tables" and not args.confirm:
        print("Dropping tables requires --confirm flag")
        return

    try:
        asyncio.run(run(args))
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
