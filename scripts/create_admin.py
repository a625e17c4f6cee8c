#!/usr/bin/env python3
"""Create an admin or manager user with properly hashed password."""

import asyncio
import logging

from sqlalchemy import select

from app.core.permissions import UserRole
from app.core.security import get_password_hash
from app.database import get_db_context
from app.models.user import User

logger = logging.getLogger(__name__)


async def create_staff_user(
    email: str = "admin@homebonzenga.com",
    password: str = "Admin@123",
    role: UserRole = UserRole.ADMIN,
    first_name: str = "Bonzenga",
    last_name: str = "Admin",
) -> User:
    """Create a staff user, or reset the password and role of an existing one."""
    async with get_db_context() as session:
        # Check if user already exists
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user:
            user.password_hash = get_password_hash(password)
            user.role = role.value
            user.is_active = True
            user.first_name = first_name
            user.last_name = last_name
            logger.info(f"Updated existing {role.value} user: {email}")
        else:
            user = User(
                email=email,
                password_hash=get_password_hash(password),
                role=role.value,
                first_name=first_name,
                last_name=last_name,
                is_active=True,
            )
            session.add(user)
            logger.info(f"Created {role.value} user: {email}")

    return user


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Create an admin or manager user")
    parser.add_argument("--email", default="admin@homebonzenga.com", help="User email")
    parser.add_argument("--password", default="Admin@123", help="User password")
    parser.add_argument(
        "--role",
        default=UserRole.ADMIN.value,
        choices=[UserRole.ADMIN.value, UserRole.MANAGER.value],
        help="Staff role",
    )
    parser.add_argument("--first-name", default="Bonzenga", help="First name")
    parser.add_argument("--last-name", default="Admin", help="Last name")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    asyncio.run(
        create_staff_user(
            email=args.email,
            password=args.password,
            role=UserRole(args.role),
            first_name=args.first_name,
            last_name=args.last_name,
        )
    )
