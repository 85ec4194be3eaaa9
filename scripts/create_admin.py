#!/usr/bin/env python3
"""Grant the ADMIN role to a user and print a local bearer token.

Users are normally mirrored from the identity provider; this script creates
the row when it is missing so a fresh database can be administered.
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from growshare.core.permissions import UserRole
from growshare.core.security import create_access_token
from growshare.database import AsyncSessionLocal
from growshare.models.user import User

logger = logging.getLogger(__name__)


async def grant_admin(
    session: AsyncSession,
    email: str,
    first_name: str = "GrowShare",
    last_name: str = "Admin",
) -> User:
    """Create or update ``email`` so that it holds the ADMIN role."""
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user:
        if UserRole.ADMIN.value not in user.roles:
            user.roles = [*user.roles, UserRole.ADMIN.value]
        user.is_active = True
        logger.info(f"Granted ADMIN to existing user {email}")
    else:
        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            roles=[UserRole.ADMIN.value],
            is_active=True,
        )
        session.add(user)
        logger.info(f"Created admin user {email}")

    await session.commit()
    return user


async def main(email: str, first_name: str, last_name: str) -> None:
    async with AsyncSessionLocal() as session:
        user = await grant_admin(session, email, first_name, last_name)
    print(f"Admin: {user.email} ({user.id})")
    print(f"Bearer token: {create_access_token({'sub': str(user.id)})}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Grant the ADMIN role to a user")
    parser.add_argument("--email", default="admin@growshare.app", help="Admin email")
    parser.add_argument("--first-name", default="GrowShare", help="First name")
    parser.add_argument("--last-name", default="Admin", help="Last name")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    asyncio.run(main(email=args.email, first_name=args.first_name, last_name=args.last_name))
