# nursery/scripts/create_admin.py
"""
Create the first admin login.

    ADMIN_EMAIL=owner@nursery.test ADMIN_PASSWORD=... python -m nursery.scripts.create_admin
"""
import asyncio
import os

from sqlalchemy import select

from nursery.models.user_models import User, UserRole
from nursery.core.db import AsyncSessionLocal, init_models
from nursery.core.security import hash_password


async def create_admin(email: str, password: str, full_name: str = "Administrator") -> User:
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalars().first()
        if user:
            user.role = UserRole.ADMIN
            user.is_active = True
            print(f"User '{email}' promoted to admin.")
        else:
            user = User(
                email=email,
                full_name=full_name,
                password_hash=hash_password(password),
                role=UserRole.ADMIN,
                is_active=True
            )
            session.add(user)
            print(f"Admin user '{email}' created!")
        await session.commit()
        return user


async def main():
    email = os.getenv("ADMIN_EMAIL", "admin@nursery.local")
    password = os.getenv("ADMIN_PASSWORD")
    if not password:
        raise SystemExit("ADMIN_PASSWORD must be set")
    await init_models()
    await create_admin(email, password)


if __name__ == "__main__":
    asyncio.run(main())
