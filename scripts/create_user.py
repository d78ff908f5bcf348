#!/usr/bin/env python3
# scripts/create_user.py
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from drama_api.core.security import hash_password  # noqa: E402
from drama_api.crud import crud_user  # noqa: E402
from drama_api.db.session import AsyncSessionLocal, close_engine, transaction  # noqa: E402


async def create_user(email: str, password: str, username: str = None):
    """Create a user directly in the database, bypassing ENABLE_REGISTRATION"""
    try:
        async with AsyncSessionLocal() as db:
            if await crud_user.get_by_email(db, email=email):
                print(f"❌ User {email} already exists")
                return

            async with transaction(db):
                user = await crud_user.create(
                    db,
                    email=email,
                    password_hash=await hash_password(password),
                    username=username
                )
    finally:
        await close_engine()

    print(f"✅ User created: {user.email} ({user.id})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a Drama LLM user")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--username")
    args = parser.parse_args()
    asyncio.run(create_user(args.email, args.password, args.username))
