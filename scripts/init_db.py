#!/usr/bin/env python3
# scripts/init_db.py
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import drama_api.db.models  # noqa: E402,F401  registers every table on Base.metadata
from drama_api.db.base import Base  # noqa: E402
from drama_api.db.session import close_engine, engine  # noqa: E402


async def init_db(drop: bool = False):
    """Create the users, sessions, conversations and messages tables"""
    print(f"🔗 Connecting to: {engine.url.render_as_string(hide_password=True)}")

    try:
        async with engine.begin() as conn:
            if drop:
                print("🗑️  Dropping existing tables...")
                await conn.run_sync(Base.metadata.drop_all)

            print("📦 Creating tables...")
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await close_engine()
    print("✅ Database initialized")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the Drama LLM database schema")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args()
    asyncio.run(init_db(drop=args.drop))
