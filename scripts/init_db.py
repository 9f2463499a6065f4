# scripts/init_db.py
import asyncio

from app.db import create_db_and_tables


async def create_tables():
    # create_db_and_tables imports app.models so every table is registered on Base
    await create_db_and_tables()
    print("✅ All missing tables created.")

if __name__ == "__main__":
    asyncio.run(create_tables())
