# scripts/manage_users.py

import argparse
import asyncio
import sys

from sqlalchemy.future import select

from app.core.constants import ROLE_ADMIN, ROLE_CUSTOMER
from app.db import async_session
from app.models.user import User
from app.utils.admin import ensure_admin

if sys.platform.startswith('win') and sys.version_info < (3, 10):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


async def create_admin(email: str, password: str, name: str):
    async with async_session() as session:
        user = await ensure_admin(session, email, password, name=name)
        print(f"✅ Admin ready: {user.email} ({user.id})")


async def set_role(email: str, role: str):
    async with async_session() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if not user:
            print(f"⚠️  No user found with email: {email}")
            return
        user.role = role
        await session.commit()
        print(f"🔐 {email} is now {role}")


async def list_users(role=None):
    async with async_session() as session:
        query = select(User).order_by(User.created_at)
        if role:
            query = query.where(User.role == role)
        result = await session.execute(query)
        for user in result.scalars().all():
            print(f"{user.id}  {user.email:<35} {user.role:<9} {user.name}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Manage Restaurant API users")
    parser.add_argument("--create-admin", action="store_true", help="Create (or promote) an admin account")
    parser.add_argument("--promote", action="store_true", help="Give an existing user the admin role")
    parser.add_argument("--demote", action="store_true", help="Give an existing user the customer role")
    parser.add_argument("--list", action="store_true", help="List users")
    parser.add_argument("--email", type=str, help="User e-mail")
    parser.add_argument("--password", type=str, help="Password for --create-admin")
    parser.add_argument("--name", type=str, default="Admin", help="Display name for --create-admin")
    parser.add_argument("--role", type=str, help="Filter for --list (admin/customer)")

    args = parser.parse_args()

    if args.create_admin and args.email and args.password:
        asyncio.run(create_admin(args.email, args.password, args.name))
    elif args.promote and args.email:
        asyncio.run(set_role(args.email, ROLE_ADMIN))
    elif args.demote and args.email:
        asyncio.run(set_role(args.email, ROLE_CUSTOMER))
    elif args.list:
        asyncio.run(list_users(role=args.role))
    else:
        print("❗ Usage:")
        print("  python -m scripts.manage_users --create-admin --email a@b.com --password secret123")
        print("  python -m scripts.manage_users --promote --email a@b.com")
        print("  python -m scripts.manage_users --demote --email a@b.com")
        print("  python -m scripts.manage_users --list --role admin")
