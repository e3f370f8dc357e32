"""Seed the registration store with the first bot admin.

Admin commands only work for users already in the admins table, so the first admin
has to be added out of band.

Usage:
    python -m scripts.seed_db --admin <discord_username>
"""

from __future__ import annotations

import argparse
import asyncio

from sndbot.config import get_settings
from sndbot.db import close_db, create_all, get_session_factory, init_db
from sndbot.repositories import AdminRepository


async def seed_database(admins: list[str]) -> None:
    """Create tables if needed and add the given admins."""
    settings = get_settings()
    init_db(settings)
    await create_all()

    session_factory = get_session_factory()
    try:
        async with session_factory() as session, session.begin():
            repository = AdminRepository(session)
            for username in admins:
                if await repository.is_admin(username):
                    print(f"✅ {username} is already an admin")
                    continue
                await repository.add(username)
                print(f"✅ Added admin: {username}")
    finally:
        await close_db()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--admin",
        action="append",
        required=True,
        help="Discord username to grant admin rights (repeatable)",
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = _parse_args(argv)
    try:
        await seed_database(args.admin)
    except Exception as e:
        print(f"❌ Error seeding database: {e}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
