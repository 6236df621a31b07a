# init_db.py
import argparse
import asyncio

from sqlalchemy import select

from physio_booking.core.security import create_access_token
from physio_booking.db.sql import get_engine, get_sessionmaker, init_db
from physio_booking.modules.rooms.models import Room
from physio_booking.modules.rooms.service import DEFAULT_ROOMS
from physio_booking.modules.users.models import UserProfile, UserRole, UserStatus
from physio_booking.modules.users.repository import SqlUserRepository


async def seed_rooms() -> int:
    """
    Insert the default treatment rooms that are not there yet.
    """
    created = 0
    async with get_sessionmaker()() as session:
        for name, equipment in DEFAULT_ROOMS:
            exists = await session.execute(select(Room.id).where(Room.name == name))
            if exists.scalar_one_or_none() is None:
                session.add(Room(name=name, capacity=1, equipment=list(equipment), is_active=True))
                created += 1
        await session.commit()
    return created


async def seed_admin(email: str, first_name: str, last_name: str) -> UserProfile:
    """
    Create (or re-activate) an admin profile for bootstrapping the approval workflow.
    """
    async with get_sessionmaker()() as session:
        user = await SqlUserRepository(session).get_user_by_email(email)
        if user is None:
            user = UserProfile(email=email.strip().lower(), first_name=first_name, last_name=last_name, total_appointments=0)
            session.add(user)
        user.role = UserRole.ADMIN.value
        user.status = UserStatus.ACTIVE.value
        await session.commit()
        await session.refresh(user)
        return user


async def main(args: argparse.Namespace) -> None:
    await init_db(drop=not args.keep)
    print("Database schema created" if args.keep else "Database schema recreated successfully!")

    created = await seed_rooms()
    print(f"Seeded {created} room(s)")

    if args.admin_email:
        admin = await seed_admin(args.admin_email, args.admin_first_name, args.admin_last_name)
        print(f"Admin profile ready: {admin.email} ({admin.id})")
        print("Access token:", create_access_token(subject=str(admin.id), email=admin.email, role=admin.role))

    await get_engine().dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the schema and seed reference data")
    parser.add_argument("--keep", action="store_true", help="do not drop existing tables first")
    parser.add_argument("--admin-email", type=str, help="bootstrap an active admin profile with this email")
    parser.add_argument("--admin-first-name", type=str, default="Clinic")
    parser.add_argument("--admin-last-name", type=str, default="Admin")
    asyncio.run(main(parser.parse_args()))
