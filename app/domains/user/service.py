# app/domains/user/service.py
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models import User


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_clerk_id(self, clerk_user_id: str) -> User | None:
        """Get a user by Clerk user ID."""
        result = await self.db.execute(select(User).where(User.clerk_user_id == clerk_user_id))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create_user(self, clerk_user_id: str, email: str | None = None, username: str | None = None) -> User:
        """Create a new user."""
        user = User(clerk_user_id=clerk_user_id, email=email, username=username)

        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
            return user
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def get_or_create_user(self, clerk_user_id: str, clerk_payload: dict) -> User:
        """Get the local mirror of a Clerk user, creating it on first sight."""
        user = await self.get_user_by_clerk_id(clerk_user_id)
        if user:
            return user

        try:
            return await self.create_user(
                clerk_user_id=clerk_user_id,
                email=clerk_payload.get("email"),
                username=clerk_payload.get("username"),
            )
        except IntegrityError:
            # Another request created the same user first
            user = await self.get_user_by_clerk_id(clerk_user_id)
            if user is None:
                raise
            return user
