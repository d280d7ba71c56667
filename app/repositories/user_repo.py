from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.core.security import hash_password
from app.models.base import object_id
from app.models.user import User
from app.schemas.auth import UserSignup


class UserRepository:
    """User database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["users"]

    async def create_user(self, user_data: UserSignup) -> User:
        """Create a new user."""
        user = User(
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            email=user_data.email,
            hashed_password=hash_password(user_data.password),
        )
        result = await self.collection.insert_one(user.to_document())
        user.id = result.inserted_id
        return user

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email."""
        doc = await self.collection.find_one({"email": email, "is_deleted": False})
        if doc:
            return User(**doc)
        return None

    async def get_user_by_id(self, user_id: str) -> User | None:
        """Get user by ID."""
        oid = object_id(user_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid, "is_deleted": False})
        if doc:
            return User(**doc)
        return None

    async def update_user(self, user_id: str, update_data: dict) -> User | None:
        """Update user."""
        oid = object_id(user_id)
        if oid is None:
            return None
        update_data["updated_at"] = datetime.now(timezone.utc)
        doc = await self.collection.find_one_and_update(
            {"_id": oid, "is_deleted": False},
            {"$set": update_data},
            return_document=ReturnDocument.AFTER
        )
        if doc:
            return User(**doc)
        return None

    async def add_green_points(self, user_id: str, delta: int) -> None:
        """Add (or, with a negative delta, spend) green points."""
        await self.collection.update_one(
            {"_id": object_id(user_id)},
            {
                "$inc": {"green_points": delta},
                "$set": {"updated_at": datetime.now(timezone.utc)}
            }
        )

    async def spend_green_points(self, user_id: str, amount: int) -> User | None:
        """
        Deduct `amount` points only if the balance covers it.

        Returns the updated user, or None when the balance was too low
        (or the user does not exist).
        """
        oid = object_id(user_id)
        if oid is None:
            return None

        doc = await self.collection.find_one_and_update(
            {"_id": oid, "is_deleted": False, "green_points": {"$gte": amount}},
            {
                "$inc": {"green_points": -amount},
                "$set": {"updated_at": datetime.now(timezone.utc)}
            },
            return_document=ReturnDocument.AFTER
        )
        if doc:
            return User(**doc)
        return None
