from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None


mongodb = MongoDatabase()


async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)


async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
        logger.info("Disconnected from MongoDB")


async def create_indexes():
    """Create database indexes."""
    await mongodb.db["users"].create_index("email", unique=True)

    await mongodb.db["receipts"].create_index([("owner_id", 1), ("receipt_date", -1)])

    await mongodb.db["promotions"].create_index([("active", 1), ("created_at", -1)])
    await mongodb.db["promotion_redemptions"].create_index([("user_id", 1), ("promotion_id", 1)])
