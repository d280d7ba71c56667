from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.base import object_id
from app.models.receipt import Receipt


class ReceiptRepository:
    """Receipt database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["receipts"]

    async def create_receipt(self, receipt: Receipt) -> Receipt:
        """Insert a processed receipt with its classified items."""
        result = await self.collection.insert_one(receipt.to_document())
        receipt.id = result.inserted_id
        return receipt

    async def get_receipt(self, receipt_id: str, user_id: str) -> Optional[Receipt]:
        """Get a receipt by id if it belongs to the user."""
        receipt_oid, owner_oid = object_id(receipt_id), object_id(user_id)
        if receipt_oid is None or owner_oid is None:
            return None
        doc = await self.collection.find_one({
            "_id": receipt_oid,
            "owner_id": owner_oid,
            "is_deleted": False
        })
        if doc:
            return Receipt(**doc)
        return None

    async def list_receipts(self, user_id: str, limit: Optional[int] = None) -> List[Receipt]:
        """List the user's receipts, newest first."""
        cursor = self.collection.find(
            {"owner_id": object_id(user_id), "is_deleted": False}
        ).sort("receipt_date", -1)
        docs = await cursor.to_list(limit)
        return [Receipt(**doc) for doc in docs]

    async def get_latest_receipt(self, user_id: str) -> Optional[Receipt]:
        receipts = await self.list_receipts(user_id, limit=1)
        return receipts[0] if receipts else None

