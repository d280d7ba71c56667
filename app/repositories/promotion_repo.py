from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.base import object_id
from app.models.promotion import Promotion, PromotionRedemption


class PromotionRepository:
    """Promotion and redemption database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["promotions"]
        self.redemptions = db["promotion_redemptions"]

    async def list_active(self, limit: Optional[int] = None) -> List[Promotion]:
        """Active promotions, most recent first."""
        cursor = self.collection.find({"active": True}).sort("created_at", -1)
        docs = await cursor.to_list(limit)
        return [Promotion(**doc) for doc in docs]

    async def get_promotion(self, promotion_id: str) -> Optional[Promotion]:
        oid = object_id(promotion_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        if doc:
            return Promotion(**doc)
        return None

    async def get_redemption(self, user_id: str, promotion_id: str) -> Optional[PromotionRedemption]:
        doc = await self.redemptions.find_one({
            "user_id": object_id(user_id),
            "promotion_id": object_id(promotion_id)
        })
        if doc:
            return PromotionRedemption(**doc)
        return None

    async def list_redeemed(self, user_id: str) -> List[Promotion]:
        """Promotions the user has redeemed, most recent redemption first."""
        cursor = self.redemptions.find({"user_id": object_id(user_id)}).sort("used_at", -1)
        redemptions = await cursor.to_list(None)
        promotion_ids = [r["promotion_id"] for r in redemptions]
        if not promotion_ids:
            return []

        docs = await self.collection.find({"_id": {"$in": promotion_ids}}).to_list(None)
        by_id = {doc["_id"]: Promotion(**doc) for doc in docs}
        return [by_id[pid] for pid in promotion_ids if pid in by_id]

    async def create_redemption(self, redemption: PromotionRedemption) -> PromotionRedemption:
        result = await self.redemptions.insert_one(redemption.to_document())
        redemption.id = result.inserted_id
        return redemption
