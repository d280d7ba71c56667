from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.base import MongoModel, PyObjectId, utcnow


class StoreInfo(BaseModel):
    name: str
    logo_url: Optional[str] = None


class Promotion(MongoModel):
    title: str
    description: Optional[str] = None
    promotion_type: str
    required_receipts: int = Field(default=1, ge=0)  # green points needed to redeem
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    active: bool = True
    store: Optional[StoreInfo] = None


class PromotionRedemption(MongoModel):
    user_id: PyObjectId
    promotion_id: PyObjectId
    points_spent: int
    used_at: datetime = Field(default_factory=utcnow)
    details: Optional[str] = None
