from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.promotion import Promotion, StoreInfo


class PromotionItem(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    promotion_type: str
    required_receipts: int
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    active: bool
    store: Optional[StoreInfo] = None

    @classmethod
    def from_promotion(cls, promotion: Promotion, **extra) -> "PromotionItem":
        return cls(
            id=str(promotion.id),
            title=promotion.title,
            description=promotion.description,
            promotion_type=promotion.promotion_type,
            required_receipts=promotion.required_receipts,
            valid_from=promotion.valid_from,
            valid_until=promotion.valid_until,
            active=promotion.active,
            store=promotion.store,
            **extra
        )


class PromotionListResponse(BaseModel):
    user_points: Optional[int] = None
    promotions: List[PromotionItem]


class PromotionDetail(PromotionItem):
    available: bool
    used_at: Optional[datetime] = None
    details: Optional[str] = None


class RedeemRequest(BaseModel):
    description: Optional[str] = Field(None, max_length=500)


class RedeemResponse(BaseModel):
    promotion_id: str
    points_spent: int
    remaining_points: int
    used_at: datetime
