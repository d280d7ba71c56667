from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class LastReceipt(BaseModel):
    store_name: str
    co2_total: float
    receipt_date: datetime
    total_price: float


class PromotionPreview(BaseModel):
    title: str
    promotion_type: str


class HomeResponse(BaseModel):
    green_points: int
    co2_accumulated: float
    last_receipt: Optional[LastReceipt] = None
    promotions: List[PromotionPreview] = []
