from datetime import datetime
from typing import List

from pydantic import BaseModel

from app.models.receipt import ReceiptType


class ActivitySummary(BaseModel):
    receipt_count: int
    green_count: int
    yellow_count: int
    red_count: int
    co2_total: float
    co2_average: float


class PurchaseItem(BaseModel):
    id: str
    receipt_date: datetime
    store_name: str
    receipt_type: ReceiptType
    co2: float
    product_count: int


class HistoryResponse(BaseModel):
    summary: ActivitySummary
    purchases: List[PurchaseItem]
