from datetime import datetime
from enum import Enum
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from app.models.base import MongoModel, PyObjectId, utcnow


class ReceiptType(str, Enum):
    GREEN = "VERDE"
    YELLOW = "AMARILLO"
    RED = "ROJO"


class RecommendationType(str, Enum):
    SAME_STORE = "SAME_STORE_ALTERNATIVE"
    OTHER_STORE = "OTHER_STORE_ALTERNATIVE"


# Embedded documents don't need MongoModel (no separate collection)
class Recommendation(BaseModel):
    recommendation_id: PyObjectId = Field(default_factory=ObjectId)
    name: str
    brand: Optional[str] = None
    category: Optional[str] = None
    store: str
    co2_original: float
    co2_recommended: float
    improvement_percentage: float
    type: RecommendationType
    similarity_score: float

    model_config = ConfigDict(arbitrary_types_allowed=True)


class ReceiptItem(BaseModel):
    item_id: PyObjectId = Field(default_factory=ObjectId)
    name: str
    quantity: float
    unit: str = "un"
    unit_price: float
    quantity_kg: float
    co2_factor: float  # kg CO2e per kg
    co2_total: float  # kg CO2e for the purchased quantity
    category: str
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    match_confidence: float = 0.0
    impact_tier: str
    is_eco: bool = False
    validation_level: str
    recommendations: List[Recommendation] = []

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def total_price(self) -> float:
        return round(self.unit_price * self.quantity, 2)


class Receipt(MongoModel):
    owner_id: PyObjectId
    store_name: str
    receipt_date: datetime = Field(default_factory=utcnow)
    total_price: float = 0.0
    receipt_type: ReceiptType
    image_name: Optional[str] = None
    items: List[ReceiptItem] = []
    is_deleted: bool = False

    @property
    def co2_total(self) -> float:
        return sum(item.co2_total for item in self.items)
