from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from app.classification.models import Co2Validation, ImpactVerdict
from app.models.receipt import ReceiptType, RecommendationType


class ProcessedProduct(BaseModel):
    """One receipt line after matching, unit conversion and classification."""
    name: str
    original_name: str
    unit_price: float
    quantity: float
    unit: str
    quantity_kg: float
    category: str
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    co2_factor: float
    co2_total: float
    match_confidence: float
    matched: bool
    is_local: bool = False
    has_eco_packaging: bool = False
    impact: ImpactVerdict
    validation: Co2Validation

    @property
    def is_green(self) -> bool:
        return self.impact.is_eco or self.is_local or self.has_eco_packaging


class ReceiptAnalysis(BaseModel):
    total_products: int
    green_products: int
    green_percentage: int
    co2_total: float
    co2_average: float
    receipt_type: ReceiptType
    is_green_receipt: bool


class ProcessReceiptResponse(BaseModel):
    receipt_id: str
    store: str
    analysis: ReceiptAnalysis
    products: List[ProcessedProduct]
    suggestions: List[str] = []


class ProductDetail(BaseModel):
    id: str
    name: str
    quantity: float
    unit: str
    unit_price: float
    total_price: float
    co2_factor: float
    co2_total: float
    category: Optional[str] = None
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    impact_tier: str
    validation_level: str


class OriginalProduct(BaseModel):
    id: str
    name: str
    co2: float


class RecommendedProduct(BaseModel):
    name: str
    brand: Optional[str] = None
    category: Optional[str] = None
    store: str
    co2: float


class Improvement(BaseModel):
    percentage: float
    co2_saved: float


class RecommendationDetail(BaseModel):
    id: str
    original_product: OriginalProduct
    recommended_product: RecommendedProduct
    improvement: Improvement
    type: RecommendationType
    similarity_score: float


class DetailAnalysis(BaseModel):
    total_products: int
    co2_total: float
    co2_average: float


class RecommendationSummary(BaseModel):
    total_recommendations: int
    co2_total_savable: float
    average_improvement_percentage: float


class ReceiptDetailResponse(BaseModel):
    id: str
    store_name: str
    receipt_date: datetime
    total_price: float
    receipt_type: ReceiptType
    products: List[ProductDetail]
    analysis: DetailAnalysis
    recommendations: List[RecommendationDetail]
    summary: RecommendationSummary
