"""
Value objects passed between the classification pipeline stages.

Every stage builds a new object from its input; none of these are mutated
after creation (models are frozen).
"""

import math
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

UNCATEGORIZED = "Sin categoría"


class ImpactTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ValidationLevel(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ThresholdRule(FrozenModel):
    """CO2e thresholds for one category: tier is low up to `low`, medium up to `medium`."""
    low: float
    medium: float
    high: float = math.inf
    unit: str = "kg CO2e/kg"


class ImpactVerdict(FrozenModel):
    tier: ImpactTier
    is_eco: bool
    thresholds_used: ThresholdRule
    co2_per_kg: float


class NormalizedCategory(FrozenModel):
    original: str
    normalized: str
    retailer: str
    confidence: float


class InferredCategory(FrozenModel):
    category: str
    confidence: float
    reasoning: str


class Co2Ranges(FrozenModel):
    green_up_to: float
    yellow_up_to: float
    red_from: float
    mean_footprint: float


class Co2Validation(FrozenModel):
    level: ValidationLevel
    message: str
    co2_per_kg: float
    ranges: Co2Ranges
    sources: List[str] = []


class RawExtractedLineItem(FrozenModel):
    """A line item as produced by the OCR parser."""
    name: str
    unit_price: float
    quantity: float = 1.0
    unit: str = "un"
    ocr_confidence: float = Field(default=0.7, ge=0, le=1)


class ClassifiedLineItem(RawExtractedLineItem):
    canonical_category: str = UNCATEGORIZED
    canonical_subcategory: Optional[str] = None
    brand_id: Optional[str] = None
    co2_factor_per_unit: float = Field(default=0.0, ge=0)
    is_local: bool = False
    has_eco_packaging: bool = False
    match_confidence: float = 0.0

    @property
    def reference_category(self) -> str:
        """Subcategory when known, otherwise the canonical category."""
        return self.canonical_subcategory or self.canonical_category


class RecommendedAlternative(FrozenModel):
    name: str
    co2_per_kg: float
    brand: Optional[str] = None
    category: str
    source_retailer: str
    similarity_score: float
