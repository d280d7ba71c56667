"""
Master reference taxonomy.

The taxonomy maps every canonical subcategory to its reference CO2e footprint
and the green/yellow/red bounds used to judge a product. It is loaded once
at startup and is read-only afterwards; a missing or inconsistent document
is fatal.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from app.classification.models import Co2Ranges, Co2Validation, ValidationLevel
from app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RANGES = Co2Ranges(green_up_to=2.0, yellow_up_to=5.0, red_from=5.0, mean_footprint=3.0)
DEFAULT_SOURCES = ["Estimated - subcategory not found"]

_MESSAGES = {
    ValidationLevel.GREEN: "Low environmental impact",
    ValidationLevel.YELLOW: "Moderate environmental impact",
    ValidationLevel.RED: "High environmental impact",
}


class TaxonomyLoadError(RuntimeError):
    """Raised when the master taxonomy document cannot be used."""


class SubcategoryRanges(BaseModel):
    model_config = ConfigDict(frozen=True)

    mean_footprint_per_kg: float = Field(ge=0)
    range_min: float = Field(ge=0)
    range_max: float = Field(ge=0)
    green_upper_bound: float = Field(ge=0)
    yellow_upper_bound: float = Field(ge=0)
    red_lower_bound: float = Field(ge=0)
    sources: List[str] = []
    notes: str = ""

    @model_validator(mode="after")
    def check_bound_order(self):
        if not (self.green_upper_bound <= self.yellow_upper_bound <= self.red_lower_bound):
            raise ValueError(
                f"bounds out of order: green {self.green_upper_bound}, "
                f"yellow {self.yellow_upper_bound}, red {self.red_lower_bound}"
            )
        if self.range_min > self.range_max:
            raise ValueError(f"range_min {self.range_min} exceeds range_max {self.range_max}")
        return self


class MasterTaxonomy(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    updated_at: str = ""
    methodology: str = ""
    subcategories: Dict[str, SubcategoryRanges]

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.subcategories:
            raise ValueError("taxonomy declares no subcategories")
        return self

    def subcategory_names(self) -> List[str]:
        """Subcategory names in declaration order."""
        return list(self.subcategories.keys())

    def __contains__(self, subcategory: object) -> bool:
        return subcategory in self.subcategories

    def ranges_for(self, subcategory: str) -> Optional[SubcategoryRanges]:
        ranges = self.subcategories.get(subcategory)
        if ranges is None:
            logger.debug("Subcategory %r not in master taxonomy", subcategory)
        return ranges

    def search(self, partial: str) -> List[str]:
        """Case-insensitive substring search over subcategory names."""
        needle = (partial or "").lower()
        return [name for name in self.subcategories if needle in name.lower()]

    def validate_co2(self, subcategory: str, co2_per_kg: float) -> Co2Validation:
        """Grade a CO2e-per-kg figure against the subcategory's reference bounds."""
        ranges = self.ranges_for(subcategory)
        if ranges is None:
            logger.warning(
                "Using default CO2 ranges for unknown subcategory %r (co2=%.3f)",
                subcategory, co2_per_kg,
            )
            bounds = DEFAULT_RANGES
            sources = DEFAULT_SOURCES
            suffix = " (estimated)"
        else:
            bounds = Co2Ranges(
                green_up_to=ranges.green_upper_bound,
                yellow_up_to=ranges.yellow_upper_bound,
                red_from=ranges.red_lower_bound,
                mean_footprint=ranges.mean_footprint_per_kg,
            )
            sources = list(ranges.sources)
            suffix = ""

        if co2_per_kg <= bounds.green_up_to:
            level = ValidationLevel.GREEN
        elif co2_per_kg <= bounds.yellow_up_to:
            level = ValidationLevel.YELLOW
        else:
            level = ValidationLevel.RED

        logger.debug("CO2 %.3f for %r graded %s", co2_per_kg, subcategory, level.value)
        return Co2Validation(
            level=level,
            message=_MESSAGES[level] + suffix,
            co2_per_kg=co2_per_kg,
            ranges=bounds,
            sources=sources,
        )


def parse_taxonomy(document: dict) -> MasterTaxonomy:
    try:
        return MasterTaxonomy.model_validate(document)
    except ValidationError as e:
        raise TaxonomyLoadError(f"Invalid master taxonomy: {e}") from e


def load_taxonomy(path: str | Path) -> MasterTaxonomy:
    """Read and validate the master taxonomy JSON document at `path`."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise TaxonomyLoadError(f"Master taxonomy not readable at {path}: {e}") from e

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise TaxonomyLoadError(f"Master taxonomy at {path} is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise TaxonomyLoadError(f"Master taxonomy at {path} must be a JSON object")

    taxonomy = parse_taxonomy(document)
    logger.info(
        "Loaded master taxonomy v%s with %d subcategories from %s",
        taxonomy.version, len(taxonomy.subcategories), path,
    )
    return taxonomy
