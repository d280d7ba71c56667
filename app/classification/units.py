"""Unit normalization to kilograms."""

from types import MappingProxyType
from typing import Mapping, Optional

from app.classification.models import UNCATEGORIZED
from app.core.logging import get_logger

logger = get_logger(__name__)

# Average weight (kg) of one unit of packaged goods that are sold by the
# piece and carry no weight on the receipt. Last-resort estimate only: fresh
# produce and meat normally show their weight on the receipt.
UNIT_WEIGHTS: Mapping[str, float] = MappingProxyType({
    # Snacks and sweets
    "Bocaditos y Piqueos": 0.19,
    "Caramelos y Chupetes": 0.19,
    "Chocolates": 0.10,
    "Confitería y Snacks": 0.18,
    "Dulces y Snacks": 0.18,
    "Frutos Secos": 0.18,
    "Galletas": 0.30,
    "Galletas y Wafers": 0.20,
    "Marshmellows y Gomitas": 0.14,
    "Snacks": 0.15,
    "Toffees y Tejas": 0.36,
    "Tostadas y Bocaditos": 0.20,
    # Bottled drinks
    "Aguas": 0.60,
    "Aguas y Jugos": 0.60,
    "Bebidas": 0.50,
    "Gaseosas": 0.60,
    "Jugos Naturales": 0.50,
    "Jugos y Tés Líquidos": 0.50,
    "Ready To Drink": 0.40,
    "Cervezas": 0.355,
    # Packaged dairy
    "Helados": 0.50,
    "Leches": 1.00,
    "Lácteos": 1.00,
    "Yogurt": 0.12,
    "Quesos": 0.25,
    # Bakery
    "Baguettes y Artesanales": 0.30,
    "Croissant Enrollados y Otros": 0.10,
    "Kekes y Chifones": 0.60,
    "Pan de la Casa y Pan de Molde": 0.50,
    "Panadería": 0.40,
    "Panadería y Pastelería": 0.40,
    "Tartas y Roscas": 0.40,
    "Tortas": 1.00,
    # Packaged meat
    "Hamburguesas": 0.12,
    "Nuggets y Empanizados": 0.40,
    "Salchichas": 0.35,
    "Salchichas y Hot Dogs": 0.35,
    "Embutidos y Fiambres": 0.25,
    # Prepared food
    "Empanadas y Sandwiches": 0.15,
    "Pizzas": 0.40,
    "Tamales y Humitas": 0.14,
    # Dry groceries
    "Cereales": 0.40,
    "Conservas": 0.40,
    "Pasta": 0.50,
    "Café e Infusiones": 0.20,
    "Despensa": 0.50,
    # Seasonings
    "Condimentos y Especias": 0.02,
    "Especias": 0.10,
    "Levadura y Polvo para Hornear": 0.02,
    # Generic fallback
    UNCATEGORIZED: 0.25,
})

FALLBACK_CATEGORY = UNCATEGORIZED

MASS_DIVISORS: Mapping[str, float] = MappingProxyType({
    "kg": 1.0,
    "g": 1000.0,
    # density of common liquids taken as 1.0 kg/l
    "l": 1.0,
    "ml": 1000.0,
})

COUNT_UNITS = frozenset({"un", "unit", "units", "unidad", "unidades", "und"})


class UnitNormalizer:
    """Converts purchase quantities to kilograms.

    Mass and volume units convert directly. Discrete counts, and any unit
    that is not recognised, are estimated from the per-category average
    unit weight, falling back to the generic weight when the category is
    missing from the table.
    """

    def __init__(self, unit_weights: Optional[Mapping[str, float]] = None,
                 fallback_category: str = FALLBACK_CATEGORY):
        self.unit_weights = MappingProxyType(dict(unit_weights if unit_weights is not None else UNIT_WEIGHTS))
        self.fallback_category = fallback_category
        if fallback_category not in self.unit_weights:
            raise ValueError(f"Unit weight table lacks the fallback entry {fallback_category!r}")

    def unit_weight(self, category: str) -> float:
        weight = self.unit_weights.get(category)
        if weight is None:
            return self.unit_weights[self.fallback_category]
        return weight

    def estimate_from_count(self, quantity: float, category: str) -> float:
        weight = self.unit_weight(category)
        total = quantity * weight
        logger.debug(
            "Estimated %.3f kg from %s unit(s) of %r at %.3f kg each",
            total, quantity, category, weight,
        )
        return total

    def normalize_to_kg(self, quantity: float, unit: str, category: str) -> float:
        unit_key = (unit or "").strip().lower()

        divisor = MASS_DIVISORS.get(unit_key)
        if divisor is not None:
            kg = quantity / divisor
            logger.debug("Converted %s %s to %.4f kg", quantity, unit_key, kg)
            return kg

        if unit_key not in COUNT_UNITS:
            logger.warning("Unrecognised unit %r, estimating weight from category %r", unit, category)

        return self.estimate_from_count(quantity, category)
