"""Impact tier classification from CO2e per kilogram."""

from types import MappingProxyType
from typing import Mapping, Optional

from app.classification.models import ImpactTier, ImpactVerdict, ThresholdRule
from app.classification.taxonomy import MasterTaxonomy
from app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RULE = ThresholdRule(low=3.0, medium=7.0)


def _rule(low: float, medium: float, unit: str = "kg CO2e/kg") -> ThresholdRule:
    return ThresholdRule(low=low, medium=medium, unit=unit)


# Footprint thresholds per retailer and store category.
STORE_THRESHOLDS: Mapping[str, Mapping[str, ThresholdRule]] = MappingProxyType({
    "tottus": {
        "Congelados": _rule(0.5, 1.5, "kg CO2e/USD"),
        "Desayunos y Panadería": _rule(1.0, 3.0),
        "Despensa": _rule(1.0, 2.5),
        "Dulces y Snacks": _rule(1.5, 4.0),
        "Embutidos y Quesos": _rule(3.0, 10.0),
        "Huevos": _rule(3.0, 6.0),
        "Jamón": _rule(4.0, 8.0),
        "Lácteos y Frescos": _rule(1.0, 5.0),
        "Aguas y Jugos": _rule(0.1, 0.5, "kg CO2e/L"),
        "Cervezas": _rule(0.5, 1.5, "kg CO2e/L"),
        "Espumantes y Vinos": _rule(1.0, 2.0, "kg CO2e/L"),
        "Licores": _rule(2.0, 3.5, "kg CO2e/L"),
        "Cuidado Capilar": _rule(0.5, 1.0, "kg CO2e/unit"),
        "Cuidado de la Piel": _rule(5.0, 15.0),
        "Higiene Personal": _rule(1.0, 3.0),
        "Maquillaje": _rule(0.1, 5.0, "kg CO2e/unit"),
        "Salud": _rule(5.0, 10.0),
        "Ambientales y Desinfectantes": _rule(1.5, 3.5),
        "Bolsas de Basura": _rule(0.06, 0.1, "kg CO2e/bag"),
        "Detergentes y Cuidado de Ropa": _rule(1.0, 3.0),
        "Limpiadores": _rule(0.04, 0.055, "kg CO2e/L"),
        "Papeles": _rule(0.2, 0.8, "kg CO2e/roll"),
        "Utensilios de Aseo": _rule(5.0, 15.0, "kg CO2e/unit"),
    },
    "metro": {
        "Aves y Huevos": _rule(2.0, 3.5),
        "Carnes": _rule(10.0, 30.0),
        "Aves y Pescados": _rule(1.5, 3.0),
        "Desayuno": _rule(1.0, 2.5),
        "Embutidos y Fiambres": _rule(5.0, 8.0),
        "Frutas y Verduras": _rule(0.6, 1.5),
        "Lácteos": _rule(1.5, 5.0),
        "Licores y Cervezas": _rule(0.5, 2.0, "kg CO2e/L"),
        "Bebidas": _rule(0.5, 1.5, "kg CO2e/L"),
        "Cuidado Personal": _rule(0.5, 5.0),
        "Despensa": _rule(1.0, 5.0),
        "Limpieza": _rule(1.0, 3.0),
        "Panadería y Pastelería": _rule(2.0, 5.0),
    },
    "wong": {
        "Aguas y Bebidas": _rule(0.5, 1.5, "kg CO2e/L"),
        "Comidas y Rostizados": _rule(4.0, 10.0),
        "Embutidos y Fiambres": _rule(5.0, 7.0),
        "Frutas y Verduras": _rule(0.6, 1.5),
        "Lácteos y Huevos": _rule(1.5, 5.0),
        "Panadería y Pastelería": _rule(2.0, 5.0),
    },
    "plazavea": {
        "Abarrotes": _rule(1.0, 2.0),
        "Bebidas": _rule(0.5, 1.5, "kg CO2e/L"),
        "Carnes, Aves y Pescados": _rule(5.0, 20.0),
        "Congelados": _rule(1.0, 10.0),
        "Desayunos": _rule(1.0, 5.0),
        "Frutas y Verduras": _rule(1.0, 2.5),
        "Limpieza": _rule(0.5, 2.0),
        "Lácteos y Huevos": _rule(2.0, 7.0),
        "Panadería y Pastelería": _rule(1.0, 3.0),
        "Pollo Rostizado y Comidas Preparadas": _rule(4.0, 8.0),
        "Quesos y Fiambres": _rule(8.0, 14.0),
        "Vinos, Licores y Cervezas": _rule(0.5, 2.0, "kg CO2e/L"),
    },
    "flora_y_fauna": {
        "Abarrotes": _rule(1.0, 5.0),
        "Congelados": _rule(1.0, 10.0),
        "Cuidado Personal": _rule(0.5, 5.0),
        "Frescos": _rule(1.0, 10.0),
        "Hogar y Limpieza": _rule(0.5, 5.0),
    },
    "vivanda": {
        "Abarrotes": _rule(1.0, 5.0),
        "Bebidas": _rule(0.5, 2.0, "kg CO2e/L"),
        "Carnes, Aves y Pescados": _rule(5.0, 20.0),
        "Congelados": _rule(1.0, 10.0),
        "Cuidado Personal y Salud": _rule(0.5, 5.0),
        "Desayunos": _rule(1.0, 10.0),
        "Frutas y Verduras": _rule(1.0, 2.5),
        "Limpieza": _rule(0.5, 5.0),
        "Lácteos y Huevos": _rule(7.0, 15.0),
        "Vinos, Licores y Cervezas": _rule(0.5, 2.0, "kg CO2e/L"),
    },
})


class ImpactClassifier:
    """Three-tier impact verdict for a CO2e-per-kg figure.

    Thresholds come from the retailer's own rule for the category, then the
    master taxonomy bounds for the category, then DEFAULT_RULE. Tiers are
    inclusive on the lower side: x <= low is low, x <= medium is medium.
    """

    def __init__(self, store_thresholds: Optional[Mapping[str, Mapping[str, ThresholdRule]]] = None,
                 taxonomy: Optional[MasterTaxonomy] = None):
        self.store_thresholds = store_thresholds if store_thresholds is not None else STORE_THRESHOLDS
        self.taxonomy = taxonomy

    def rules_for(self, retailer: str, category: str) -> ThresholdRule:
        rule = self.store_thresholds.get(retailer, {}).get(category)
        if rule is not None:
            return rule

        if self.taxonomy is not None:
            ranges = self.taxonomy.ranges_for(category)
            if ranges is not None:
                return ThresholdRule(low=ranges.green_upper_bound, medium=ranges.yellow_upper_bound)

        logger.debug("No threshold rule for %r at %s, using default", category, retailer)
        return DEFAULT_RULE

    def classify(self, retailer: str, category: str, co2_per_kg: float) -> ImpactVerdict:
        rule = self.rules_for(retailer, category)

        if co2_per_kg <= rule.low:
            tier = ImpactTier.LOW
        elif co2_per_kg <= rule.medium:
            tier = ImpactTier.MEDIUM
        else:
            tier = ImpactTier.HIGH

        logger.debug(
            "Classified %r (%s) at %.3f kg CO2e/kg as %s",
            category, retailer, co2_per_kg, tier.value,
        )
        return ImpactVerdict(
            tier=tier,
            is_eco=tier is ImpactTier.LOW,
            thresholds_used=rule,
            co2_per_kg=co2_per_kg,
        )
