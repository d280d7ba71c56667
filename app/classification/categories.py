"""Category normalization against the master taxonomy."""

from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

from app.classification.models import UNCATEGORIZED, NormalizedCategory
from app.classification.taxonomy import MasterTaxonomy
from app.core.logging import get_logger

logger = get_logger(__name__)

EXACT_CONFIDENCE = 1.0
SYNONYM_CONFIDENCE = 0.85
UNRESOLVED_CONFIDENCE = 0.3

SynonymTable = Sequence[Tuple[str, Sequence[str]]]

# Per retailer, (canonical category, lowercase substrings) pairs. Entries are
# tried in declaration order and the first hit wins, so keep specific entries
# ahead of broad ones.
CATEGORY_SYNONYMS: Mapping[str, SynonymTable] = MappingProxyType({
    "tottus": (
        ("Congelados", ("congelados", "frozen", "helados")),
        ("Desayunos y Panadería", ("desayunos", "panaderia", "breakfast", "bakery", "pan", "galletas")),
        ("Despensa", ("despensa", "abarrotes", "granos", "cereales", "enlatados")),
        ("Dulces y Snacks", ("dulces", "snacks", "golosinas", "candy", "chocolates", "chizitos")),
        ("Embutidos y Quesos", ("embutidos", "quesos", "cheese", "salchichas", "jamon")),
        ("Huevos", ("huevos", "eggs")),
        ("Jamón", ("jamon", "ham")),
        ("Lácteos y Frescos", ("lacteos", "frescos", "dairy", "leche", "yogurt", "mantequilla")),
        ("Aguas y Jugos", ("aguas", "jugos", "water", "juice", "bebidas")),
        ("Cervezas", ("cervezas", "beer", "cerveza")),
        ("Licores", ("licores", "liquor", "spirits", "ron", "vodka", "whisky")),
    ),
    "metro": (
        ("Aves y Huevos", ("aves", "huevos", "poultry", "eggs", "pollo")),
        ("Carnes", ("carnes", "meat", "beef", "res", "carne")),
        ("Aves y Pescados", ("pescados", "fish", "salmon", "atun", "mariscos")),
        ("Desayuno", ("desayuno", "breakfast", "cereales", "avena")),
        ("Embutidos y Fiambres", ("embutidos", "fiambres", "salchichas", "mortadela")),
        ("Frutas y Verduras", ("frutas", "verduras", "fruits", "vegetables", "produce", "hortalizas")),
        ("Lácteos", ("lacteos", "dairy", "leche", "yogurt")),
        ("Licores y Cervezas", ("licores", "cervezas", "beer", "liquor", "cerveza")),
        ("Bebidas", ("bebidas", "drinks", "jugos", "gaseosas", "refrescos")),
        ("Cuidado Personal", ("cuidado personal", "personal care", "higiene")),
        ("Despensa", ("despensa", "abarrotes", "granos")),
        ("Limpieza", ("limpieza", "cleaning", "detergente", "jabon")),
        ("Panadería y Pastelería", ("panaderia", "pasteleria", "bakery", "pan", "tortas")),
    ),
    "wong": (
        ("Aguas y Bebidas", ("aguas", "bebidas", "drinks", "water", "jugos", "gaseosas")),
        ("Comidas y Rostizados", ("comidas", "rostizados", "prepared meals", "pollo rostizado")),
        ("Embutidos y Fiambres", ("embutidos", "fiambres", "salchichas", "jamon")),
        ("Frutas y Verduras", ("frutas", "verduras", "fruits", "vegetables", "produce")),
        ("Lácteos y Huevos", ("lacteos", "huevos", "dairy", "eggs", "leche", "yogurt")),
        ("Panadería y Pastelería", ("panaderia", "pasteleria", "bakery", "pan", "tortas")),
    ),
    "plazavea": (
        ("Abarrotes", ("abarrotes", "comestibles", "despensa", "granos", "cereales")),
        ("Bebidas", ("bebidas", "drinks", "jugos", "gaseosas", "aguas")),
        ("Carnes, Aves y Pescados", ("carnes", "aves", "pescados", "meat", "fish", "pollo")),
        ("Congelados", ("congelados", "frozen", "helados")),
        ("Desayunos", ("desayunos", "breakfast", "cereales", "avena")),
        ("Frutas y Verduras", ("frutas", "verduras", "fruits", "vegetables", "produce")),
        ("Limpieza", ("limpieza", "cleaning", "detergente", "jabon")),
        ("Lácteos y Huevos", ("lacteos", "huevos", "refrigerados", "dairy", "eggs")),
        ("Panadería y Pastelería", ("panaderia", "pasteleria", "bakery", "pan")),
        ("Pollo Rostizado y Comidas Preparadas", ("pollo rostizado", "comidas preparadas", "prepared meals")),
        ("Quesos y Fiambres", ("quesos", "fiambres", "cheese", "embutidos")),
        ("Vinos, Licores y Cervezas", ("vinos", "licores", "cervezas", "wine", "liquor", "beer")),
    ),
    "flora_y_fauna": (
        ("Abarrotes", ("abarrotes", "organicos", "despensa", "granos")),
        ("Congelados", ("congelados", "frozen")),
        ("Cuidado Personal", ("cuidado personal", "personal care", "higiene")),
        ("Frescos", ("frescos", "fresh", "refrigerados")),
        ("Hogar y Limpieza", ("hogar", "limpieza", "cleaning", "detergente")),
    ),
    "vivanda": (
        ("Abarrotes", ("abarrotes", "despensa", "granos")),
        ("Bebidas", ("bebidas", "drinks", "jugos", "gaseosas")),
        ("Carnes, Aves y Pescados", ("carnes", "aves", "pescados", "meat", "fish")),
        ("Congelados", ("congelados", "frozen")),
        ("Cuidado Personal y Salud", ("cuidado personal", "salud", "health", "personal care")),
        ("Desayunos", ("desayunos", "breakfast", "cereales")),
        ("Frutas y Verduras", ("frutas", "verduras", "fruits", "vegetables")),
        ("Limpieza", ("limpieza", "cleaning", "detergente")),
        ("Lácteos y Huevos", ("lacteos", "huevos", "dairy", "eggs")),
        ("Vinos, Licores y Cervezas", ("vinos", "licores", "cervezas", "wine", "liquor")),
    ),
})


class CategoryNormalizer:
    """Maps raw store category labels onto canonical categories.

    Resolution order: exact taxonomy subcategory (1.0), first matching
    synonym for the retailer (0.85), otherwise "Sin categoría" (0.3).
    """

    def __init__(self, taxonomy: MasterTaxonomy,
                 synonyms: Optional[Mapping[str, SynonymTable]] = None):
        self.taxonomy = taxonomy
        self.synonyms = synonyms if synonyms is not None else CATEGORY_SYNONYMS

    def normalize(self, raw_category: str, retailer: str) -> NormalizedCategory:
        raw_category = raw_category if isinstance(raw_category, str) else ""

        if raw_category in self.taxonomy:
            logger.debug("Exact taxonomy match for %r (%s)", raw_category, retailer)
            return NormalizedCategory(
                original=raw_category,
                normalized=raw_category,
                retailer=retailer,
                confidence=EXACT_CONFIDENCE,
            )

        lowered = raw_category.lower().strip()
        if lowered:
            for canonical, variants in self.synonyms.get(retailer, ()):
                if any(variant in lowered for variant in variants):
                    logger.info("Mapped category %r to %r via synonyms (%s)", raw_category, canonical, retailer)
                    return NormalizedCategory(
                        original=raw_category,
                        normalized=canonical,
                        retailer=retailer,
                        confidence=SYNONYM_CONFIDENCE,
                    )

        logger.warning("Unrecognised category %r for %s", raw_category, retailer)
        return NormalizedCategory(
            original=raw_category,
            normalized=UNCATEGORIZED,
            retailer=retailer,
            confidence=UNRESOLVED_CONFIDENCE,
        )

    def is_valid_category(self, category: str) -> bool:
        return category in self.taxonomy

    def available_categories(self, retailer: str) -> List[str]:
        # The taxonomy is shared by every retailer.
        return self.taxonomy.subcategory_names()
