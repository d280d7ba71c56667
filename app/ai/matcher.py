"""
Nearest-neighbour product matching against a retailer's catalog.

A hit is accepted when its similarity score is at least
SIMILARITY_THRESHOLD (inclusive). The reference CO2 factor of the hit can
be corrected by an LLM plausibility check; that check is advisory and any
failure keeps the catalog value.
"""

import math
from typing import Any, Dict, Optional

from app.ai.clients import ChatCompletionGateway, VectorSearchGateway
from app.ai.embeddings import EmbeddingsService
from app.ai.responses import parse_json_object
from app.classification.categories import CategoryNormalizer
from app.classification.models import UNCATEGORIZED, ClassifiedLineItem
from app.core.logging import get_logger

logger = get_logger(__name__)

SIMILARITY_THRESHOLD = 0.75
VALIDATION_TEMPERATURE = 0.2

CO2_FIELDS = ("co2_estimado", "co2e_estimado")
CATEGORY_FIELDS = ("categoria_principal", "categoria")

PROMPT_CO2_CHECK = """You are an expert in product carbon footprints (kg CO2e per kg of product).

Product: "{product}"
Category: "{category}"
Reference footprint: {co2} kg CO2e/kg

Is the reference footprint plausible for this product?
Answer with JSON only:
{{
  "valid": true or false,
  "suggested_co2": corrected value in kg CO2e/kg, or null when valid,
  "reason": "short explanation"
}}"""


def first_present(payload: Dict[str, Any], fields, default=None):
    for key in fields:
        value = payload.get(key)
        if value:
            return value
    return default


def optional_str(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def is_positive_number(value) -> bool:
    # bool is an int subclass and json.loads accepts Infinity/NaN
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


class ProductMatcher:
    def __init__(
        self,
        embeddings: EmbeddingsService,
        vectors: VectorSearchGateway,
        normalizer: CategoryNormalizer,
        chat: Optional[ChatCompletionGateway] = None,
        threshold: float = SIMILARITY_THRESHOLD,
    ):
        self.embeddings = embeddings
        self.vectors = vectors
        self.normalizer = normalizer
        self.chat = chat
        self.threshold = threshold

    async def find_similar_product(
        self, product_name: str, collection_id: str, validate_co2: bool = True
    ) -> Optional[ClassifiedLineItem]:
        """Return the catalog product closest to `product_name`, or None."""
        try:
            vector = await self.embeddings.embed_product(product_name)

            if not await self.vectors.collection_exists(collection_id):
                logger.warning("Collection %s does not exist, skipping match for %r", collection_id, product_name)
                return None

            hits = await self.vectors.search(
                collection_id, vector, limit=1, score_threshold=self.threshold
            )
        except Exception as e:
            logger.error("Matching %r in %s failed: %s", product_name, collection_id, e)
            return None

        if not hits or hits[0].score < self.threshold:
            logger.info("No match above %.2f for %r in %s", self.threshold, product_name, collection_id)
            return None

        hit = hits[0]
        payload = hit.payload
        try:
            co2 = float(first_present(payload, CO2_FIELDS, 0.0) or 0.0)
            raw_category = str(first_present(payload, CATEGORY_FIELDS, UNCATEGORIZED))
            category = self.normalizer.normalize(raw_category, collection_id)

            if validate_co2 and co2 > 0:
                co2 = await self.check_co2(product_name, co2, category.normalized)

            item = ClassifiedLineItem(
                name=optional_str(payload.get("nombre")) or product_name,
                unit_price=0.0,
                quantity=1.0,
                unit="kg",
                canonical_category=category.normalized,
                canonical_subcategory=optional_str(payload.get("subcategoria")),
                brand_id=optional_str(payload.get("marca")),
                co2_factor_per_unit=max(co2, 0.0),
                match_confidence=hit.score,
            )
        except Exception as e:
            logger.warning("Unusable catalog payload for %r in %s: %s", product_name, collection_id, e)
            return None

        logger.info(
            "Matched %r -> %r in %s (score %.2f, category %s, co2 %.2f)",
            product_name, item.name, collection_id, hit.score, item.canonical_category, item.co2_factor_per_unit,
        )
        return item

    async def check_co2(self, product_name: str, co2: float, category: str) -> float:
        """LLM plausibility check; returns the value to use, never raises."""
        if self.chat is None:
            return co2

        try:
            reply = await self.chat.complete(
                PROMPT_CO2_CHECK.format(product=product_name, category=category, co2=co2),
                temperature=VALIDATION_TEMPERATURE,
            )
            verdict = parse_json_object(reply)
        except Exception as e:
            logger.warning("CO2 check for %r failed, keeping %.2f: %s", product_name, co2, e)
            return co2

        suggested = verdict.get("suggested_co2")
        if verdict.get("valid") is False and is_positive_number(suggested):
            logger.info(
                "CO2 for %r corrected from %.2f to %.2f: %s",
                product_name, co2, suggested, verdict.get("reason", ""),
            )
            return float(suggested)
        return co2
