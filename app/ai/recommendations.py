"""Lower-footprint alternatives for a classified product."""

import asyncio
from typing import List, Sequence

from app.ai.clients import VectorHit, VectorSearchGateway
from app.ai.embeddings import EmbeddingsService
from app.ai.matcher import CATEGORY_FIELDS, CO2_FIELDS, first_present, optional_str
from app.classification.models import ClassifiedLineItem, RecommendedAlternative
from app.core.logging import get_logger

logger = get_logger(__name__)

MAX_ALTERNATIVES = 3
CATEGORY_FILTER_KEY = "categoria_principal"

SAME_STORE_THRESHOLD = 0.70
SAME_STORE_LIMIT = 10
OTHER_STORE_THRESHOLD = 0.75
OTHER_STORE_LIMIT = 5

# Cross-store search order.
OTHER_RETAILERS: Sequence[str] = ("tottus", "wong", "vivanda", "plazavea", "metro")


class RecommendationEngine:
    def __init__(self, embeddings: EmbeddingsService, vectors: VectorSearchGateway,
                 retailers: Sequence[str] = OTHER_RETAILERS):
        self.embeddings = embeddings
        self.vectors = vectors
        self.retailers = retailers

    def to_alternatives(self, product: ClassifiedLineItem, retailer: str,
                        hits: List[VectorHit]) -> List[RecommendedAlternative]:
        """Keep hits with a non-zero footprint strictly below the product's."""
        alternatives = []
        for hit in hits:
            co2 = float(first_present(hit.payload, CO2_FIELDS, 0.0) or 0.0)
            if not 0 < co2 < product.co2_factor_per_unit:
                continue
            alternatives.append(RecommendedAlternative(
                name=optional_str(hit.payload.get("nombre")) or "Unnamed product",
                co2_per_kg=co2,
                brand=optional_str(hit.payload.get("marca")),
                category=first_present(hit.payload, CATEGORY_FIELDS, product.canonical_category),
                source_retailer=retailer,
                similarity_score=hit.score,
            ))
        return alternatives

    async def search_retailer(self, product: ClassifiedLineItem, retailer: str,
                              vector: List[float]) -> List[RecommendedAlternative]:
        try:
            if not await self.vectors.collection_exists(retailer):
                logger.debug("Collection %s not available, skipping", retailer)
                return []
            hits = await self.vectors.search(
                retailer, vector,
                limit=OTHER_STORE_LIMIT,
                score_threshold=OTHER_STORE_THRESHOLD,
                filter={CATEGORY_FILTER_KEY: product.canonical_category},
            )
            return self.to_alternatives(product, retailer, hits)
        except Exception as e:
            logger.debug("Search in %s failed, skipping: %s", retailer, e)
            return []

    async def find_alternatives(
        self,
        product: ClassifiedLineItem,
        origin_retailer: str,
        search_other_retailers: bool = True,
    ) -> List[RecommendedAlternative]:
        """Up to three alternatives, lowest CO2e first. Never raises."""
        try:
            vector = await self.embeddings.embed_product(product.name)

            hits = await self.vectors.search(
                origin_retailer, vector,
                limit=SAME_STORE_LIMIT,
                score_threshold=SAME_STORE_THRESHOLD,
                filter={CATEGORY_FILTER_KEY: product.canonical_category},
            )
            alternatives = self.to_alternatives(product, origin_retailer, hits)

            if search_other_retailers and len(alternatives) < MAX_ALTERNATIVES:
                others = [r for r in self.retailers if r != origin_retailer]
                results = await asyncio.gather(
                    *(self.search_retailer(product, retailer, vector) for retailer in others)
                )
                for found in results:
                    alternatives.extend(found)
        except Exception as e:
            logger.error("Could not find alternatives for %r: %s", product.name, e)
            return []

        alternatives.sort(key=lambda alt: alt.co2_per_kg)
        logger.info("Found %d alternatives for %r", len(alternatives), product.name)
        return alternatives[:MAX_ALTERNATIVES]
