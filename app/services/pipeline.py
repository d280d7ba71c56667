"""
Receipt classification pipeline.

`BoletaPipeline` wires the deterministic classification components and the
AI-backed ones together. A single instance is built at startup from the
master taxonomy and shared gateways (see `init_pipeline`) and reused by
every request; it holds no per-request state.
"""

import asyncio
from typing import List, Optional, Sequence

from app.ai.clients import ChatCompletionGateway, EmbeddingGateway, VectorSearchGateway
from app.ai.embeddings import EmbeddingsService
from app.ai.inference import CategoryInferenceService
from app.ai.matcher import ProductMatcher
from app.ai.recommendations import RecommendationEngine
from app.ai.suggestions import SuggestionService
from app.classification.categories import CategoryNormalizer
from app.classification.detector import SupermarketDetector
from app.classification.impact import ImpactClassifier
from app.classification.models import ClassifiedLineItem, RawExtractedLineItem
from app.classification.taxonomy import MasterTaxonomy, load_taxonomy
from app.classification.units import UnitNormalizer
from app.core.config import settings
from app.core.logging import get_logger
from app.models.receipt import ReceiptType, Recommendation, RecommendationType
from app.schemas.receipt import ProcessedProduct, ReceiptAnalysis

logger = get_logger(__name__)

GREEN_RECEIPT_PERCENTAGE = 60
YELLOW_RECEIPT_PERCENTAGE = 30


class BoletaPipeline:
    def __init__(
        self,
        taxonomy: MasterTaxonomy,
        units: UnitNormalizer,
        impact: ImpactClassifier,
        detector: SupermarketDetector,
        matcher: ProductMatcher,
        inference: CategoryInferenceService,
        recommendations: RecommendationEngine,
        suggestions: SuggestionService,
        unmatched_factor: float = settings.UNMATCHED_CO2_FACTOR,
        recommendation_floor: float = settings.RECOMMENDATION_CO2_FLOOR,
    ):
        self.taxonomy = taxonomy
        self.units = units
        self.impact = impact
        self.detector = detector
        self.matcher = matcher
        self.inference = inference
        self.recommendations = recommendations
        self.suggestions = suggestions
        self.unmatched_factor = unmatched_factor
        self.recommendation_floor = recommendation_floor

    async def resolve_item(self, item: RawExtractedLineItem, collection: str) -> tuple:
        """Match against the catalog, falling back to LLM category inference."""
        match = await self.matcher.find_similar_product(item.name, collection)
        if match is not None:
            return match.model_copy(update={
                "unit_price": item.unit_price,
                "quantity": item.quantity,
                "unit": item.unit,
                "ocr_confidence": item.ocr_confidence,
            }), True

        inferred = await self.inference.infer_category(item.name, collection)
        ranges = self.taxonomy.ranges_for(inferred.category)
        factor = ranges.mean_footprint_per_kg if ranges is not None else self.unmatched_factor
        logger.info(
            "No catalog match for %r, using %s (confidence %.2f) with factor %.2f",
            item.name, inferred.category, inferred.confidence, factor,
        )
        return ClassifiedLineItem(
            **item.model_dump(),
            canonical_category=inferred.category,
            co2_factor_per_unit=factor,
        ), False

    async def classify_item(self, item: RawExtractedLineItem, collection: str) -> ProcessedProduct:
        classified, matched = await self.resolve_item(item, collection)
        factor = classified.co2_factor_per_unit

        quantity_kg = self.units.normalize_to_kg(classified.quantity, classified.unit, classified.canonical_category)
        return ProcessedProduct(
            name=classified.name,
            original_name=item.name,
            unit_price=classified.unit_price,
            quantity=classified.quantity,
            unit=classified.unit,
            quantity_kg=round(quantity_kg, 4),
            category=classified.canonical_category,
            subcategory=classified.canonical_subcategory,
            brand=classified.brand_id,
            co2_factor=factor,
            co2_total=round(factor * quantity_kg, 4),
            match_confidence=classified.match_confidence,
            matched=matched,
            is_local=classified.is_local,
            has_eco_packaging=classified.has_eco_packaging,
            impact=self.impact.classify(collection, classified.canonical_category, factor),
            validation=self.taxonomy.validate_co2(classified.reference_category, factor),
        )

    async def classify_items(self, items: Sequence[RawExtractedLineItem], collection: str) -> List[ProcessedProduct]:
        """Classify every line concurrently; output keeps input order."""
        return list(await asyncio.gather(*(self.classify_item(item, collection) for item in items)))

    @staticmethod
    def analyze(products: Sequence[ProcessedProduct]) -> ReceiptAnalysis:
        total = len(products)
        green = sum(1 for p in products if p.is_green)
        percentage = green / total * 100 if total else 0.0

        if percentage >= GREEN_RECEIPT_PERCENTAGE:
            receipt_type = ReceiptType.GREEN
        elif percentage >= YELLOW_RECEIPT_PERCENTAGE:
            receipt_type = ReceiptType.YELLOW
        else:
            receipt_type = ReceiptType.RED

        co2_total = sum(p.co2_total for p in products)
        return ReceiptAnalysis(
            total_products=total,
            green_products=green,
            green_percentage=round(percentage),
            co2_total=round(co2_total, 2),
            co2_average=round(co2_total / total, 2) if total else 0.0,
            receipt_type=receipt_type,
            is_green_receipt=receipt_type is ReceiptType.GREEN,
        )

    async def recommend(self, product: ProcessedProduct, collection: str) -> List[Recommendation]:
        if product.co2_factor <= self.recommendation_floor:
            return []

        line_item = ClassifiedLineItem(
            name=product.name,
            unit_price=product.unit_price,
            quantity=product.quantity,
            unit=product.unit,
            canonical_category=product.category,
            canonical_subcategory=product.subcategory,
            co2_factor_per_unit=product.co2_factor,
        )
        alternatives = await self.recommendations.find_alternatives(line_item, collection)
        return [
            Recommendation(
                name=alt.name,
                brand=alt.brand,
                category=alt.category,
                store=alt.source_retailer,
                co2_original=product.co2_factor,
                co2_recommended=alt.co2_per_kg,
                improvement_percentage=round((product.co2_factor - alt.co2_per_kg) / product.co2_factor * 100, 2),
                type=(RecommendationType.SAME_STORE if alt.source_retailer == collection
                      else RecommendationType.OTHER_STORE),
                similarity_score=alt.similarity_score,
            )
            for alt in alternatives
        ]

    async def recommend_all(self, products: Sequence[ProcessedProduct], collection: str) -> List[List[Recommendation]]:
        return list(await asyncio.gather(*(self.recommend(p, collection) for p in products)))

    async def suggest(self, products: Sequence[ProcessedProduct], analysis: ReceiptAnalysis) -> List[str]:
        summary = [
            {"name": p.name, "co2": p.co2_total, "level": p.validation.level.value}
            for p in products
        ]
        return await self.suggestions.generate(summary, analysis.co2_total, analysis.receipt_type.value)


def build_pipeline(
    taxonomy: MasterTaxonomy,
    embeddings: Optional[EmbeddingGateway] = None,
    chat: Optional[ChatCompletionGateway] = None,
    vectors: Optional[VectorSearchGateway] = None,
) -> BoletaPipeline:
    embeddings = embeddings or EmbeddingGateway()
    chat = chat or ChatCompletionGateway()
    vectors = vectors or VectorSearchGateway()

    embedding_service = EmbeddingsService(embeddings)
    normalizer = CategoryNormalizer(taxonomy)
    return BoletaPipeline(
        taxonomy=taxonomy,
        units=UnitNormalizer(),
        impact=ImpactClassifier(taxonomy=taxonomy),
        detector=SupermarketDetector(),
        matcher=ProductMatcher(embedding_service, vectors, normalizer, chat),
        inference=CategoryInferenceService(chat, normalizer),
        recommendations=RecommendationEngine(embedding_service, vectors),
        suggestions=SuggestionService(chat),
    )


class PipelineState:
    """Process-wide pipeline, built on startup."""

    pipeline: BoletaPipeline = None
    vectors: VectorSearchGateway = None


pipeline_state = PipelineState()


def init_pipeline():
    """Load the master taxonomy and build the shared pipeline.

    A missing or invalid taxonomy raises TaxonomyLoadError, which aborts startup.
    """
    taxonomy = load_taxonomy(settings.MASTER_TABLE_PATH)
    pipeline_state.vectors = VectorSearchGateway()
    pipeline_state.pipeline = build_pipeline(taxonomy, vectors=pipeline_state.vectors)
    logger.info(
        "Classification pipeline ready (taxonomy %s, %d subcategories)",
        taxonomy.version, len(taxonomy.subcategory_names()),
    )


async def close_pipeline():
    if pipeline_state.vectors is not None:
        await pipeline_state.vectors.close()
        pipeline_state.vectors = None
    pipeline_state.pipeline = None


def get_pipeline() -> BoletaPipeline:
    if pipeline_state.pipeline is None:
        raise RuntimeError("Classification pipeline has not been initialised")
    return pipeline_state.pipeline
