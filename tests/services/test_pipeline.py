"""Tests for the receipt classification pipeline."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.classification.detector import SupermarketDetector
from app.classification.impact import ImpactClassifier
from app.classification.models import (
    ClassifiedLineItem,
    ImpactTier,
    InferredCategory,
    RawExtractedLineItem,
    RecommendedAlternative,
    UNCATEGORIZED,
)
from app.classification.taxonomy import TaxonomyLoadError
from app.classification.units import UnitNormalizer
from app.models.receipt import ReceiptType, RecommendationType
from app.schemas.receipt import ProcessedProduct
from app.services.pipeline import BoletaPipeline, build_pipeline, get_pipeline, init_pipeline, pipeline_state


def matched(name, category, co2, subcategory=None):
    return ClassifiedLineItem(
        name=name, unit_price=0.0, unit="kg",
        canonical_category=category, canonical_subcategory=subcategory,
        co2_factor_per_unit=co2, match_confidence=0.9,
    )


@pytest.fixture
def matcher():
    matcher = MagicMock()
    matcher.find_similar_product = AsyncMock(return_value=None)
    return matcher


@pytest.fixture
def inference():
    inference = MagicMock()
    inference.infer_category = AsyncMock(return_value=InferredCategory(
        category=UNCATEGORIZED, confidence=0.0, reasoning="",
    ))
    return inference


@pytest.fixture
def recommendations():
    engine = MagicMock()
    engine.find_alternatives = AsyncMock(return_value=[])
    return engine


@pytest.fixture
def suggestions():
    service = MagicMock()
    service.generate = AsyncMock(return_value=["Buy local"])
    return service


@pytest.fixture
def pipeline(taxonomy, matcher, inference, recommendations, suggestions):
    return BoletaPipeline(
        taxonomy=taxonomy,
        units=UnitNormalizer(),
        impact=ImpactClassifier(taxonomy=taxonomy),
        detector=SupermarketDetector(default_collection="tottus"),
        matcher=matcher,
        inference=inference,
        recommendations=recommendations,
        suggestions=suggestions,
        unmatched_factor=5.0,
        recommendation_floor=3.0,
    )


@pytest.mark.asyncio
class TestClassify:
    async def test_match_merges_extracted_fields(self, pipeline, matcher):
        matcher.find_similar_product.return_value = matched("Platano de isla", "Frutas y Verduras", 0.8)
        item = RawExtractedLineItem(name="PLATANO ISLA", unit_price=3.2, quantity=0.85, unit="kg")

        product = await pipeline.classify_item(item, "metro")

        assert product.matched
        assert product.name == "Platano de isla"
        assert product.original_name == "PLATANO ISLA"
        assert (product.unit_price, product.quantity, product.unit) == (3.2, 0.85, "kg")
        assert product.quantity_kg == 0.85
        assert product.co2_total == pytest.approx(0.68)
        assert product.impact.tier is ImpactTier.MEDIUM  # metro 0.6 / 1.5
        assert product.validation.level.value == "green"
        matcher.find_similar_product.assert_awaited_once_with("PLATANO ISLA", "metro")

    async def test_no_match_uses_inferred_category_mean(self, pipeline, inference, taxonomy):
        inference.infer_category.return_value = InferredCategory(category="Quesos", confidence=0.9, reasoning="")
        item = RawExtractedLineItem(name="QUESO FRESCO", unit_price=9.9, quantity=500, unit="g")

        product = await pipeline.classify_item(item, "tottus")

        assert not product.matched
        assert product.category == "Quesos"
        assert product.co2_factor == taxonomy.ranges_for("Quesos").mean_footprint_per_kg
        assert product.quantity_kg == 0.5
        inference.infer_category.assert_awaited_once_with("QUESO FRESCO", "tottus")

    async def test_no_match_unknown_category_uses_default_factor(self, pipeline):
        item = RawExtractedLineItem(name="COSA RARA", unit_price=2.0, quantity=2, unit="un")

        product = await pipeline.classify_item(item, "tottus")

        assert product.category == UNCATEGORIZED
        assert product.co2_factor == 5.0
        assert product.quantity_kg == 0.5  # 2 x 0.25 kg generic unit weight
        assert product.co2_total == 2.5
        assert product.validation.sources == ["Estimated - subcategory not found"]

    async def test_subcategory_drives_validation(self, pipeline, matcher):
        matcher.find_similar_product.return_value = matched("Queso edam", "Lácteos", 9.0, subcategory="Quesos")
        product = await pipeline.classify_item(RawExtractedLineItem(name="EDAM", unit_price=12.0), "wong")
        assert product.validation.ranges.mean_footprint == pytest.approx(
            pipeline.taxonomy.ranges_for("Quesos").mean_footprint_per_kg
        )

    async def test_classify_items_keeps_order(self, pipeline, matcher):
        async def find(name, collection):
            return matched(name.title(), "Carnes", 20.0) if name.startswith("CARNE") else None

        matcher.find_similar_product.side_effect = find
        items = [RawExtractedLineItem(name=n, unit_price=1.0) for n in ("PAN", "CARNE RES", "AGUA", "CARNE CERDO")]

        products = await pipeline.classify_items(items, "metro")

        assert [p.original_name for p in products] == ["PAN", "CARNE RES", "AGUA", "CARNE CERDO"]
        assert [p.matched for p in products] == [False, True, False, True]


def product_with(pipeline, tier_co2, **extra):
    """A processed product whose impact verdict is driven by `tier_co2` under the default rule."""
    verdict = ImpactClassifier(store_thresholds={}).classify("x", "x", tier_co2)
    validation = pipeline.taxonomy.validate_co2("x", tier_co2)
    return ProcessedProduct(
        name="p", original_name="P", unit_price=1.0, quantity=1, unit="kg", quantity_kg=1.0,
        category="x", co2_factor=tier_co2, co2_total=tier_co2, match_confidence=0.0, matched=False,
        impact=verdict, validation=validation, **extra,
    )


class TestAnalyze:
    def test_green_receipt(self, pipeline):
        products = [product_with(pipeline, 1.0), product_with(pipeline, 2.0), product_with(pipeline, 10.0)]
        analysis = pipeline.analyze(products)

        assert analysis.green_products == 2
        assert analysis.green_percentage == 67
        assert analysis.receipt_type is ReceiptType.GREEN
        assert analysis.is_green_receipt
        assert analysis.co2_total == 13.0
        assert analysis.co2_average == pytest.approx(4.33)

    def test_yellow_receipt(self, pipeline):
        products = [product_with(pipeline, 1.0)] + [product_with(pipeline, 10.0)] * 2
        analysis = pipeline.analyze(products)
        assert analysis.receipt_type is ReceiptType.YELLOW
        assert not analysis.is_green_receipt

    def test_red_receipt(self, pipeline):
        products = [product_with(pipeline, 1.0)] + [product_with(pipeline, 10.0)] * 3
        assert pipeline.analyze(products).receipt_type is ReceiptType.RED

    def test_local_and_eco_packaging_count_as_green(self, pipeline):
        products = [
            product_with(pipeline, 10.0, is_local=True),
            product_with(pipeline, 10.0, has_eco_packaging=True),
            product_with(pipeline, 10.0),
        ]
        assert pipeline.analyze(products).green_products == 2

    def test_exact_sixty_percent_is_green(self, pipeline):
        products = [product_with(pipeline, 1.0)] * 3 + [product_with(pipeline, 10.0)] * 2
        assert pipeline.analyze(products).receipt_type is ReceiptType.GREEN

    def test_empty(self, pipeline):
        analysis = pipeline.analyze([])
        assert analysis.total_products == 0
        assert analysis.co2_average == 0.0
        assert analysis.receipt_type is ReceiptType.RED


@pytest.mark.asyncio
class TestRecommend:
    async def test_below_floor_is_skipped(self, pipeline, recommendations):
        assert await pipeline.recommend(product_with(pipeline, 3.0), "tottus") == []
        recommendations.find_alternatives.assert_not_called()

    async def test_builds_recommendations(self, pipeline, recommendations):
        recommendations.find_alternatives.return_value = [
            RecommendedAlternative(name="Pollo", co2_per_kg=5.0, category="Carnes", source_retailer="tottus", similarity_score=0.8),
            RecommendedAlternative(name="Cerdo", co2_per_kg=7.5, category="Carnes", source_retailer="wong", similarity_score=0.77),
        ]

        recs = await pipeline.recommend(product_with(pipeline, 10.0), "tottus")

        assert [r.type for r in recs] == [RecommendationType.SAME_STORE, RecommendationType.OTHER_STORE]
        assert recs[0].improvement_percentage == 50.0
        assert recs[1].improvement_percentage == 25.0
        assert recs[0].co2_original == 10.0
        line_item = recommendations.find_alternatives.call_args.args[0]
        assert line_item.co2_factor_per_unit == 10.0

    async def test_suggest_passes_levels(self, pipeline, suggestions):
        products = [product_with(pipeline, 10.0)]
        analysis = pipeline.analyze(products)

        assert await pipeline.suggest(products, analysis) == ["Buy local"]
        summary, co2_total, receipt_type = suggestions.generate.call_args.args
        assert summary == [{"name": "p", "co2": 10.0, "level": "red"}]
        assert receipt_type == "ROJO"


def test_build_pipeline_wires_shared_gateways(taxonomy, vectors, chat):
    pipeline = build_pipeline(taxonomy, embeddings=MagicMock(), chat=chat, vectors=vectors)

    assert pipeline.matcher.vectors is vectors
    assert pipeline.recommendations.vectors is vectors
    assert pipeline.inference.chat is chat
    assert pipeline.matcher.normalizer.taxonomy is taxonomy


def test_missing_taxonomy_aborts_startup(tmp_path):
    with patch("app.services.pipeline.settings.MASTER_TABLE_PATH", str(tmp_path / "missing.json")):
        with pytest.raises(TaxonomyLoadError):
            init_pipeline()


def test_pipeline_required_before_use():
    with patch.object(pipeline_state, "pipeline", None):
        with pytest.raises(RuntimeError):
            get_pipeline()
