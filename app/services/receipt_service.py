from typing import List

from bson import ObjectId
from fastapi import HTTPException
from fastapi.concurrency import run_in_threadpool

from app.core.logging import get_logger
from app.db.session import get_database
from app.models.receipt import Receipt, ReceiptItem, Recommendation
from app.ocr.gemini import extract_receipt_text
from app.ocr.parser import parse_line_items
from app.repositories.receipt_repo import ReceiptRepository
from app.repositories.user_repo import UserRepository
from app.schemas.receipt import (
    DetailAnalysis,
    Improvement,
    OriginalProduct,
    ProcessedProduct,
    ProcessReceiptResponse,
    ProductDetail,
    ReceiptDetailResponse,
    RecommendationDetail,
    RecommendationSummary,
    RecommendedProduct,
)
from app.services.pipeline import get_pipeline

logger = get_logger(__name__)


def to_receipt_item(product: ProcessedProduct, recommendations: List[Recommendation]) -> ReceiptItem:
    return ReceiptItem(
        name=product.name,
        quantity=product.quantity,
        unit=product.unit,
        unit_price=product.unit_price,
        quantity_kg=product.quantity_kg,
        co2_factor=product.co2_factor,
        co2_total=product.co2_total,
        category=product.category,
        subcategory=product.subcategory,
        brand=product.brand,
        match_confidence=product.match_confidence,
        impact_tier=product.impact.tier.value,
        is_eco=product.is_green,
        validation_level=product.validation.level.value,
        recommendations=recommendations,
    )


class ReceiptService:
    @staticmethod
    async def process_receipt(
        user_id: str,
        image_bytes: bytes,
        file_name: str,
        content_type: str,
        generate_suggestions: bool = False
    ) -> ProcessReceiptResponse:
        """OCR, classify, score and store a receipt; awards a green point for green receipts."""
        pipeline = get_pipeline()
        db = await get_database()

        text = await run_in_threadpool(extract_receipt_text, image_bytes, content_type)
        collection = pipeline.detector.detect(text)
        items = parse_line_items(text)
        if not items:
            raise HTTPException(status_code=400, detail="No products detected in the image")
        logger.info("Parsed %d line items from %s (%s)", len(items), file_name, collection)

        products = await pipeline.classify_items(items, collection)
        analysis = pipeline.analyze(products)
        recommendations = await pipeline.recommend_all(products, collection)

        receipt = Receipt(
            owner_id=ObjectId(user_id),
            store_name=collection,
            total_price=round(sum(p.unit_price for p in products), 2),
            receipt_type=analysis.receipt_type,
            image_name=file_name,
            items=[to_receipt_item(p, recs) for p, recs in zip(products, recommendations)],
        )
        receipt = await ReceiptRepository(db).create_receipt(receipt)
        logger.info(
            "Stored receipt %s: %s, %.2f kg CO2e, %d recommendations",
            receipt.id, analysis.receipt_type.value, analysis.co2_total,
            sum(len(recs) for recs in recommendations),
        )

        if analysis.is_green_receipt:
            await UserRepository(db).add_green_points(user_id, 1)

        suggestions = []
        if generate_suggestions:
            suggestions = await pipeline.suggest(products, analysis)

        return ProcessReceiptResponse(
            receipt_id=str(receipt.id),
            store=collection,
            analysis=analysis,
            products=products,
            suggestions=suggestions,
        )

    @staticmethod
    async def get_receipt_detail(receipt_id: str, user_id: str) -> ReceiptDetailResponse:
        db = await get_database()
        receipt = await ReceiptRepository(db).get_receipt(receipt_id, user_id)
        if not receipt:
            raise HTTPException(status_code=404, detail="Receipt not found")

        products = []
        recommendations = []
        for item in receipt.items:
            products.append(ProductDetail(
                id=str(item.item_id),
                name=item.name,
                quantity=item.quantity,
                unit=item.unit,
                unit_price=item.unit_price,
                total_price=item.total_price,
                co2_factor=item.co2_factor,
                co2_total=item.co2_total,
                category=item.category,
                subcategory=item.subcategory,
                brand=item.brand,
                impact_tier=item.impact_tier,
                validation_level=item.validation_level,
            ))
            for rec in item.recommendations:
                recommendations.append(RecommendationDetail(
                    id=str(rec.recommendation_id),
                    original_product=OriginalProduct(id=str(item.item_id), name=item.name, co2=item.co2_factor),
                    recommended_product=RecommendedProduct(
                        name=rec.name,
                        brand=rec.brand,
                        category=rec.category,
                        store=rec.store,
                        co2=rec.co2_recommended,
                    ),
                    improvement=Improvement(
                        percentage=rec.improvement_percentage,
                        co2_saved=round(rec.co2_original - rec.co2_recommended, 4),
                    ),
                    type=rec.type,
                    similarity_score=rec.similarity_score,
                ))

        total = len(products)
        co2_total = receipt.co2_total
        savable = sum(r.improvement.co2_saved for r in recommendations)
        average_improvement = (
            sum(r.improvement.percentage for r in recommendations) / len(recommendations)
            if recommendations else 0.0
        )

        return ReceiptDetailResponse(
            id=str(receipt.id),
            store_name=receipt.store_name,
            receipt_date=receipt.receipt_date,
            total_price=receipt.total_price,
            receipt_type=receipt.receipt_type,
            products=products,
            analysis=DetailAnalysis(
                total_products=total,
                co2_total=round(co2_total, 2),
                co2_average=round(co2_total / total, 2) if total else 0.0,
            ),
            recommendations=recommendations,
            summary=RecommendationSummary(
                total_recommendations=len(recommendations),
                co2_total_savable=round(savable, 2),
                average_improvement_percentage=round(average_improvement, 2),
            ),
        )
