"""LLM fallback that assigns a product to one of the retailer's categories."""

from app.ai.clients import ChatCompletionGateway
from app.ai.responses import parse_json_object
from app.classification.categories import CategoryNormalizer
from app.classification.models import UNCATEGORIZED, InferredCategory
from app.core.logging import get_logger

logger = get_logger(__name__)

INFERENCE_TEMPERATURE = 0.2
INVALID_CATEGORY_CONFIDENCE = 0.3

PROMPT_CATEGORY = """You are an expert in classifying products sold in Peruvian supermarkets.

Product: "{product}"
Supermarket: "{retailer}"

Categories available in this supermarket:
{categories}

Instructions:
1. Analyse the product name.
2. Pick the MOST SPECIFIC category from the list.
3. If unsure, pick the most generic category in the list.
4. NEVER invent a category outside the list. Copy the name exactly.

Answer with JSON only:
{{
  "category": "exact category name from the list",
  "confidence": number between 0 and 1,
  "reasoning": "short explanation (max 20 words)"
}}

Examples:
- "MANZANA ROJA" -> {{"category": "Frutas y Verduras", "confidence": 0.95, "reasoning": "Fresh fruit"}}
- "POP CORN" -> {{"category": "Dulces y Snacks", "confidence": 0.90, "reasoning": "Packaged snack"}}
- "ACEITE VEGETAL" -> {{"category": "Despensa", "confidence": 0.85, "reasoning": "Pantry staple"}}"""


def _clamp(value) -> float:
    try:
        return max(0.0, min(1.0, float(value)))
    except (TypeError, ValueError):
        return 0.0


class CategoryInferenceService:
    def __init__(self, chat: ChatCompletionGateway, normalizer: CategoryNormalizer):
        self.chat = chat
        self.normalizer = normalizer

    def build_prompt(self, product_name: str, retailer: str, categories: list) -> str:
        listing = "\n".join(f"{i}. {name}" for i, name in enumerate(categories, start=1))
        return PROMPT_CATEGORY.format(product=product_name, retailer=retailer, categories=listing)

    async def infer_category(self, product_name: str, retailer: str) -> InferredCategory:
        """Ask the LLM for a category; only members of the closed list are accepted."""
        categories = self.normalizer.available_categories(retailer)
        if not categories:
            logger.warning("No categories configured for %s", retailer)
            return InferredCategory(
                category=UNCATEGORIZED,
                confidence=0.0,
                reasoning="Retailer has no configured categories",
            )

        try:
            reply = await self.chat.complete(
                self.build_prompt(product_name, retailer, categories),
                temperature=INFERENCE_TEMPERATURE,
            )
            data = parse_json_object(reply)
            category = data.get("category")

            if category not in categories:
                logger.warning("LLM returned out-of-list category %r for %r", category, product_name)
                return InferredCategory(
                    category=UNCATEGORIZED,
                    confidence=INVALID_CATEGORY_CONFIDENCE,
                    reasoning="Inferred category is not in the allowed list",
                )

            result = InferredCategory(
                category=category,
                confidence=_clamp(data.get("confidence")),
                reasoning=str(data.get("reasoning") or ""),
            )
            logger.info("Inferred category %r for %r (confidence %.2f)", result.category, product_name, result.confidence)
            return result
        except Exception as e:
            logger.error("Category inference failed for %r at %s: %s", product_name, retailer, e)
            return InferredCategory(
                category=UNCATEGORIZED,
                confidence=0.0,
                reasoning="Could not process the model response",
            )
