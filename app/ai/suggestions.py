from typing import Iterable, List, Optional

from app.ai.clients import ChatCompletionGateway
from app.ai.responses import parse_json_response
from app.core.logging import get_logger

logger = get_logger(__name__)

SUGGESTION_TEMPERATURE = 0.7

FALLBACK_SUGGESTIONS = [
    "Prioritize local and seasonal products",
    "Reduce red meat consumption",
    "Choose products with less packaging",
]

PROMPT_SUGGESTIONS = """You are an expert in sustainability and carbon footprints.

Purchased products:
{products}

Purchase summary:
- Total CO2: {co2_total:.2f} kg CO2e
- Receipt type: {receipt_type}

Write 3 SPECIFIC, actionable eco suggestions to reduce the carbon footprint of future purchases.
Focus on the products with the highest impact (red and yellow level).

Answer with a JSON array: ["suggestion1", "suggestion2", "suggestion3"]"""


class SuggestionService:
    def __init__(self, chat: ChatCompletionGateway):
        self.chat = chat

    async def generate(self, products: Iterable[dict], co2_total: float, receipt_type: str) -> List[str]:
        """
        Eco suggestions for a processed receipt.

        `products` holds dicts with name, co2 and an optional level. Any
        failure returns FALLBACK_SUGGESTIONS.
        """
        lines = "\n".join(
            f"- {p['name']} ({p['co2']:.2f} kg CO2, level: {p.get('level') or 'unknown'})"
            for p in products
        )
        prompt = PROMPT_SUGGESTIONS.format(products=lines, co2_total=co2_total, receipt_type=receipt_type)

        try:
            reply = await self.chat.complete(prompt, temperature=SUGGESTION_TEMPERATURE)
            suggestions = parse_json_response(reply)
        except Exception as e:
            logger.error("Could not generate suggestions: %s", e)
            return list(FALLBACK_SUGGESTIONS)

        cleaned = self._clean(suggestions)
        if cleaned is None:
            logger.warning("Suggestion response was not a list of strings, using fallback")
            return list(FALLBACK_SUGGESTIONS)
        return cleaned

    @staticmethod
    def _clean(suggestions) -> Optional[List[str]]:
        if not isinstance(suggestions, list):
            return None
        cleaned = [s.strip() for s in suggestions if isinstance(s, str) and s.strip()]
        return cleaned or None
