import re
import unicodedata
from typing import List

from app.ai.clients import EmbeddingGateway
from app.core.logging import get_logger

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^\w\s]")


def normalize_product_name(name: str) -> str:
    """Lowercase, strip accents and punctuation, collapse whitespace."""
    text = unicodedata.normalize("NFD", (name or "").lower().strip())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _NON_ALNUM.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


class EmbeddingsService:
    def __init__(self, gateway: EmbeddingGateway):
        self.gateway = gateway

    async def embed_product(self, product_name: str) -> List[float]:
        normalized = normalize_product_name(product_name)
        logger.debug("Embedding product %r as %r", product_name, normalized)
        return await self.gateway.embed(normalized)
