"""
Gateways to the external AI and vector search providers.

One instance of each gateway is built at startup and shared by every
request; the underlying SDK clients are safe for concurrent use. Provider
failures (including timeouts) surface as GatewayError.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models as qmodels

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class GatewayError(Exception):
    """An external provider call failed."""


@dataclass(frozen=True)
class VectorHit:
    score: float
    payload: Dict[str, Any] = field(default_factory=dict)


class EmbeddingGateway:
    """Text embeddings through the OpenAI embeddings endpoint."""

    def __init__(self, client: Optional[AsyncOpenAI] = None,
                 model: Optional[str] = None, dimensions: Optional[int] = None):
        self.client = client or AsyncOpenAI(api_key=settings.OPENAI_API_KEY or None)
        self.model = model or settings.EMBEDDING_MODEL
        self.dimensions = dimensions or settings.EMBEDDING_DIMENSIONS

    async def embed(self, text: str) -> List[float]:
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text,
                dimensions=self.dimensions,
            )
            return list(response.data[0].embedding)
        except Exception as e:
            logger.error("Embedding request failed for %r: %s", text, e)
            raise GatewayError("Could not generate embedding") from e


class ChatCompletionGateway:
    """Single-turn chat completions against an OpenAI-compatible API (DeepSeek)."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.client = client or AsyncOpenAI(
            api_key=settings.DEEPSEEK_API_KEY or None,
            base_url=settings.DEEPSEEK_BASE_URL,
        )
        self.model = model or settings.CHAT_MODEL

    async def complete(self, prompt: str, temperature: float = 0.3) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
            )
            return response.choices[0].message.content or ""
        except Exception as e:
            logger.error("Chat completion failed: %s", e)
            raise GatewayError("Could not reach the chat completion provider") from e


class VectorSearchGateway:
    """Nearest-neighbour search over the per-retailer Qdrant collections."""

    def __init__(self, client: Optional[AsyncQdrantClient] = None):
        self.client = client or AsyncQdrantClient(
            url=settings.QDRANT_URL,
            api_key=settings.QDRANT_API_KEY or None,
        )

    async def collection_exists(self, collection: str) -> bool:
        try:
            return await self.client.collection_exists(collection_name=collection)
        except Exception as e:
            logger.error("Could not check collection %s: %s", collection, e)
            return False

    async def search(
        self,
        collection: str,
        vector: List[float],
        limit: int,
        score_threshold: float,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorHit]:
        """Return hits sorted by descending score.

        `filter` is a flat mapping of payload key to required value.
        """
        query_filter = None
        if filter:
            query_filter = qmodels.Filter(must=[
                qmodels.FieldCondition(key=key, match=qmodels.MatchValue(value=value))
                for key, value in filter.items()
            ])

        try:
            response = await self.client.query_points(
                collection_name=collection,
                query=vector,
                limit=limit,
                score_threshold=score_threshold,
                query_filter=query_filter,
                with_payload=True,
            )
        except Exception as e:
            logger.error("Vector search failed on %s: %s", collection, e)
            raise GatewayError(f"Vector search failed on collection {collection}") from e

        return [VectorHit(score=point.score, payload=dict(point.payload or {})) for point in response.points]

    async def close(self) -> None:
        await self.client.close()
