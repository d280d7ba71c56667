"""Tests for the provider gateways and JSON reply parsing."""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from qdrant_client.http import models as qmodels

from app.ai.clients import ChatCompletionGateway, EmbeddingGateway, GatewayError, VectorSearchGateway
from app.ai.embeddings import EmbeddingsService, normalize_product_name
from app.ai.responses import MalformedResponseError, parse_json_object, parse_json_response


class TestNormalizeProductName:
    @pytest.mark.parametrize("raw, expected", [
        ("  LECHE   GLORIA  1L ", "leche gloria 1l"),
        ("Café, Altomayo (250g)!", "cafe altomayo 250g"),
        ("AZÚCAR RUBIA", "azucar rubia"),
        ("", ""),
    ])
    def test_normalization(self, raw, expected):
        assert normalize_product_name(raw) == expected


@pytest.mark.asyncio
class TestEmbeddingGateway:
    async def test_embed(self):
        client = MagicMock()
        client.embeddings.create = AsyncMock(return_value=SimpleNamespace(
            data=[SimpleNamespace(embedding=[0.1, 0.2])]
        ))
        gateway = EmbeddingGateway(client=client, model="m", dimensions=2)

        assert await gateway.embed("leche") == [0.1, 0.2]
        client.embeddings.create.assert_awaited_once_with(model="m", input="leche", dimensions=2)

    async def test_provider_error(self):
        client = MagicMock()
        client.embeddings.create = AsyncMock(side_effect=RuntimeError("rate limited"))
        with pytest.raises(GatewayError):
            await EmbeddingGateway(client=client, model="m", dimensions=2).embed("leche")

    async def test_service_embeds_normalized_name(self):
        gateway = MagicMock()
        gateway.embed = AsyncMock(return_value=[1.0])
        await EmbeddingsService(gateway).embed_product("  Leche GLORIA ")
        gateway.embed.assert_awaited_once_with("leche gloria")


@pytest.mark.asyncio
class TestChatGateway:
    async def test_complete(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content='{"ok": true}'))]
        ))
        gateway = ChatCompletionGateway(client=client, model="deepseek-chat")

        assert await gateway.complete("hi", temperature=0.2) == '{"ok": true}'
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.2
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]

    async def test_provider_error(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=TimeoutError())
        with pytest.raises(GatewayError):
            await ChatCompletionGateway(client=client, model="m").complete("hi")


@pytest.mark.asyncio
class TestVectorSearchGateway:
    async def test_search_builds_filter(self):
        client = MagicMock()
        client.query_points = AsyncMock(return_value=SimpleNamespace(points=[
            SimpleNamespace(score=0.9, payload={"nombre": "Leche"}),
        ]))
        gateway = VectorSearchGateway(client=client)

        hits = await gateway.search("tottus", [0.1], limit=5, score_threshold=0.7, filter={"categoria_principal": "Lácteos"})

        assert hits[0].score == 0.9
        assert hits[0].payload == {"nombre": "Leche"}
        query_filter = client.query_points.call_args.kwargs["query_filter"]
        assert isinstance(query_filter, qmodels.Filter)
        assert query_filter.must[0].key == "categoria_principal"
        assert query_filter.must[0].match.value == "Lácteos"

    async def test_search_without_filter(self):
        client = MagicMock()
        client.query_points = AsyncMock(return_value=SimpleNamespace(points=[]))
        await VectorSearchGateway(client=client).search("tottus", [0.1], limit=1, score_threshold=0.75)
        assert client.query_points.call_args.kwargs["query_filter"] is None

    async def test_search_error(self):
        client = MagicMock()
        client.query_points = AsyncMock(side_effect=RuntimeError("boom"))
        with pytest.raises(GatewayError):
            await VectorSearchGateway(client=client).search("tottus", [0.1], limit=1, score_threshold=0.75)

    async def test_collection_exists_error_is_false(self):
        client = MagicMock()
        client.collection_exists = AsyncMock(side_effect=RuntimeError("boom"))
        assert await VectorSearchGateway(client=client).collection_exists("tottus") is False


class TestJsonReplies:
    def test_plain(self):
        assert parse_json_response('{"a": 1}') == {"a": 1}

    def test_fenced(self):
        assert parse_json_response('Sure!\n```json\n["x", "y"]\n```') == ["x", "y"]

    @pytest.mark.parametrize("text", ["", "   ", "hello", None])
    def test_malformed(self, text):
        with pytest.raises(MalformedResponseError):
            parse_json_response(text)

    def test_object_required(self):
        with pytest.raises(MalformedResponseError):
            parse_json_object("[1]")
