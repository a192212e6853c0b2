# backend/tests/test_ai_client.py
# 功能: AI 客户端测试，本地嵌入、Prompt 拼接、远端调用失败的包装

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage
from openai import OpenAIError

from core.ai_client import (
    ChatModelGenerator,
    EchoGenerator,
    HashingEmbedder,
    OpenAIEmbedder,
    build_assist_prompt,
)
from core.errors import InfrastructureFailure
from core.vector_index import cosine_similarity


class TestHashingEmbedder:

    @pytest.mark.asyncio
    async def test_fixed_dimension_and_deterministic(self):
        embedder = HashingEmbedder(dimension=32)
        a = await embedder.embed("Rust async programming")
        b = await HashingEmbedder(dimension=32).embed("Rust async programming")
        assert len(a) == 32
        assert a == b

    @pytest.mark.asyncio
    async def test_word_overlap_scores_higher(self):
        embedder = HashingEmbedder(dimension=4096)
        query = await embedder.embed("tell me about async")
        near = await embedder.embed("Rust async programming")
        far = await embedder.embed("Python scripting")
        assert cosine_similarity(query, near) > cosine_similarity(query, far)

    @pytest.mark.asyncio
    async def test_empty_text(self):
        vector = await HashingEmbedder(dimension=8).embed("")
        assert vector == [0.0] * 8


class TestBuildAssistPrompt:

    def test_memos_in_rank_order(self):
        prompt = build_assist_prompt("写一篇周报", ["first", "second"])
        assert prompt.index("备忘录 1:\nfirst") < prompt.index("备忘录 2:\nsecond")
        assert prompt.endswith("写一篇周报")

    def test_empty_context(self):
        prompt = build_assist_prompt("hello", [])
        assert "没有找到相关的备忘录" in prompt
        assert prompt.endswith("hello")


class TestChatModelGenerator:

    def _generator(self, **ainvoke_kwargs):
        generator = ChatModelGenerator(model="gpt-4o-mini")
        generator._chat_model = MagicMock()
        generator._chat_model.ainvoke = AsyncMock(**ainvoke_kwargs)
        return generator

    @pytest.mark.asyncio
    async def test_returns_normalized_text(self):
        generator = self._generator(return_value=AIMessage(content=[{"type": "text", "text": " draft "}]))
        assert await generator.generate("topic", ["memo"]) == "draft"

        messages = generator._chat_model.ainvoke.call_args.args[0]
        assert "memo" in messages[0].content
        assert "topic" in messages[0].content

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self):
        generator = self._generator(side_effect=RuntimeError("rate limited"))
        with pytest.raises(InfrastructureFailure) as exc:
            await generator.generate("topic", [])
        assert exc.value.source == "generation"
        assert exc.value.message == "External AI service error"

    @pytest.mark.asyncio
    async def test_empty_response_is_failure(self):
        generator = self._generator(return_value=AIMessage(content=""))
        with pytest.raises(InfrastructureFailure) as exc:
            await generator.generate("topic", [])
        assert exc.value.detail == "No response generated"


class TestOpenAIEmbedder:

    def _embedder(self, **create_kwargs):
        embedder = OpenAIEmbedder(model="text-embedding-3-small", dimension=3)
        embedder._async_client = MagicMock()
        embedder._async_client.embeddings.create = AsyncMock(**create_kwargs)
        return embedder

    @pytest.mark.asyncio
    async def test_requests_configured_dimension(self):
        response = SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2, 0.3])])
        embedder = self._embedder(return_value=response)

        assert await embedder.embed("hello") == [0.1, 0.2, 0.3]
        kwargs = embedder._async_client.embeddings.create.call_args.kwargs
        assert kwargs["dimensions"] == 3
        assert kwargs["model"] == "text-embedding-3-small"

    @pytest.mark.asyncio
    async def test_openai_error_wrapped(self):
        embedder = self._embedder(side_effect=OpenAIError("invalid api key"))
        with pytest.raises(InfrastructureFailure) as exc:
            await embedder.embed("hello")
        assert exc.value.source == "embedding"
        assert "invalid api key" not in exc.value.message

    @pytest.mark.asyncio
    async def test_empty_response_is_failure(self):
        embedder = self._embedder(return_value=SimpleNamespace(data=[]))
        with pytest.raises(InfrastructureFailure):
            await embedder.embed("hello")


@pytest.mark.asyncio
async def test_echo_generator_records_calls():
    generator = EchoGenerator()
    assert await generator.generate("p", ["a", "b"]) == "[2 memos] p"
    assert list(generator.calls) == [("p", ["a", "b"])]


@pytest.mark.asyncio
async def test_echo_generator_keeps_recent_calls_only():
    generator = EchoGenerator(max_calls=2)
    for prompt in ("a", "b", "c"):
        await generator.generate(prompt, [])
    assert [p for p, _ in generator.calls] == ["b", "c"]
