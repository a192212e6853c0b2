# backend/core/ai_client.py
# 功能: AI 能力端口，文本嵌入（Embedder）与文本生成（TextGenerator）
# 主要类:
#   Embedder / TextGenerator: 接口
#   OpenAIEmbedder: AsyncOpenAI embeddings
#   ChatModelGenerator: LangChain 聊天模型（OpenAI / Anthropic）
#   HashingEmbedder / EchoGenerator: 确定性本地实现（离线开发、测试）
# 主要函数: build_assist_prompt(), get_embedder(), get_text_generator()
# 设计: 远端调用失败统一抛 InfrastructureFailure(embedding | generation)，原始错误只写日志

"""
AI客户端
封装两类远端能力:
1. embed(text) → 固定长度的浮点向量
2. generate(prompt, context) → 以历史备忘录为上下文的一次文本生成
"""

import hashlib
import logging
import re
import time
from collections import deque
from functools import lru_cache
from typing import List, Optional, Protocol, runtime_checkable

from langchain_core.messages import HumanMessage

from core.config import settings
from core.errors import InfrastructureFailure, EMBEDDING, GENERATION
from core.llm_compat import normalize_content, get_model_name

logger = logging.getLogger("ai_client")


@runtime_checkable
class Embedder(Protocol):
    """文本嵌入接口"""

    dimension: int

    async def embed(self, text: str) -> List[float]: ...


@runtime_checkable
class TextGenerator(Protocol):
    """文本生成接口"""

    async def generate(self, prompt: str, context: List[str]) -> str: ...


# ============== Prompt ==============

ASSIST_PROMPT_HEADER = "以下是用户过去写下的备忘录：\n\n"
ASSIST_PROMPT_EMPTY = "（没有找到相关的备忘录）\n\n"
ASSIST_PROMPT_FOOTER = "请参考以上备忘录，帮助用户就下面的主题进行写作：\n{prompt}"


def build_assist_prompt(prompt: str, context: List[str]) -> str:
    """按检索排名顺序拼接备忘录，最后附上用户的写作请求"""
    parts = [ASSIST_PROMPT_HEADER]
    if not context:
        parts.append(ASSIST_PROMPT_EMPTY)
    for i, memo in enumerate(context, start=1):
        parts.append(f"备忘录 {i}:\n{memo}\n\n")
    parts.append(ASSIST_PROMPT_FOOTER.format(prompt=prompt))
    return "".join(parts)


# ============== OpenAI Embedding ==============

class OpenAIEmbedder:
    """
    OpenAI embeddings

    text-embedding-3-* 支持 dimensions 参数，向量长度与向量索引集合保持一致。
    """

    def __init__(self, model: str, dimension: int):
        self.model = model
        self.dimension = dimension
        self._async_client = None

    @property
    def async_client(self):
        """获取异步客户端"""
        if self._async_client is None:
            from openai import AsyncOpenAI

            self._async_client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                organization=settings.openai_org_id or None,
                base_url=settings.openai_api_base or None,
                timeout=60.0,
            )
        return self._async_client

    async def embed(self, text: str) -> List[float]:
        from openai import OpenAIError

        start_time = time.time()
        try:
            response = await self.async_client.embeddings.create(
                model=self.model,
                input=text,
                dimensions=self.dimension,
            )
        except OpenAIError as e:
            logger.warning("[embed] 调用失败: %s", e)
            raise InfrastructureFailure(EMBEDDING, str(e)) from e

        if not response.data:
            raise InfrastructureFailure(EMBEDDING, "empty embedding response")

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug("[embed] model=%s chars=%d %dms", self.model, len(text), duration_ms)
        return list(response.data[0].embedding)


# ============== LangChain 生成 ==============

class ChatModelGenerator:
    """通过 core.llm.get_chat_model() 调用聊天模型"""

    def __init__(self, model: Optional[str] = None, temperature: float = 0.7):
        self.model_name = model
        self.temperature = temperature
        self._chat_model = None

    @property
    def chat_model(self):
        if self._chat_model is None:
            from core.llm import get_chat_model

            self._chat_model = get_chat_model(model=self.model_name, temperature=self.temperature)
        return self._chat_model

    async def generate(self, prompt: str, context: List[str]) -> str:
        message = HumanMessage(content=build_assist_prompt(prompt, context))
        start_time = time.time()
        try:
            response = await self.chat_model.ainvoke([message])
        except Exception as e:
            logger.warning("[generate] 调用失败: %s", e)
            raise InfrastructureFailure(GENERATION, str(e)) from e

        text = normalize_content(response.content).strip()
        if not text:
            raise InfrastructureFailure(GENERATION, "No response generated")

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "[generate] model=%s context=%d %dms",
            self.model_name or get_model_name(), len(context), duration_ms,
        )
        return text


# ============== 确定性本地实现 ==============

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


class HashingEmbedder:
    """
    词袋哈希嵌入

    每个小写词经 md5 映射到固定维度的一个桶，计数后 L2 归一化。
    词面重合越多，余弦相似度越高；跨进程结果稳定。
    """

    def __init__(self, dimension: int = 768):
        self.dimension = dimension

    async def embed(self, text: str) -> List[float]:
        vector = [0.0] * self.dimension
        for token in _TOKEN_RE.findall(text.lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimension
            vector[bucket] += 1.0
        norm = sum(x * x for x in vector) ** 0.5
        if norm:
            vector = [x / norm for x in vector]
        return vector


class EchoGenerator:
    """回显生成器：返回可预期的文本，并记录最近 max_calls 次调用的参数"""

    def __init__(self, max_calls: int = 100):
        self.calls: deque = deque(maxlen=max_calls)

    async def generate(self, prompt: str, context: List[str]) -> str:
        self.calls.append((prompt, list(context)))
        return f"[{len(context)} memos] {prompt}"


# ============== 单例 ==============

@lru_cache()
def get_embedder() -> Embedder:
    """按配置返回嵌入实现"""
    provider = (settings.embedding_provider or "openai").lower().strip()
    if provider == "local":
        return HashingEmbedder(dimension=settings.embedding_dimension)
    return OpenAIEmbedder(model=settings.embedding_model, dimension=settings.embedding_dimension)


@lru_cache()
def get_text_generator() -> TextGenerator:
    """按配置返回生成实现"""
    provider = (settings.llm_provider or "openai").lower().strip()
    if provider == "local":
        return EchoGenerator()
    return ChatModelGenerator()
