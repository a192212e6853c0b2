# backend/core/llm.py
# 功能: 统一的 LangChain 聊天模型工厂，支持 OpenAI 和 Anthropic
# 主要导出: get_chat_model()
# 设计: 通过 LLM_PROVIDER 环境变量切换全局默认 provider；
#        传入具体 model 名时，自动根据前缀判断 provider（claude-* → Anthropic，其余 → OpenAI）

"""
统一 LLM 实例管理

用法:
    from core.llm import get_chat_model

    model = get_chat_model()
    response = await model.ainvoke([HumanMessage(content="...")])
    print(normalize_content(response.content))
"""

from langchain_core.language_models.chat_models import BaseChatModel

from core.config import settings
from core.llm_compat import infer_provider


def get_chat_model(
    model: str = None,
    temperature: float = 0.7,
    **kwargs,
) -> BaseChatModel:
    """
    获取 LLM 实例。

    provider 判断逻辑：
      1. 传入了 model 参数 → 根据模型名前缀自动判断
      2. 未传入 model → 沿用全局 LLM_PROVIDER（.env 配置）

    Args:
        model: 模型名称
        temperature: 温度
        **kwargs: 其他参数

    Returns:
        BaseChatModel 实例（ChatOpenAI 或 ChatAnthropic）
    """
    if model:
        provider = infer_provider(model)
    else:
        provider = (settings.llm_provider or "openai").lower().strip()

    if provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=model or settings.anthropic_model or "claude-sonnet-4-6",
            api_key=settings.anthropic_api_key,
            temperature=temperature,
            timeout=120.0,
            max_retries=2,
            max_tokens=4096,
            **kwargs,
        )

    # 默认: OpenAI（也支持 OpenRouter 等 OpenAI 兼容 API）
    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=model or settings.openai_model or "gpt-4o-mini",
        api_key=settings.openai_api_key,
        base_url=settings.openai_api_base or None,
        organization=settings.openai_org_id or None,
        temperature=temperature,
        timeout=120.0,
        max_retries=2,
        max_tokens=4096,
        **kwargs,
    )
