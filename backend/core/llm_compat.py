# backend/core/llm_compat.py
# 功能: LLM Provider 兼容性工具函数
# 主要导出: normalize_content, get_model_name, infer_provider
# 设计: 屏蔽 OpenAI / Anthropic 返回值差异，让下游代码无需感知 Provider

"""
LLM Provider 兼容层。

所有直接读取 LLM 返回值的下游代码应通过本模块提供的工具函数，
而非直接访问 response.content。

用法:
    from core.llm_compat import normalize_content, get_model_name

    text = normalize_content(response.content)
    model = get_model_name()
"""

from __future__ import annotations

from typing import Any

from core.config import settings


def normalize_content(content: Any) -> str:
    """
    将 LLM 返回的 content 归一化为 str。

    ChatOpenAI:     content 始终是 str
    ChatAnthropic:  content 可能是 str 或 list[dict]（内容块列表）

    对 list 输入提取所有 text 块并拼接。
    对 None / 其他类型做安全回退。
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, dict):
                parts.append(block.get("text", ""))
            elif isinstance(block, str):
                parts.append(block)
            else:
                parts.append(str(block))
        return "".join(parts)
    return str(content) if content else ""


def infer_provider(model: str) -> str:
    """根据模型名前缀推断 provider。claude-* → anthropic，其余 → openai"""
    if model and model.startswith("claude-"):
        return "anthropic"
    return "openai"


def get_model_name() -> str:
    """当前配置的生成模型名（用于日志）"""
    provider = (settings.llm_provider or "openai").lower().strip()
    if provider == "anthropic":
        return settings.anthropic_model or "claude-sonnet-4-6"
    return settings.openai_model or "gpt-4o-mini"
