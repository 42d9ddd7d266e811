"""
AI Providers Module

ai 命令使用的对话补全后端。
"""

import logging

from .ai_chatgpt import ChatGPT
from .ai_chipp import Chipp, parse_response
from .base import ChatProvider, CompletionResult, ToolInvocation

__all__ = [
    "ChatGPT",
    "Chipp",
    "ChatProvider",
    "CompletionResult",
    "ToolInvocation",
    "create_provider",
    "parse_response",
]

logger = logging.getLogger(__name__)


def create_provider(chat_conf: dict) -> ChatProvider | None:
    """按配置中的 provider 创建后端，配置不完整时返回 None"""
    name = (chat_conf.get("provider") or "chipp").lower()
    if name == "chatgpt":
        conf = chat_conf.get("chatgpt", {})
        if ChatGPT.value_check(conf):
            return ChatGPT(conf)
    elif name == "chipp":
        conf = chat_conf.get("chipp", {})
        if Chipp.value_check(conf):
            return Chipp(conf)
    else:
        logger.error(f"未知的 chat provider: {name}")
        return None

    logger.warning(f"{name} 配置不完整，ai 命令不可用")
    return None
