# ai_providers/base.py
"""Chat Provider 抽象基类定义"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ToolInvocation(BaseModel):
    """服务端附带的工具调用记录"""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    tool_name: str = Field(default="", alias="toolName")
    state: str = ""
    result: Any = None

    @property
    def has_result(self) -> bool:
        return self.state == "result" and bool(self.result)


@dataclass
class CompletionResult:
    """Chat 响应数据类"""
    text: str
    tool_calls: list[ToolInvocation] = field(default_factory=list)
    raw: Any = None  # 原始响应体，排查问题用


class ChatProvider(ABC):
    """Chat Provider 抽象基类"""

    @abstractmethod
    async def complete(self, session_id: str, messages: list[dict]) -> CompletionResult | None:
        """调用对话补全接口

        Args:
            session_id: 本次请求的会话 ID
            messages: [{"role", "content"}] 格式的上下文

        Returns:
            CompletionResult，网络或服务端错误时返回 None
        """
        ...

    async def close(self) -> None:
        pass
