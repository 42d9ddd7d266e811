# commands/base.py
"""Command 抽象基类定义"""

from abc import ABC, abstractmethod
from typing import Any, TYPE_CHECKING

from constants import CacheKind

if TYPE_CHECKING:
    from channel.base import MessagingEvent, SendFunc
    from session.cache import TTLCache


class CommandError(Exception):
    """命令执行中的非预期失败，由 dispatcher 统一转换为失败提示"""

    def __init__(self, message: str, response_body: Any = None):
        super().__init__(message)
        self.response_body = response_body


class EmptyResponseError(CommandError):
    """对话接口没有返回可解析的内容"""


class Command(ABC):
    """命令抽象基类

    name 可以是单个名字或别名列表，注册时统一转为小写。
    """

    description: str = ""
    usage: str = ""
    author: str = ""
    cache_kind: CacheKind = CacheKind.IMAGE

    @property
    @abstractmethod
    def name(self) -> str | list[str]:
        """命令名或别名列表"""
        ...

    @property
    def names(self) -> list[str]:
        raw = self.name
        names = raw if isinstance(raw, (list, tuple)) else [raw]
        return [n.lower() for n in names if isinstance(n, str) and n.strip()]

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "usage": self.usage,
            "author": self.author,
            "cache_kind": self.cache_kind.value,
        }

    @abstractmethod
    async def execute(
        self,
        sender_id: str,
        args: list[str],
        access_token: str,
        event: "MessagingEvent",
        send: "SendFunc",
        cache: "TTLCache | None",
    ) -> None:
        """执行命令

        Args:
            sender_id: 发送者 ID
            args: 空白切分后的参数
            access_token: 平台访问令牌
            event: 原始入站事件
            send: 发送函数 send(recipient_id, payload, access_token)
            cache: 按 cache_kind 选出的附件缓存
        """
        ...
