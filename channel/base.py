# channel/base.py
"""Channel 抽象基类与入站事件模型"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from constants import MediaKind

logger = logging.getLogger(__name__)


class Sender(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # 平台 ID 偶尔以数字形式出现
        if isinstance(value, int):
            return str(value)
        return value


class AttachmentPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    url: str | None = None


class Attachment(BaseModel):
    """入站附件，type 不在已知媒体类型内时 kind 为 None"""
    model_config = ConfigDict(extra="allow")

    type: str = ""
    payload: AttachmentPayload | None = None

    @property
    def kind(self) -> MediaKind | None:
        return MediaKind.from_type(self.type)

    @property
    def url(self) -> str | None:
        return self.payload.url if self.payload else None


class ReplyTo(BaseModel):
    model_config = ConfigDict(extra="allow")

    mid: str | None = None


class MessagePayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str | None = None
    mid: str | None = None
    reply_to: ReplyTo | None = None
    attachments: list[Attachment] = Field(default_factory=list)


class MessagingEvent(BaseModel):
    """Webhook 推送的单条 messaging 事件"""
    model_config = ConfigDict(extra="allow")

    sender: Sender | None = None
    message: MessagePayload | None = None

    @property
    def sender_id(self) -> str | None:
        return self.sender.id if self.sender else None

    @property
    def text(self) -> str:
        if self.message and self.message.text:
            return self.message.text.strip()
        return ""

    @property
    def attachments(self) -> list[Attachment]:
        return self.message.attachments if self.message else []

    @property
    def target_mid(self) -> str | None:
        """被回复消息的 mid，没有回复时取当前消息 mid"""
        if not self.message:
            return None
        if self.message.reply_to and self.message.reply_to.mid:
            return self.message.reply_to.mid
        return self.message.mid


@dataclass
class AttachmentInfo:
    """附件查询结果"""
    url: str
    kind: MediaKind | None = None


def text_payload(text: str) -> dict:
    return {"text": text}


def attachment_payload(kind: MediaKind | str, url: str, is_reusable: bool = True) -> dict:
    kind_value = kind.value if isinstance(kind, MediaKind) else kind
    return {
        "attachment": {
            "type": kind_value,
            "payload": {"url": url, "is_reusable": is_reusable},
        }
    }


def parse_webhook(body: Any) -> list[MessagingEvent]:
    """将 webhook 请求体拆成 messaging 事件，非法事件记录后跳过"""
    events: list[MessagingEvent] = []
    if not isinstance(body, dict):
        return events

    for entry in body.get("entry") or []:
        if not isinstance(entry, dict):
            continue
        for raw in entry.get("messaging") or []:
            try:
                events.append(MessagingEvent.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"忽略无法解析的事件: {e}")
    return events


SendFunc = Callable[[str, dict, str], Awaitable[None]]
EventHandler = Callable[[MessagingEvent], Awaitable[None]]


class Channel(ABC):
    """Channel 抽象基类 - 定义消息收发接口"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Channel 名称"""
        ...

    @property
    @abstractmethod
    def access_token(self) -> str:
        """调用平台接口使用的令牌"""
        ...

    @abstractmethod
    async def send(self, recipient_id: str, payload: dict, access_token: str | None = None) -> None:
        """发送一条消息

        Args:
            recipient_id: 接收者 ID
            payload: {"text": ...} 或 {"attachment": {...}}
            access_token: 访问令牌，None 时使用 channel 自身配置

        多次调用之间不保证原子性。
        """
        ...

    @abstractmethod
    async def fetch_attachment(self, mid: str, access_token: str | None = None) -> AttachmentInfo | None:
        """查询消息附件，任何失败都返回 None"""
        ...

    @abstractmethod
    async def start(self, on_event: EventHandler) -> None:
        """启动事件接收循环"""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """停止事件接收"""
        ...
