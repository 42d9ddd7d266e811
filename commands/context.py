# commands/context.py
"""单次分发的上下文"""

from dataclasses import dataclass, field

from channel.base import Attachment, MessagingEvent


@dataclass
class DispatchContext:
    """每个入站事件新建一份，分发结束后丢弃"""

    sender_id: str
    raw_text: str
    event: MessagingEvent
    attachments: list[Attachment] = field(default_factory=list)
    used_prefix: str | None = None

    @property
    def is_command(self) -> bool:
        return self.used_prefix is not None
