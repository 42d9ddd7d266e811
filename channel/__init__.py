# channel/__init__.py
from .base import (
    Attachment,
    AttachmentInfo,
    Channel,
    MessagingEvent,
    attachment_payload,
    parse_webhook,
    text_payload,
)
from .local import LocalChannel
from .messenger import MessengerChannel

__all__ = [
    "Attachment",
    "AttachmentInfo",
    "Channel",
    "MessagingEvent",
    "attachment_payload",
    "parse_webhook",
    "text_payload",
    "LocalChannel",
    "MessengerChannel",
]
