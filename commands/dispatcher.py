# commands/dispatcher.py
"""入站事件分发"""

import logging
from typing import Any, Iterable

from pydantic import ValidationError

import constants
from channel.base import AttachmentInfo, MessagingEvent, SendFunc, text_payload
from constants import CacheKind, MediaKind
from session.cache import TTLCache

from .base import Command
from .context import DispatchContext
from .registry import CommandRegistry

logger = logging.getLogger(__name__)


class Dispatcher:
    """解析事件、缓存附件并把文本分发给命令

    - 带前缀的文本：首个词为命令名，其余为参数
    - 无前缀或未命中：整段原文交给默认命令（ai）
    - 命令抛出的任何异常都在这里转换为一条固定的失败提示
    """

    def __init__(
        self,
        registry: CommandRegistry,
        send: SendFunc,
        access_token: str,
        image_cache: TTLCache,
        media_cache: TTLCache,
        prefixes: Iterable[str] = constants.COMMAND_PREFIXES,
        default_command: str | None = constants.DEFAULT_COMMAND,
    ):
        self.registry = registry
        self.send = send
        self.access_token = access_token
        self.image_cache = image_cache
        self.media_cache = media_cache
        self.prefixes = tuple(p for p in prefixes if p)
        self.default_command = default_command

    def build_context(self, event: MessagingEvent) -> DispatchContext | None:
        sender_id = event.sender_id
        if not sender_id:
            return None

        text = event.text
        used_prefix = next((p for p in self.prefixes if text.startswith(p)), None)
        return DispatchContext(
            sender_id=sender_id,
            raw_text=text,
            event=event,
            attachments=list(event.attachments),
            used_prefix=used_prefix,
        )

    def cache_attachments(self, ctx: DispatchContext) -> None:
        """按媒体类型写入缓存，同一事件内后出现的附件覆盖前者"""
        for attachment in ctx.attachments:
            kind = attachment.kind
            url = attachment.url
            if kind is None or not url:
                continue

            if kind is MediaKind.IMAGE:
                self.image_cache.set(ctx.sender_id, AttachmentInfo(url=url, kind=kind))
            self.media_cache.set(ctx.sender_id, AttachmentInfo(url=url, kind=kind))
            logger.debug(f"缓存 {ctx.sender_id} 的 {kind.value}: {url}")

    @staticmethod
    def parse(ctx: DispatchContext) -> tuple[str | None, list[str]]:
        """返回 (命令名, 参数)，无前缀时命令名为 None"""
        if not ctx.is_command:
            return None, [ctx.raw_text]

        tokens = ctx.raw_text[len(ctx.used_prefix):].split()
        if not tokens:
            return None, [ctx.raw_text]
        return tokens[0].lower(), tokens[1:]

    def resolve(self, ctx: DispatchContext) -> tuple[Command | None, list[str]]:
        command_name, args = self.parse(ctx)
        command = self.registry.resolve(command_name)
        if command is not None:
            return command, args

        # 未命中：以原文兜底到默认命令
        fallback = self.registry.resolve(self.default_command)
        if fallback is not None:
            if command_name:
                logger.debug(f"未知命令 {command_name}，交给 {self.default_command}")
            return fallback, [ctx.raw_text]
        return None, args

    def select_cache(self, command: Command) -> TTLCache:
        if command.cache_kind is CacheKind.MEDIA:
            return self.media_cache
        return self.image_cache

    async def _notify(self, sender_id: str, text: str) -> None:
        try:
            await self.send(sender_id, text_payload(text), self.access_token)
        except Exception as e:
            logger.error(f"向 {sender_id} 发送提示失败: {e}")

    async def dispatch(self, event: MessagingEvent | dict[str, Any]) -> None:
        """处理单个入站事件"""
        if not isinstance(event, MessagingEvent):
            try:
                event = MessagingEvent.model_validate(event)
            except ValidationError as e:
                logger.warning(f"丢弃无法解析的事件: {e}")
                return

        ctx = self.build_context(event)
        if ctx is None:
            return

        self.cache_attachments(ctx)

        if not ctx.raw_text:
            return

        command, args = self.resolve(ctx)
        if command is None:
            await self._notify(ctx.sender_id, constants.UNKNOWN_COMMAND_NOTICE)
            return

        try:
            await command.execute(
                ctx.sender_id,
                args,
                self.access_token,
                ctx.event,
                self.send,
                self.select_cache(command),
            )
        except Exception as e:
            logger.error(
                f"命令 {command.names[0]} 执行失败: {e} | sender={ctx.sender_id} "
                f"text={ctx.raw_text!r} response={getattr(e, 'response_body', None)!r}",
                exc_info=True,
            )
            await self._notify(ctx.sender_id, constants.COMMAND_FAILED_NOTICE)
