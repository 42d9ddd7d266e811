# commands/ai.py
"""ai 命令 - 转发给对话补全服务"""

import logging
import re
import uuid
from typing import Awaitable, Callable

import constants
from ai_providers.base import ChatProvider, ToolInvocation
from channel.base import AttachmentInfo, MessagingEvent, SendFunc, attachment_payload, text_payload
from constants import MediaKind
from function.func_format import format_bold, send_chunked
from session.cache import TTLCache
from session.history import ConversationHistory

from .base import Command, EmptyResponseError

logger = logging.getLogger(__name__)

IMAGE_URL_PATTERN = re.compile(r"https://storage\.googleapis\.com/chipp-images/[^\s\")]+")

AttachmentFetcher = Callable[[str, str], Awaitable[AttachmentInfo | None]]


def summarize_browse_result(result) -> str:
    """从 browseWeb 结果中取答案或摘要"""
    if isinstance(result, dict):
        answer = (result.get("answerBox") or {}).get("answer")
        if answer:
            return answer
        organic = result.get("organic")
        if isinstance(organic, list):
            return "\n\n".join(o.get("snippet") for o in organic if isinstance(o, dict) and o.get("snippet"))
    return "No relevant info found."


class AiCommand(Command):
    name = "ai"
    description = "Quickly find and share the latest chapters of any manga, manhwa, or manhua with direct, safe reading links."
    usage = " [your message]"
    author = "coffee"

    def __init__(
        self,
        provider: ChatProvider,
        history: ConversationHistory,
        fetch_attachment: AttachmentFetcher | None = None,
        title: str = "MangaSearch",
        media_max_age: float = constants.MEDIA_MAX_AGE,
        chunk_size: int = constants.CHUNK_SIZE,
        chunk_delay: float = constants.CHUNK_DELAY,
    ):
        self.provider = provider
        self.history = history
        self.fetch_attachment = fetch_attachment
        self.title = title
        self.media_max_age = media_max_age
        self.chunk_size = chunk_size
        self.chunk_delay = chunk_delay

    async def get_image_url(
        self,
        sender_id: str,
        event: MessagingEvent,
        access_token: str,
        cache: TTLCache | None,
    ) -> str | None:
        """优先取缓存图片，否则查询被回复消息的附件"""
        cached = cache.get(sender_id, max_age=self.media_max_age) if cache is not None else None
        if cached:
            logger.info(f"使用 {sender_id} 的缓存图片")
            return cached.url

        mid = event.target_mid
        if not mid or not self.fetch_attachment:
            return None
        info = await self.fetch_attachment(mid, access_token)
        # 视频和音频不作为图片上下文
        if info and info.kind in (MediaKind.IMAGE, MediaKind.FILE):
            return info.url
        return None

    async def handle_tool_calls(
        self,
        tool_calls: list[ToolInvocation],
        sender_id: str,
        access_token: str,
        send: SendFunc,
    ) -> tuple[bool, str]:
        """处理工具调用，返回 (是否已回复, 追加文本)"""
        for call in tool_calls:
            if not call.has_result:
                continue

            if call.tool_name == "generateImage":
                await send(sender_id, text_payload(f"🖼️ Generated Image:\n{call.result}"), access_token)
                return True, ""
            if call.tool_name == "browseWeb":
                return False, f"\n\n🌐 Browse result:\n{summarize_browse_result(call.result)}"
        return False, ""

    def format_reply(self, text: str) -> str:
        return f"💬 | {self.title}\n・───────────・\n{format_bold(text)}\n・──── >ᴗ< ────・"

    async def execute(self, sender_id, args, access_token, event, send, cache) -> None:
        raw_prompt = " ".join(args).strip() or "Hello"

        image_url = await self.get_image_url(sender_id, event, access_token, cache)
        prompt = f"{raw_prompt}\n\nImage URL: {image_url}" if image_url else raw_prompt

        self.history.add(sender_id, "user", prompt)
        result = await self.provider.complete(str(uuid.uuid4()), self.history.as_messages(sender_id))
        if result is None:
            raise EmptyResponseError("对话接口不可用")

        text = result.text
        handled, extra = await self.handle_tool_calls(result.tool_calls, sender_id, access_token, send)
        if handled:
            return
        text += extra

        if text:
            self.history.add(sender_id, "assistant", text)

        image_match = IMAGE_URL_PATTERN.search(text)
        if image_match:
            clean_url = image_match.group(0).rstrip(")")
            await send(sender_id, attachment_payload(MediaKind.IMAGE, clean_url), access_token)
            return

        if not text:
            raise EmptyResponseError("对话接口返回空内容", response_body=result.raw)

        await send_chunked(
            send, sender_id, self.format_reply(text), access_token,
            size=self.chunk_size, delay=self.chunk_delay,
        )
