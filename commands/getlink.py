# commands/getlink.py
"""getlink 命令 - 把图片/视频/音频转存到 Catbox"""

import logging
import os
import re
import tempfile
import time

import httpx

import constants
from channel.base import AttachmentInfo, MessagingEvent, text_payload
from constants import CacheKind, MediaKind
from function.func_upload import CatboxUploader, UploadError
from session.cache import TTLCache

from .ai import AttachmentFetcher
from .base import Command

logger = logging.getLogger(__name__)

MISSING_ATTACHMENT_NOTICE = "❎ | Please reply to an image, video, or audio file, then run this command."

_EXTENSIONS = {
    MediaKind.IMAGE: "jpg",
    MediaKind.VIDEO: "mp4",
    MediaKind.AUDIO: "mp3",
}
_EMOJIS = {
    MediaKind.IMAGE: "🖼️",
    MediaKind.VIDEO: "🎥",
    MediaKind.AUDIO: "🎵",
}
_URL_EXTENSION = re.compile(r"\.([^.?/]+)(?:\?|$)")


def file_extension(kind: MediaKind | None, url: str) -> str:
    if kind in _EXTENSIONS:
        return _EXTENSIONS[kind]
    match = _URL_EXTENSION.search(url)
    return match.group(1) if match else "bin"


class GetLinkCommand(Command):
    name = "getlink"
    description = "Upload image, video, or audio to Catbox and get permanent link."
    usage = "-getlink (reply to an image, video, or audio file)"
    author = "coffee"
    cache_kind = CacheKind.MEDIA

    def __init__(
        self,
        uploader: CatboxUploader,
        fetch_attachment: AttachmentFetcher | None = None,
        media_max_age: float = constants.MEDIA_MAX_AGE,
        tmp_dir: str | None = None,
    ):
        self.uploader = uploader
        self.fetch_attachment = fetch_attachment
        self.media_max_age = media_max_age
        self.tmp_dir = tmp_dir or tempfile.gettempdir()

    async def find_attachment(
        self,
        sender_id: str,
        event: MessagingEvent,
        access_token: str,
        cache: TTLCache | None,
    ) -> AttachmentInfo | None:
        """优先查询被回复消息的附件，查不到再用缓存"""
        mid = event.target_mid
        if mid and self.fetch_attachment:
            info = await self.fetch_attachment(mid, access_token)
            if info and info.url:
                return info

        if cache is not None:
            cached = cache.get(sender_id, max_age=self.media_max_age)
            if cached:
                logger.info(f"使用 {sender_id} 的缓存{cached.kind.value if cached.kind else '媒体'}: {cached.url}")
                return AttachmentInfo(url=cached.url, kind=cached.kind or MediaKind.IMAGE)
        return None

    async def execute(self, sender_id, args, access_token, event, send, cache) -> None:
        attachment = await self.find_attachment(sender_id, event, access_token, cache)
        if not attachment:
            await send(sender_id, text_payload(MISSING_ATTACHMENT_NOTICE), access_token)
            return

        kind = attachment.kind
        media_type = kind.value if kind else "file"
        emoji = _EMOJIS.get(kind, "📁")
        ext = file_extension(kind, attachment.url)
        tmp_path = os.path.join(self.tmp_dir, f"tmp_getlink_{time.time_ns()}.{ext}")

        try:
            await send(sender_id, text_payload(f"⏳ | Uploading {media_type} to Catbox... {emoji}"), access_token)

            await self.uploader.download_to_file(attachment.url, tmp_path)
            link = await self.uploader.upload_file(tmp_path)

            await send(
                sender_id,
                text_payload(
                    f"✅ | {media_type.capitalize()} uploaded successfully! {emoji}\n\n"
                    f"🔗 Link: {link}\n\n📋 The link is permanent and ready to share!"
                ),
                access_token,
            )
        except UploadError as e:
            logger.error(f"上传 {media_type} 失败: {e} | {e.response_body!r}")
            await send(sender_id, text_payload(f"❎ | Failed to upload {media_type} to Catbox. Please try again."), access_token)
        except (httpx.HTTPError, OSError) as e:
            logger.error(f"getlink 失败: {e}")
            await send(sender_id, text_payload(f"❎ | Failed to upload {media_type}. Please try again later."), access_token)
        finally:
            try:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
            except OSError as e:
                logger.error(f"清理临时文件失败: {e}")
