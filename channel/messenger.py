# channel/messenger.py
"""Messenger Channel - 基于 Graph API 与 webhook"""

import asyncio
import logging

import httpx
from aiohttp import web

from constants import MediaKind
from .base import AttachmentInfo, Channel, EventHandler, parse_webhook

logger = logging.getLogger(__name__)

DEFAULT_GRAPH_API = "https://graph.facebook.com/v23.0"
ATTACHMENT_TIMEOUT = 5.0
SEND_TIMEOUT = 15.0


def attachment_from_graph(data: dict) -> AttachmentInfo | None:
    """从 /{mid}/attachments 响应中取第一条附件"""
    items = data.get("data") if isinstance(data, dict) else None
    if not items:
        return None
    first = items[0] or {}

    # 按优先级识别媒体类型
    for key, kind in (
        ("image_data", MediaKind.IMAGE),
        ("video_data", MediaKind.VIDEO),
        ("audio_data", MediaKind.AUDIO),
    ):
        media = first.get(key)
        if isinstance(media, dict) and media.get("url"):
            return AttachmentInfo(url=media["url"], kind=kind)

    if first.get("file_url"):
        return AttachmentInfo(url=first["file_url"], kind=MediaKind.FILE)
    return None


class MessengerChannel(Channel):
    """Messenger 粉丝页 Channel"""

    def __init__(self, conf: dict, client: httpx.AsyncClient | None = None):
        self._token = conf.get("page_access_token", "")
        self._verify_token = conf.get("verify_token", "")
        self._graph_api = (conf.get("graph_api") or DEFAULT_GRAPH_API).rstrip("/")
        self._host = conf.get("host", "0.0.0.0")
        self._port = int(conf.get("port", 8080))
        self._path = conf.get("path", "/webhook")
        self._client = client or httpx.AsyncClient()
        self._on_event: EventHandler | None = None
        self._runner: web.AppRunner | None = None
        self._stopped = asyncio.Event()
        self._tasks: set[asyncio.Task] = set()

        if not self._token:
            logger.warning("未配置 page_access_token，发送消息将会失败")

    @property
    def name(self) -> str:
        return "messenger"

    @property
    def access_token(self) -> str:
        return self._token

    async def send(self, recipient_id: str, payload: dict, access_token: str | None = None) -> None:
        body = {"recipient": {"id": recipient_id}, "message": payload}
        try:
            resp = await self._client.post(
                f"{self._graph_api}/me/messages",
                params={"access_token": access_token or self._token},
                json=body,
                timeout=SEND_TIMEOUT,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"发送消息失败 [{e.response.status_code}]: {e.response.text}")
        except httpx.HTTPError as e:
            logger.error(f"发送消息失败: {e}")

    async def fetch_attachment(self, mid: str, access_token: str | None = None) -> AttachmentInfo | None:
        if not mid:
            return None
        try:
            resp = await self._client.get(
                f"{self._graph_api}/{mid}/attachments",
                params={"access_token": access_token or self._token},
                timeout=ATTACHMENT_TIMEOUT,
            )
            resp.raise_for_status()
            return attachment_from_graph(resp.json())
        except httpx.HTTPStatusError as e:
            logger.warning(f"获取附件失败 [{e.response.status_code}]: {e.response.text}")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"获取附件失败: {e}")
        return None

    async def _handle_verify(self, request: web.Request) -> web.Response:
        """Webhook 订阅校验"""
        mode = request.query.get("hub.mode")
        token = request.query.get("hub.verify_token")
        challenge = request.query.get("hub.challenge", "")
        if mode == "subscribe" and token and token == self._verify_token:
            logger.info("Webhook 校验通过")
            return web.Response(text=challenge)
        return web.Response(status=403)

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        try:
            body = await request.json()
        except ValueError:
            return web.Response(status=400)

        if not isinstance(body, dict):
            return web.Response(status=400)
        if body.get("object") != "page":
            return web.Response(status=404)

        # 先应答平台，事件在后台处理
        for event in parse_webhook(body):
            task = asyncio.create_task(self._dispatch(event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return web.Response(text="EVENT_RECEIVED")

    async def _dispatch(self, event) -> None:
        if not self._on_event:
            return
        try:
            await self._on_event(event)
        except Exception as e:
            logger.error(f"处理事件时出错: {e}", exc_info=True)

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(self._path, self._handle_verify)
        app.router.add_post(self._path, self._handle_webhook)
        return app

    async def start(self, on_event: EventHandler) -> None:
        self._on_event = on_event
        self._stopped.clear()
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        logger.info(f"Webhook 监听于 http://{self._host}:{self._port}{self._path}")
        await self._stopped.wait()

    async def stop(self) -> None:
        self._stopped.set()
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    async def cleanup(self) -> None:
        await self._client.aclose()
