# bot.py
"""PageBot - 基于 Channel 抽象的 Messenger 粉丝页机器人"""

import asyncio
import logging
from typing import Callable

from ai_providers import ChatProvider, create_provider
from channel import Channel, MessagingEvent
from commands import (
    AiCommand,
    Command,
    CommandRegistry,
    Dispatcher,
    GetLinkCommand,
    HelpCommand,
)
from configuration import Config
from function.func_upload import CatboxUploader
from session import ConversationHistory, TTLCache

__version__ = "1.0.0"

logger = logging.getLogger("PageBot")


class PageBot:
    """组装缓存、历史、命令注册表与分发器"""

    def __init__(self, channel: Channel, config: Config, provider: ChatProvider | None = None):
        self.channel = channel
        self.config = config
        self.LOG = logger

        # 进程内共享状态，按发送者分区
        self.image_cache: TTLCache = TTLCache(config.CACHE_TTL, name="image_cache")
        self.media_cache: TTLCache = TTLCache(config.CACHE_TTL, name="media_cache")
        self.history = ConversationHistory(config.MAX_HISTORY, config.KEEP_RECENT)

        self.provider = provider if provider is not None else create_provider(config.CHAT)
        self.uploader = CatboxUploader(config.UPLOAD)

        self.registry = CommandRegistry()
        loaded = self.registry.load(self._command_factories())
        self.LOG.info(f"已注册 {loaded} 个命令: {self.registry.get_names()}")

        self.dispatcher = Dispatcher(
            registry=self.registry,
            send=self.channel.send,
            access_token=self.channel.access_token,
            image_cache=self.image_cache,
            media_cache=self.media_cache,
            prefixes=config.COMMAND_PREFIXES,
            default_command=config.DEFAULT_COMMAND,
        )
        self._sweepers: list[asyncio.Task] = []

    def _build_ai(self) -> Command:
        if self.provider is None:
            raise RuntimeError("没有可用的 chat provider")
        return AiCommand(
            provider=self.provider,
            history=self.history,
            fetch_attachment=self.channel.fetch_attachment,
            title=self.config.CHAT.get("title", "MangaSearch"),
            media_max_age=self.config.MEDIA_MAX_AGE,
            chunk_size=self.config.CHUNK_SIZE,
            chunk_delay=self.config.CHUNK_DELAY,
        )

    def _build_getlink(self) -> Command:
        return GetLinkCommand(
            uploader=self.uploader,
            fetch_attachment=self.channel.fetch_attachment,
            media_max_age=self.config.MEDIA_MAX_AGE,
        )

    def _build_help(self) -> Command:
        return HelpCommand(self.registry, prefix=self.config.COMMAND_PREFIXES[0])

    def _command_factories(self) -> list[tuple[str, Callable[[], Command]]]:
        """按配置顺序给出命令工厂，未知名称记录后跳过"""
        builders = {
            "ai": self._build_ai,
            "getlink": self._build_getlink,
            "help": self._build_help,
        }
        factories = []
        for name in self.config.ENABLED_COMMANDS:
            builder = builders.get(str(name).lower())
            if builder is None:
                self.LOG.error(f"未知命令 {name}，已跳过")
                continue
            factories.append((name, builder))
        return factories

    async def on_event(self, event: MessagingEvent) -> None:
        """事件处理入口"""
        await self.dispatcher.dispatch(event)

    async def start(self) -> None:
        """启动缓存清扫与事件接收"""
        self.LOG.info(f"PageBot v{__version__} 启动中...")
        self._sweepers = [
            asyncio.create_task(cache.run_sweeper())
            for cache in (self.image_cache, self.media_cache)
        ]
        await self.channel.start(self.on_event)

    async def stop(self) -> None:
        """停止机器人"""
        await self.channel.stop()
        for task in self._sweepers:
            task.cancel()
        if self._sweepers:
            await asyncio.gather(*self._sweepers, return_exceptions=True)
        self._sweepers = []
        self.LOG.info("PageBot 已停止")

    async def cleanup(self) -> None:
        """清理资源"""
        self.LOG.info("正在清理 PageBot 资源...")
        if self.provider is not None:
            await self.provider.close()
        await self.uploader.close()
        self.LOG.info("PageBot 资源清理完成")
