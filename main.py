#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PageBot - Messenger 粉丝页聊天机器人
"""

import asyncio
import logging
import signal
from argparse import ArgumentParser

from bot import PageBot, __version__
from configuration import Config


def setup_logging(level: int = logging.INFO):
    """配置日志"""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # 降低第三方库日志级别
    for name in ["httpx", "httpcore", "openai", "aiohttp.access"]:
        logging.getLogger(name).setLevel(logging.WARNING)


def request_stop(bot: PageBot, pending: set) -> asyncio.Task:
    """信号回调中创建停止任务，并在完成前保留引用"""
    task = asyncio.create_task(bot.stop())
    pending.add(task)
    task.add_done_callback(pending.discard)
    return task


async def run_messenger(config_path: str | None = None):
    """Messenger webhook 模式"""
    from channel import MessengerChannel

    config = Config(config_path)
    channel = MessengerChannel(config.MESSENGER)
    bot = PageBot(channel=channel, config=config)

    loop = asyncio.get_running_loop()
    stop_tasks: set[asyncio.Task] = set()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda: request_stop(bot, stop_tasks))
        except NotImplementedError:
            # Windows 不支持 add_signal_handler
            pass

    logging.info(f"PageBot v{__version__} 启动中...")

    try:
        await bot.start()
    except Exception as e:
        logging.error(f"运行出错: {e}", exc_info=True)
    finally:
        await shutdown(bot, channel)


async def shutdown(bot: PageBot, channel):
    """清理资源"""
    await bot.stop()
    await bot.cleanup()
    if hasattr(channel, "cleanup"):
        await channel.cleanup()


def main():
    parser = ArgumentParser(description="PageBot 聊天机器人")
    parser.add_argument(
        "-d", "--debug", action="store_true", help="调试模式"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="安静模式"
    )
    parser.add_argument(
        "-c", "--config", default=None, help="配置文件路径（默认 config.yaml）"
    )
    parser.add_argument(
        "--local", action="store_true", help="本地调试模式（无需 Messenger）"
    )
    args = parser.parse_args()

    # 日志级别
    if args.debug:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.INFO

    setup_logging(level)

    if args.local:
        import local_main
        asyncio.run(local_main.main(args.config))
    else:
        asyncio.run(run_messenger(args.config))


if __name__ == "__main__":
    main()
