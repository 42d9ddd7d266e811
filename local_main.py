#!/usr/bin/env python3
# local_main.py
"""本地调试入口 - 无需 Messenger 环境"""

import asyncio
import logging

from bot import PageBot
from channel import LocalChannel
from configuration import Config


async def main(config_path: str | None = None):
    """主函数"""
    logger = logging.getLogger("LocalMain")

    # 加载配置
    try:
        config = Config(config_path)
    except Exception as e:
        logger.error(f"加载配置失败: {e}")
        logger.info("请确保 config.yaml 文件存在且配置正确")
        return

    channel = LocalChannel(bot_name="PageBot")
    bot = PageBot(channel=channel, config=config)

    try:
        await bot.start()
    except KeyboardInterrupt:
        logger.info("收到退出信号")
    except Exception as e:
        logger.error(f"运行出错: {e}", exc_info=True)
    finally:
        await bot.stop()
        await bot.cleanup()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n再见！")
