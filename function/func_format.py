"""回复格式化与分段发送"""

import asyncio
import logging
import re

import constants
from channel.base import SendFunc, text_payload

logger = logging.getLogger(__name__)

_BOLD_PATTERN = re.compile(r"\*(.+?)\*")


def _to_bold(char: str) -> str:
    code = ord(char)
    if 97 <= code <= 122:  # a-z
        return chr(code - 97 + 0x1D41A)
    if 65 <= code <= 90:  # A-Z
        return chr(code - 65 + 0x1D400)
    if 48 <= code <= 57:  # 0-9
        return chr(code - 48 + 0x1D7CE)
    return char


def format_bold(text: str) -> str:
    """将 *text* 转为 Unicode 数学粗体字符"""
    return _BOLD_PATTERN.sub(lambda m: "".join(_to_bold(c) for c in m.group(1)), text)


def chunk_message(text: str, size: int = constants.CHUNK_SIZE) -> list[str]:
    """按固定长度切分文本"""
    if size <= 0:
        raise ValueError(f"分段长度必须为正数: {size}")
    return [text[i:i + size] for i in range(0, len(text), size)]


async def send_chunked(
    send: SendFunc,
    recipient_id: str,
    text: str,
    access_token: str,
    size: int = constants.CHUNK_SIZE,
    delay: float = constants.CHUNK_DELAY,
) -> int:
    """分段发送长文本，返回发送失败的段数

    每段独立发送，第 i 段延迟 i * delay 秒发出，不等待前一段完成。
    顺序只是尽力而为：前一段网络较慢时后一段可能先到。
    """
    chunks = chunk_message(text, size)

    async def _send_later(index: int, chunk: str) -> None:
        if index:
            await asyncio.sleep(index * delay)
        await send(recipient_id, text_payload(chunk), access_token)

    results = await asyncio.gather(
        *(_send_later(i, chunk) for i, chunk in enumerate(chunks)),
        return_exceptions=True,
    )

    failed = 0
    for index, result in enumerate(results):
        if isinstance(result, BaseException):
            failed += 1
            logger.error(f"第 {index + 1}/{len(chunks)} 段发送失败: {result}")
    return failed
