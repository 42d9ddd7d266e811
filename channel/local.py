# channel/local.py
"""本地命令行 Channel - 用于调试"""

import asyncio
import logging

from constants import MediaKind
from .base import AttachmentInfo, Channel, EventHandler, MessagingEvent

logger = logging.getLogger(__name__)


class LocalChannel(Channel):
    """本地命令行 Channel - 在没有 Messenger 的环境下调试"""

    def __init__(self, bot_name: str = "PageBot", user_id: str = "local_user"):
        self._bot_name = bot_name
        self._user_id = user_id
        self._running = False
        self._event_queue: asyncio.Queue[MessagingEvent] = asyncio.Queue()
        self._msg_counter = 0
        self.sent: list[tuple[str, dict]] = []

    @property
    def name(self) -> str:
        return "local"

    @property
    def access_token(self) -> str:
        return "local"

    async def send(self, recipient_id: str, payload: dict, access_token: str | None = None) -> None:
        self.sent.append((recipient_id, payload))
        if "text" in payload:
            print(f"\n\033[36m[{self._bot_name}]\033[0m {payload['text']}\n")
        else:
            attachment = payload.get("attachment", {})
            url = attachment.get("payload", {}).get("url", "")
            print(f"\n\033[36m[{self._bot_name}]\033[0m [{attachment.get('type', '附件')}: {url}]\n")

    async def fetch_attachment(self, mid: str, access_token: str | None = None) -> AttachmentInfo | None:
        # 本地模式没有可查询的附件接口，只依赖缓存
        return None

    def simulate_event(self, line: str, sender: str | None = None) -> MessagingEvent:
        """把一行输入转换为事件

        `img <url> [文本]` 模拟带图片的消息，其余按纯文本处理。
        """
        self._msg_counter += 1
        message: dict = {"mid": f"local_{self._msg_counter}"}

        parts = line.split(maxsplit=2)
        if len(parts) >= 2 and parts[0].lower() in {k.value for k in MediaKind} | {"img"}:
            kind = MediaKind.IMAGE.value if parts[0].lower() == "img" else parts[0].lower()
            message["attachments"] = [{"type": kind, "payload": {"url": parts[1]}}]
            if len(parts) == 3:
                message["text"] = parts[2]
        else:
            message["text"] = line

        return MessagingEvent.model_validate({"sender": {"id": sender or self._user_id}, "message": message})

    async def start(self, on_event: EventHandler) -> None:
        """启动命令行交互循环"""
        self._running = True
        print(f"\n{'='*50}")
        print(f"  {self._bot_name} Local Channel 已启动")
        print(f"  输入消息与机器人对话，输入 'quit' 退出")
        print(f"  img <url> [文本] 可模拟发送图片")
        print(f"{'='*50}\n")

        input_task = asyncio.create_task(self._read_input_loop())

        while self._running:
            try:
                event = await asyncio.wait_for(self._event_queue.get(), timeout=0.5)
                await on_event(event)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"处理消息时出错: {e}", exc_info=True)

        input_task.cancel()
        try:
            await input_task
        except asyncio.CancelledError:
            pass

    async def _read_input_loop(self) -> None:
        """异步读取命令行输入"""
        loop = asyncio.get_running_loop()
        while self._running:
            try:
                line = await loop.run_in_executor(None, self._read_line)
                if line is None:
                    continue

                line = line.strip()
                if not line:
                    continue

                if line.lower() in ("quit", "exit", "q"):
                    print("\n再见！")
                    self._running = False
                    break

                await self._event_queue.put(self.simulate_event(line))

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"读取输入时出错: {e}")

    def _read_line(self) -> str | None:
        """同步读取一行输入"""
        try:
            print(f"\033[33m[User]\033[0m ", end="", flush=True)
            return input()
        except EOFError:
            return None
        except KeyboardInterrupt:
            return "quit"

    async def stop(self) -> None:
        self._running = False
