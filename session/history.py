# session/history.py
"""AI 命令使用的按发送者对话历史"""

import logging
from dataclasses import dataclass
from typing import Literal

import constants

logger = logging.getLogger(__name__)

Role = Literal["user", "assistant"]


@dataclass
class HistoryEntry:
    """单条历史消息"""
    role: Role
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


class ConversationHistory:
    """按发送者隔离的有界历史记录

    超过 max_history 条后在下一次读取或追加时压缩为最近 keep_recent 条，
    因此列表可能短暂多出一条。历史不过期，也不落盘。
    """

    def __init__(
        self,
        max_history: int = constants.MAX_HISTORY,
        keep_recent: int = constants.KEEP_RECENT,
    ):
        if keep_recent <= 0 or keep_recent > max_history:
            raise ValueError(
                f"keep_recent 必须在 1 到 max_history 之间: {keep_recent}/{max_history}"
            )
        self.max_history = max_history
        self.keep_recent = keep_recent
        self._store: dict[str, list[HistoryEntry]] = {}

    def _compact(self, sender_id: str) -> list[HistoryEntry]:
        entries = self._store.setdefault(sender_id, [])
        if len(entries) > self.max_history:
            # 原地截断，保证外部持有的引用仍然有效
            del entries[:-self.keep_recent]
            logger.debug(f"压缩 {sender_id} 的历史，保留 {len(entries)} 条")
        return entries

    def get(self, sender_id: str) -> list[HistoryEntry]:
        """返回该发送者的历史（实时引用）"""
        return self._compact(sender_id)

    def append(self, sender_id: str, entry: HistoryEntry) -> None:
        self._compact(sender_id).append(entry)

    def add(self, sender_id: str, role: Role, content: str) -> None:
        self.append(sender_id, HistoryEntry(role=role, content=content))

    def as_messages(self, sender_id: str) -> list[dict]:
        """OpenAI 风格的 messages 列表"""
        return [entry.to_dict() for entry in self.get(sender_id)]

    def __contains__(self, sender_id: str) -> bool:
        return sender_id in self._store

    def __len__(self) -> int:
        return len(self._store)
