# commands/registry.py
"""命令注册表"""

import logging
from typing import Callable, Iterable

from .base import Command

logger = logging.getLogger(__name__)

CommandFactory = Callable[[], Command]


class CommandRegistry:
    """命令注册表 - 名称（小写）到命令的映射

    启动时一次性填充，之后只读。
    """

    def __init__(self):
        self._commands: dict[str, Command] = {}

    def register(self, command: Command) -> None:
        """注册命令的所有别名，同名后注册者覆盖"""
        names = command.names
        if not names or not callable(getattr(command, "execute", None)):
            raise ValueError(f"无效的命令定义: {command!r}")

        for name in names:
            if name in self._commands and self._commands[name] is not command:
                logger.warning(f"命令名 {name} 被覆盖")
            self._commands[name] = command

    def resolve(self, name: str | None) -> Command | None:
        """大小写不敏感的精确匹配"""
        if not name:
            return None
        return self._commands.get(name.lower())

    def load(self, factories: Iterable[tuple[str, CommandFactory]]) -> int:
        """按顺序创建并注册命令，返回成功数量

        单个命令构造或注册失败只记录日志并跳过。
        """
        loaded = 0
        for label, factory in factories:
            try:
                command = factory()
                self.register(command)
            except Exception as e:
                logger.error(f"加载命令 {label} 失败，已跳过: {e}", exc_info=True)
                continue
            loaded += 1
            logger.info(f"注册命令: {', '.join(command.names)} - {command.description}")
        return loaded

    def commands(self) -> list[Command]:
        """去重后的命令列表，保持注册顺序"""
        unique: list[Command] = []
        for command in self._commands.values():
            if command not in unique:
                unique.append(command)
        return unique

    def get_names(self) -> list[str]:
        return list(self._commands.keys())

    def __contains__(self, name: str) -> bool:
        return self.resolve(name) is not None

    def __len__(self) -> int:
        return len(self._commands)
