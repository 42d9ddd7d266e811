# commands package
"""
命令组件包

- base: 命令抽象基类
- registry: 命令注册表
- dispatcher: 入站事件分发
- ai / getlink / help: 内置命令
"""

from .ai import AiCommand
from .base import Command, CommandError, EmptyResponseError
from .context import DispatchContext
from .dispatcher import Dispatcher
from .getlink import GetLinkCommand
from .help import HelpCommand
from .registry import CommandRegistry

__all__ = [
    "AiCommand",
    "Command",
    "CommandError",
    "CommandRegistry",
    "DispatchContext",
    "Dispatcher",
    "EmptyResponseError",
    "GetLinkCommand",
    "HelpCommand",
]
