# commands/help.py
"""help 命令"""

import constants
from channel.base import text_payload
from function.func_format import send_chunked

from .base import Command
from .registry import CommandRegistry


class HelpCommand(Command):
    name = ["help", "menu"]
    description = "Show available commands."
    usage = "-help [command]"
    author = "coffee"

    def __init__(self, registry: CommandRegistry, prefix: str = constants.COMMAND_PREFIXES[0]):
        self.registry = registry
        self.prefix = prefix

    def describe(self, command: Command) -> str:
        names = command.names
        line = f"• {self.prefix}{names[0]}"
        if len(names) > 1:
            line += f" ({', '.join(names[1:])})"
        if command.description:
            line += f"\n  {command.description}"
        if command.usage:
            line += f"\n  Usage: {command.usage.strip()}"
        return line

    async def execute(self, sender_id, args, access_token, event, send, cache) -> None:
        if args:
            command = self.registry.resolve(args[0])
            if command is None:
                await send(sender_id, text_payload(f'❎ | No command named "{args[0]}".'), access_token)
                return
            await send(sender_id, text_payload(self.describe(command)), access_token)
            return

        lines = ["📖 | Available commands", "・───────────・"]
        lines.extend(self.describe(c) for c in self.registry.commands())
        await send_chunked(send, sender_id, "\n".join(lines), access_token)
