from __future__ import annotations

import logging

import pytest

from commands.base import Command
from commands.registry import CommandRegistry


class StubCommand(Command):
    def __init__(self, name, description: str = "") -> None:
        self._name = name
        self.description = description

    @property
    def name(self):
        return self._name

    async def execute(self, sender_id, args, access_token, event, send, cache) -> None:
        return None


def test_register_aliases_resolve_case_insensitively() -> None:
    registry = CommandRegistry()
    cmd = StubCommand(["GetLink", "gl"])
    registry.register(cmd)

    assert registry.resolve("getlink") is cmd
    assert registry.resolve("GL") is cmd
    assert registry.resolve("getl") is None
    assert registry.resolve(None) is None
    assert cmd.metadata["cache_kind"] == "image"


def test_last_registration_wins() -> None:
    registry = CommandRegistry()
    first, second = StubCommand("ai"), StubCommand("AI")
    registry.register(first)
    registry.register(second)

    assert registry.resolve("ai") is second
    assert registry.commands() == [second]


def test_register_rejects_nameless_command() -> None:
    registry = CommandRegistry()
    with pytest.raises(ValueError):
        registry.register(StubCommand([None, 3]))


def test_load_skips_broken_factories(caplog) -> None:
    registry = CommandRegistry()

    def broken() -> Command:
        raise RuntimeError("boom")

    with caplog.at_level(logging.ERROR):
        loaded = registry.load([
            ("ai", lambda: StubCommand("ai")),
            ("broken", broken),
            ("bad", lambda: StubCommand("")),
            ("help", lambda: StubCommand(["help", "menu"])),
        ])

    assert loaded == 2
    assert registry.get_names() == ["ai", "help", "menu"]
    assert "broken" in caplog.text
    assert len(registry.commands()) == 2
