from __future__ import annotations

import asyncio
from pathlib import Path

from ai_providers.base import ChatProvider, CompletionResult
from bot import PageBot
from channel.local import LocalChannel
from configuration import Config


class CannedProvider(ChatProvider):
    async def complete(self, session_id, messages):
        return CompletionResult(text=f"echo {messages[-1]['content']}")


def _config(tmp_path: Path, enabled: str = "[ai, getlink, help, bogus]") -> Config:
    path = tmp_path / "config.yaml"
    path.write_text(
        f"commands:\n  enabled: {enabled}\nsend:\n  chunk_delay: 0\n",
        encoding="utf-8",
    )
    return Config(str(path))


def test_bot_registers_configured_commands(tmp_path: Path) -> None:
    bot = PageBot(LocalChannel(), _config(tmp_path), provider=CannedProvider())

    assert bot.registry.get_names() == ["ai", "getlink", "help", "menu"]


def test_ai_is_skipped_without_provider(tmp_path: Path) -> None:
    bot = PageBot(LocalChannel(), _config(tmp_path))

    assert "ai" not in bot.registry
    assert "getlink" in bot.registry


def test_events_flow_through_dispatcher(tmp_path: Path) -> None:
    channel = LocalChannel()
    bot = PageBot(channel, _config(tmp_path), provider=CannedProvider())

    asyncio.run(bot.on_event(channel.simulate_event("hello")))
    asyncio.run(bot.on_event(channel.simulate_event("-help getlink")))

    texts = [payload["text"] for _, payload in channel.sent]
    assert "echo hello" in texts[0]
    assert texts[1].startswith("• -getlink")
    assert [e.role for e in bot.history.get("local_user")] == ["user", "assistant"]


def test_stop_cancels_sweepers(tmp_path: Path) -> None:
    channel = LocalChannel()
    bot = PageBot(channel, _config(tmp_path), provider=CannedProvider())

    async def scenario() -> None:
        bot._sweepers = [asyncio.create_task(c.run_sweeper()) for c in (bot.image_cache, bot.media_cache)]
        await asyncio.sleep(0)
        await bot.stop()

    asyncio.run(scenario())
    assert bot._sweepers == []
