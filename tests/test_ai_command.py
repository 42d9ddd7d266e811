from __future__ import annotations

import asyncio

import pytest

from ai_providers.base import ChatProvider, CompletionResult, ToolInvocation
from channel.base import AttachmentInfo, MessagingEvent
from commands.ai import AiCommand
from commands.base import EmptyResponseError
from constants import MediaKind
from session.cache import TTLCache
from session.history import ConversationHistory


class FakeProvider(ChatProvider):
    def __init__(self, *results: CompletionResult | None) -> None:
        self.results = list(results)
        self.calls: list[tuple[str, list[dict]]] = []

    async def complete(self, session_id, messages):
        self.calls.append((session_id, [dict(m) for m in messages]))
        return self.results.pop(0)


def _event(mid: str = "m.1", reply_mid: str | None = None) -> MessagingEvent:
    message = {"mid": mid, "text": "hi"}
    if reply_mid:
        message["reply_to"] = {"mid": reply_mid}
    return MessagingEvent.model_validate({"sender": {"id": "u1"}, "message": message})


def _command(provider, history=None, fetch=None) -> AiCommand:
    return AiCommand(
        provider=provider,
        history=history if history is not None else ConversationHistory(),
        fetch_attachment=fetch,
        title="Test",
        chunk_delay=0,
    )


def test_reply_is_formatted_and_history_updated(recorder, clock) -> None:
    provider = FakeProvider(CompletionResult(text="Read *One* now"))
    history = ConversationHistory()
    command = _command(provider, history)

    asyncio.run(command.execute("u1", ["hello", "bot"], "tok", _event(), recorder, TTLCache(600, clock=clock)))

    session_id, messages = provider.calls[0]
    assert session_id
    assert messages == [{"role": "user", "content": "hello bot"}]
    assert history.as_messages("u1") == [
        {"role": "user", "content": "hello bot"},
        {"role": "assistant", "content": "Read *One* now"},
    ]
    reply = recorder.texts("u1")[0]
    assert reply.startswith("💬 | Test\n")
    assert "\U0001D40E\U0001D427\U0001D41E" in reply  # bold "One"


def test_previous_turns_are_sent_as_context(recorder, clock) -> None:
    provider = FakeProvider(CompletionResult(text="first"), CompletionResult(text="second"))
    command = _command(provider)
    cache = TTLCache(600, clock=clock)

    asyncio.run(command.execute("u1", ["q1"], "tok", _event(), recorder, cache))
    asyncio.run(command.execute("u1", ["q2"], "tok", _event(), recorder, cache))

    assert [m["content"] for m in provider.calls[1][1]] == ["q1", "first", "q2"]
    # each call uses a fresh session id
    assert provider.calls[0][0] != provider.calls[1][0]


def test_empty_prompt_defaults_to_hello(recorder, clock) -> None:
    provider = FakeProvider(CompletionResult(text="hey"))
    asyncio.run(_command(provider).execute("u1", [], "tok", _event(), recorder, TTLCache(600, clock=clock)))

    assert provider.calls[0][1][-1]["content"] == "Hello"


def test_cached_image_is_attached_to_prompt(recorder, clock) -> None:
    provider = FakeProvider(CompletionResult(text="nice picture"))
    cache = TTLCache(600, clock=clock)
    cache.set("u1", AttachmentInfo(url="https://cdn/a.jpg", kind=MediaKind.IMAGE))

    asyncio.run(_command(provider).execute("u1", ["what", "is", "this"], "tok", _event(), recorder, cache))

    assert provider.calls[0][1][-1]["content"] == "what is this\n\nImage URL: https://cdn/a.jpg"


def test_stale_cache_falls_back_to_reply_attachment(recorder, clock) -> None:
    provider = FakeProvider(CompletionResult(text="ok"))
    cache = TTLCache(600, clock=clock)
    cache.set("u1", AttachmentInfo(url="https://cdn/old.jpg", kind=MediaKind.IMAGE))
    clock.advance(301)
    looked_up: list[str] = []

    async def fetch(mid, token):
        looked_up.append(mid)
        return AttachmentInfo(url="https://cdn/replied.jpg", kind=MediaKind.IMAGE)

    command = _command(provider, fetch=fetch)
    asyncio.run(command.execute("u1", ["look"], "tok", _event(reply_mid="m.0"), recorder, cache))

    assert looked_up == ["m.0"]
    assert provider.calls[0][1][-1]["content"].endswith("Image URL: https://cdn/replied.jpg")


def test_replied_video_is_not_used_as_image_context(recorder, clock) -> None:
    provider = FakeProvider(CompletionResult(text="ok"))

    async def fetch(mid, token):
        return AttachmentInfo(url="https://cdn/clip.mp4", kind=MediaKind.VIDEO)

    command = _command(provider, fetch=fetch)
    asyncio.run(command.execute("u1", ["what"], "tok", _event(reply_mid="m.0"), recorder, TTLCache(600, clock=clock)))

    assert provider.calls[0][1][-1]["content"] == "what"


def test_generate_image_tool_result_is_sent_directly(recorder, clock) -> None:
    provider = FakeProvider(CompletionResult(
        text="",
        tool_calls=[ToolInvocation(toolName="generateImage", state="result", result="https://img/x.png")],
    ))
    history = ConversationHistory()

    asyncio.run(_command(provider, history).execute("u1", ["draw"], "tok", _event(), recorder, TTLCache(600, clock=clock)))

    assert recorder.texts("u1") == ["🖼️ Generated Image:\nhttps://img/x.png"]
    assert [e.role for e in history.get("u1")] == ["user"]


def test_browse_tool_result_is_appended(recorder, clock) -> None:
    provider = FakeProvider(CompletionResult(
        text="Here you go",
        tool_calls=[ToolInvocation.model_validate({
            "toolName": "browseWeb",
            "state": "result",
            "result": {"organic": [{"snippet": "s1"}, {"title": "no snippet"}, {"snippet": "s2"}]},
        })],
    ))

    asyncio.run(_command(provider).execute("u1", ["news"], "tok", _event(), recorder, TTLCache(600, clock=clock)))

    assert "Here you go\n\n🌐 Browse result:\ns1\n\ns2" in recorder.texts("u1")[0]


def test_image_url_in_reply_is_sent_as_attachment(recorder, clock) -> None:
    url = "https://storage.googleapis.com/chipp-images/abc.png"
    provider = FakeProvider(CompletionResult(text=f"![img]({url})"))

    asyncio.run(_command(provider).execute("u1", ["img"], "tok", _event(), recorder, TTLCache(600, clock=clock)))

    assert recorder.sent == [(
        "u1",
        {"attachment": {"type": "image", "payload": {"url": url, "is_reusable": True}}},
        "tok",
    )]


def test_long_reply_is_chunked(recorder, clock) -> None:
    provider = FakeProvider(CompletionResult(text="y" * 5000))
    command = _command(provider)

    asyncio.run(command.execute("u1", ["long"], "tok", _event(), recorder, TTLCache(600, clock=clock)))

    texts = recorder.texts("u1")
    assert len(texts) == 3
    assert all(len(t) <= 1900 for t in texts)


@pytest.mark.parametrize("result", [CompletionResult(text="", raw="garbage"), None])
def test_empty_or_missing_response_raises(recorder, clock, result) -> None:
    command = _command(FakeProvider(result))

    with pytest.raises(EmptyResponseError):
        asyncio.run(command.execute("u1", ["q"], "tok", _event(), recorder, TTLCache(600, clock=clock)))
    assert recorder.sent == []
