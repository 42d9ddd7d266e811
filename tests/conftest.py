from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SendRecorder:
    """Stands in for the outbound send primitive."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any], str]] = []

    async def __call__(self, recipient_id: str, payload: dict[str, Any], access_token: str) -> None:
        self.sent.append((recipient_id, payload, access_token))

    def texts(self, recipient_id: str | None = None) -> list[str]:
        return [
            payload["text"]
            for rid, payload, _ in self.sent
            if "text" in payload and (recipient_id is None or rid == recipient_id)
        ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder() -> SendRecorder:
    return SendRecorder()
