#! /usr/bin/env python3
# -*- coding: utf-8 -*-

import json
import logging
import re
from typing import Any

import httpx
from pydantic import ValidationError

from .base import ChatProvider, CompletionResult, ToolInvocation

# 依次尝试的内联片段格式，命中第一种即停止
RESPONSE_PATTERNS = (
    re.compile(r'"result":"([^"]*)"'),
    re.compile(r'0:"([^"]*)"'),
)


def parse_response(data: Any) -> str:
    """从响应体中提取文本

    先取结构化的 result 字段；否则把响应序列化为字符串，
    按 RESPONSE_PATTERNS 扫描并拼接同一格式的全部匹配。
    """
    if isinstance(data, dict) and isinstance(data.get("result"), str):
        return data["result"]

    if isinstance(data, str):
        text_data = data
    else:
        text_data = json.dumps(data, ensure_ascii=False, separators=(",", ":"))

    for pattern in RESPONSE_PATTERNS:
        matches = pattern.findall(text_data)
        if matches:
            return "".join(m.replace("\\n", "\n") for m in matches)
    return ""


def parse_tool_calls(data: Any) -> list[ToolInvocation]:
    if not isinstance(data, dict):
        return []
    try:
        raw_calls = data["choices"][0]["message"].get("toolInvocations") or []
    except (KeyError, IndexError, TypeError, AttributeError):
        return []

    calls = []
    for raw in raw_calls:
        try:
            calls.append(ToolInvocation.model_validate(raw))
        except ValidationError:
            continue
    return calls


class Chipp(ChatProvider):
    def __init__(self, conf: dict, client: httpx.AsyncClient | None = None) -> None:
        self.api = conf.get("api")
        self.timeout = float(conf.get("timeout", 30))
        self.headers = {
            "content-type": "application/json",
            "origin": conf.get("origin", ""),
            "referer": conf.get("referer", ""),
            "cookie": conf.get("cookie", ""),
        }
        self.client = client or httpx.AsyncClient()
        self.LOG = logging.getLogger("Chipp")

    def __repr__(self):
        return 'Chipp'

    @staticmethod
    def value_check(conf: dict) -> bool:
        if conf:
            if conf.get("api"):
                return True
        return False

    async def complete(self, session_id: str, messages: list[dict]) -> CompletionResult | None:
        payload = {"chatSessionId": session_id, "messages": messages}
        try:
            resp = await self.client.post(
                self.api, json=payload, headers=self.headers, timeout=self.timeout
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.LOG.error(f"Chipp 接口返回错误 [{e.response.status_code}]: {e.response.text[:500]}")
            return None
        except httpx.HTTPError as e:
            self.LOG.error(f"Chipp 接口调用失败: {e}")
            return None

        try:
            data = resp.json()
        except ValueError:
            # 流式接口直接返回文本片段
            data = resp.text

        return CompletionResult(
            text=parse_response(data),
            tool_calls=parse_tool_calls(data),
            raw=data,
        )

    async def close(self) -> None:
        await self.client.aclose()
