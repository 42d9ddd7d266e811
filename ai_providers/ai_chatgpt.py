#! /usr/bin/env python3
# -*- coding: utf-8 -*-

import logging

import httpx
from openai import APIConnectionError, APIError, AsyncOpenAI, AuthenticationError

from .base import ChatProvider, CompletionResult


class ChatGPT(ChatProvider):
    """OpenAI 兼容接口，可替代 Chipp 作为 ai 命令的后端"""

    def __init__(self, conf: dict, client: AsyncOpenAI | None = None) -> None:
        key = conf.get("key")
        api = conf.get("api")
        proxy = conf.get("proxy")
        prompt = conf.get("prompt")
        timeout = float(conf.get("timeout", 30))
        self.model = conf.get("model", "gpt-4o-mini")
        self.LOG = logging.getLogger("ChatGPT")

        if client is not None:
            self.client = client
        elif proxy:
            self.client = AsyncOpenAI(
                api_key=key, base_url=api, timeout=timeout,
                http_client=httpx.AsyncClient(proxy=proxy),
            )
        else:
            self.client = AsyncOpenAI(api_key=key, base_url=api, timeout=timeout)

        self.system_content_msg = {"role": "system", "content": prompt if prompt else "You are a helpful assistant."}

    def __repr__(self):
        return 'ChatGPT'

    @staticmethod
    def value_check(conf: dict) -> bool:
        if conf:
            if conf.get("key") and conf.get("api"):
                return True
        return False

    async def complete(self, session_id: str, messages: list[dict]) -> CompletionResult | None:
        api_messages = [self.system_content_msg, *messages]
        try:
            ret = await self.client.chat.completions.create(
                model=self.model,
                messages=api_messages,
                user=session_id,
            )
        except AuthenticationError as e:
            self.LOG.error(f"OpenAI API 认证失败，请检查 API 密钥: {e}")
            return None
        except (APIConnectionError, APIError) as e:
            self.LOG.error(f"ChatGPT API 调用失败: {e}")
            return None

        message = ret.choices[0].message if ret.choices else None
        response_text = message.content if message and message.content else ""
        if response_text.startswith("\n\n"):
            response_text = response_text[2:]
        return CompletionResult(text=response_text, raw=ret)

    async def close(self) -> None:
        await self.client.close()
