"""Generation Client: one chat.completions call, no retries."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from generation.gpt_client import GenerationClient
from generation.request_builder import BackendRequest


def _payload():
    return BackendRequest(
        model="gpt-4o-mini",
        messages=[{"role": "user", "content": [{"type": "text", "text": "hi"}]}],
        response_format={"type": "json_schema", "json_schema": {"name": "question_paper", "schema": {}}},
    )


def _openai(content):
    completion = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=completion)
    client.close = AsyncMock()
    return client


class TestGenerationClient:

    def test_returns_message_text(self):
        openai = _openai('{"title": "x"}')

        text = asyncio.run(GenerationClient(client=openai).invoke(_payload()))

        assert text == '{"title": "x"}'
        openai.chat.completions.create.assert_awaited_once()
        kwargs = openai.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"]["type"] == "json_schema"

    def test_null_content_becomes_empty_string(self):
        text = asyncio.run(GenerationClient(client=_openai(None)).invoke(_payload()))

        assert text == ""

    def test_errors_propagate_after_one_attempt(self):
        openai = _openai("")
        openai.chat.completions.create = AsyncMock(side_effect=TimeoutError("read timeout"))

        with pytest.raises(TimeoutError):
            asyncio.run(GenerationClient(client=openai).invoke(_payload()))

        assert openai.chat.completions.create.await_count == 1

    def test_sdk_retries_disabled(self):
        client = GenerationClient(api_key="sk-test", base_url="http://localhost:9/v1", timeout=5)

        assert client._client.max_retries == 0

    def test_requires_api_key(self):
        with pytest.raises(RuntimeError):
            GenerationClient(api_key=None)
