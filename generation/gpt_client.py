"""
Generation Client — the single external call of a gateway request.

Wraps openai.AsyncOpenAI. Works against OpenAI itself or any
OpenAI-compatible endpoint (set LLM_BASE_URL, e.g. the Gemini one).

No retries (max_retries=0), no streaming: the backend returns one complete
response or the call raises. Timeouts are left to the HTTP transport.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI

from generation.request_builder import BackendRequest

log = logging.getLogger("generation.gpt_client")


class GenerationClient:

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        if client is None:
            if not api_key:
                raise RuntimeError(
                    "OPENAI_API_KEY is not set. Add it to your .env file."
                )
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout,
                max_retries=0,
            )
        self._client = client

    async def invoke(self, payload: BackendRequest) -> str:
        """
        Call chat.completions once and return the assistant message text.

        Any exception from the SDK (network, auth, quota, timeout) propagates
        to the caller unchanged.
        """
        log.info(
            f"[GPT] model={payload.model} attachments={payload.attachment_count} "
            f"max_tokens={payload.max_tokens}"
        )
        response = await self._client.chat.completions.create(**payload.as_kwargs())
        content = response.choices[0].message.content or ""
        log.info(f"[GPT] response received ({len(content)} chars)")
        return content

    async def close(self) -> None:
        await self._client.close()
