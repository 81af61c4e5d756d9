"""
Brief generation backend.

The generator is an opaque async callable: prompt string in, decoded JSON out.
Any failure (timeout, API error, empty or undecodable output) surfaces as
GenerationError. The core never retries; retry policy belongs to the caller.
The OpenAI client is built with max_retries=0 for the same reason.

Decoded output is returned as-is. Whether it is a usable brief is decided by
the auditor, not here.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional

from openai import AsyncOpenAI, OpenAIError

from execbrief.core.exceptions import GenerationError

logger = logging.getLogger(__name__)

# Prompt in, decoded JSON out
BriefGenerator = Callable[[str], Awaitable[Any]]


def parse_brief_json(text: Optional[str]) -> Any:
    """
    Decode generator output.

    Raises:
        GenerationError: If the output is empty or not valid JSON
    """
    if not text or not text.strip():
        raise GenerationError("Generation backend returned an empty response")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Generation backend returned invalid JSON: {e}") from e


class OpenAIBriefGenerator:
    """
    Generator backed by the OpenAI Responses API in JSON mode.

    Args:
        api_key: OpenAI API key; without it (and without `client`) every call
            fails with GenerationError
        model: Model name
        timeout_seconds: Upper bound for one call, enforced with asyncio.wait_for
        client: Pre-built AsyncOpenAI client (used by tests)
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        timeout_seconds: float,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.timeout_seconds = timeout_seconds
        if client is None and api_key:
            client = AsyncOpenAI(api_key=api_key, max_retries=0)
        self._client = client

    async def __call__(self, prompt: str) -> Any:
        if self._client is None:
            raise GenerationError("Generation backend is not configured")

        try:
            response = await asyncio.wait_for(
                self._client.responses.create(
                    model=self.model,
                    input=prompt,
                    text={"format": {"type": "json_object"}},
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Generation timed out after {self.timeout_seconds}s")
            raise GenerationError(
                f"Generation timed out after {self.timeout_seconds}s"
            ) from e
        except OpenAIError as e:
            logger.error(f"Generation backend error: {e}")
            raise GenerationError(f"Generation backend error: {e}") from e

        return parse_brief_json(response.output_text)

    async def aclose(self) -> None:
        """Close the underlying HTTP client, if one was built."""
        if self._client is not None:
            await self._client.close()
