"""
Gemini client with bounded retry and error translation.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx
from google import genai
from google.genai import errors, types

from learnhub.config import config
from learnhub.utils.errors import (
    ParseError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamQuotaExceeded,
    UpstreamRateLimited,
    UpstreamUnavailable,
)
from learnhub.utils.logger import logging

RETRYABLE_ERRORS = (UpstreamRateLimited, UpstreamUnavailable)


class GeminiClient:
    """Calls Gemini generate_content and returns the first text part."""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        max_retries: Optional[int] = None,
        base_delay: float = 1.0,
        timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        client: Optional[Any] = None,
    ):
        """
        Initialize the Gemini client.

        Args:
            api_key: Gemini API key
            model: Model identifier (defaults to GEMINI_MODEL)
            max_retries: Retries after the first attempt on transient failures
            base_delay: First backoff delay in seconds, doubled per attempt
            timeout: Per-attempt timeout in seconds
            sleep: Awaitable delay function, replaced in tests
            client: Preconfigured genai client, mainly for tests
        """
        self.model = model or config.GEMINI_MODEL
        self.temperature = config.GEMINI_TEMPERATURE if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or config.GEMINI_MAX_OUTPUT_TOKENS
        self.max_retries = config.GEMINI_MAX_RETRIES if max_retries is None else max_retries
        self.base_delay = base_delay
        self.timeout = timeout or config.GEMINI_TIMEOUT_SEC
        self.sleep = sleep
        self.client = client or genai.Client(api_key=api_key)

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        """
        Generate text, retrying rate limits and transient failures.

        Auth and quota errors are raised on the first occurrence.
        """
        last_error: Optional[UpstreamError] = None

        for attempt in range(self.max_retries + 1):
            try:
                response = await self._call(system_prompt, user_prompt)
                return self._extract_text(response)
            except RETRYABLE_ERRORS as e:
                last_error = e
                if attempt < self.max_retries:
                    delay = self.base_delay * (2 ** attempt)
                    logging.warning(
                        f"Gemini API attempt {attempt + 1} failed, retrying in {delay}s: {e}"
                    )
                    await self.sleep(delay)

        raise last_error

    async def _call(self, system_prompt: str, user_prompt: str) -> types.GenerateContentResponse:
        generation_config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            top_p=0.95,
            top_k=40,
        )
        try:
            return await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=user_prompt,
                    config=generation_config,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(f"Gemini API timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Gemini API unreachable: {e}") from e
        except errors.APIError as e:
            raise translate_api_error(e) from e

    @staticmethod
    def _extract_text(response: Any) -> str:
        candidates = getattr(response, "candidates", None)
        if not candidates:
            raise ParseError("No candidates in Gemini response")

        content = candidates[0].content
        if content is None or not content.parts:
            raise ParseError("No content in Gemini response")

        return content.parts[0].text or ""


def translate_api_error(error: errors.APIError) -> UpstreamError:
    """Map a genai API error onto the application's upstream error kinds."""
    code = getattr(error, "code", None)
    message = getattr(error, "message", None) or str(error)

    if code == 429:
        return UpstreamRateLimited("Rate limited by Gemini API")
    if code == 401:
        return UpstreamAuthError("Invalid Gemini API key")
    if code == 403:
        return UpstreamQuotaExceeded("Gemini API quota exceeded")
    if code is not None and code >= 500:
        return UpstreamUnavailable(f"Gemini API error ({code}): {message}")
    return UpstreamError(f"Gemini API error ({code}): {message}")
