"""Generation client for the Anthropic Messages API.

Issues one system/user prompt pair and returns the raw text of the reply.
Transient failures (throttling, overload, dropped connections) are retried
with exponential backoff; everything else fails immediately. The client has
no knowledge of the structured-output contract.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal

from anthropic import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncAnthropic,
    InternalServerError,
    RateLimitError,
)

from crew_engine.core.config import Settings, get_settings
from crew_engine.core.logging import get_logger

logger = get_logger(__name__)

ServiceErrorKind = Literal["transient", "permanent"]

_THROTTLE_MARKERS = ("429", "RATELIMIT_EXCEEDED")
_THROTTLE_PHRASES = ("quota", "rate limit")


class ServiceError(Exception):
    """Raised when the text-generation service cannot produce a reply."""

    def __init__(self, message: str, kind: ServiceErrorKind = "permanent", attempts: int = 1):
        super().__init__(message)
        self.kind = kind
        self.attempts = attempts

    @property
    def retryable(self) -> bool:
        return self.kind == "transient"


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff policy: ``min(max_delay, min_delay * factor ** attempt)``."""

    retries: int
    min_delay: float
    max_delay: float
    factor: float = 2.0

    def delay_for(self, attempt: int) -> float:
        return min(self.max_delay, self.min_delay * (self.factor**attempt))


# Lightweight calls (form suggestions)
LIGHT_RETRY = RetryPolicy(retries=3, min_delay=1.0, max_delay=10.0)
# Editor pass over an existing report
EDITOR_RETRY = RetryPolicy(retries=3, min_delay=2.0, max_delay=30.0)
# Full agent analysis calls
HEAVY_RETRY = RetryPolicy(retries=5, min_delay=2.0, max_delay=60.0)


def is_transient_error(error: BaseException) -> bool:
    """Return True when ``error`` signals throttling or a temporary outage."""
    if isinstance(error, (RateLimitError, APIConnectionError, APITimeoutError, InternalServerError)):
        return True

    if isinstance(error, APIStatusError):
        status_code = getattr(error, "status_code", None)
        if status_code == 429 or (status_code is not None and status_code >= 500):
            return True

    message = str(error)
    if any(marker in message for marker in _THROTTLE_MARKERS):
        return True
    lowered = message.lower()
    return any(phrase in lowered for phrase in _THROTTLE_PHRASES)


class GenerationClient:
    """Thin async wrapper around ``AsyncAnthropic.messages.create``."""

    def __init__(
        self,
        settings: Settings | None = None,
        anthropic_client: AsyncAnthropic | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self.model = self.settings.CREW_MODEL
        self._client = anthropic_client or AsyncAnthropic(
            api_key=self.settings.ANTHROPIC_API_KEY,
            base_url=self.settings.ANTHROPIC_BASE_URL,
        )
        self._sleep = sleep

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int,
        retry_policy: RetryPolicy = HEAVY_RETRY,
    ) -> str:
        """
        Send one prompt pair and return the reply text.

        Args:
            system_prompt: System prompt
            user_prompt: User message content
            max_output_tokens: Output token budget for the reply
            retry_policy: Backoff policy applied to transient failures

        Returns:
            Text of the first content block

        Raises:
            ServiceError: ``transient`` once the retry ceiling is exhausted,
                ``permanent`` immediately for non-retryable failures
        """
        attempt = 0
        while True:
            try:
                t0 = time.monotonic()
                response = await self._client.messages.create(
                    model=self.model,
                    max_tokens=max_output_tokens,
                    system=system_prompt,
                    messages=[{"role": "user", "content": user_prompt}],
                )
                elapsed_ms = int((time.monotonic() - t0) * 1000)
            except Exception as e:
                if not is_transient_error(e):
                    logger.error(f"Generation failed permanently ({type(e).__name__}): {e}")
                    raise ServiceError(str(e), kind="permanent", attempts=attempt + 1) from e

                if attempt >= retry_policy.retries:
                    logger.error(
                        f"Generation still throttled after {attempt + 1} attempts, giving up",
                        extra={"error_type": type(e).__name__},
                    )
                    raise ServiceError(str(e), kind="transient", attempts=attempt + 1) from e

                delay = retry_policy.delay_for(attempt)
                logger.warning(
                    f"Generation attempt {attempt + 1}/{retry_policy.retries + 1} failed "
                    f"({type(e).__name__}), retrying in {delay}s"
                )
                await self._sleep(delay)
                attempt += 1
                continue

            return self._extract_text(response, elapsed_ms)

    def _extract_text(self, response, elapsed_ms: int) -> str:
        content = getattr(response, "content", None) or []
        text = getattr(content[0], "text", None) if content else None
        if not isinstance(text, str):
            raise ServiceError("Unexpected response type from generation service", kind="permanent")

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                f"Generation complete in {elapsed_ms}ms "
                f"(in={getattr(usage, 'input_tokens', '?')}, out={getattr(usage, 'output_tokens', '?')})"
            )
        return text
