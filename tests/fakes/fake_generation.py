"""Fake generation client that answers by system-prompt prefix."""

import asyncio
from typing import Any

from crew_engine.core.config import Settings

# System prompts open with the agent's self-description
DOCUMENT = "You are the Document Intelligence Agent"
STRATEGY = "You are the Business Strategy Agent"
FINANCIAL = "You are the Financial Analyst Agent"
ORCHESTRATOR = "You are the Executive Orchestrator Agent"
TONE_EDITOR = "You are an executive-grade editor"
SUGGESTIONS = "You are a helpful business analyst assistant"


class FakeGenerationClient:
    """Stands in for GenerationClient; records every call.

    ``replies`` maps a system-prompt prefix to either a string reply, an
    exception to raise, or a callable taking the user prompt.
    """

    def __init__(self, replies: dict[str, Any], delays: dict[str, float] | None = None):
        self.replies = replies
        self.delays = delays or {}
        self.settings = Settings(ANTHROPIC_API_KEY="test-key")
        self.calls: list[dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def _route(self, system_prompt: str) -> str:
        for prefix in self.replies:
            if system_prompt.startswith(prefix):
                return prefix
        raise AssertionError(f"Unexpected system prompt: {system_prompt[:60]!r}")

    def calls_for(self, prefix: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["route"] == prefix]

    async def complete(self, system_prompt, user_prompt, max_output_tokens, retry_policy=None):
        route = self._route(system_prompt)
        self.calls.append(
            {
                "route": route,
                "user_prompt": user_prompt,
                "max_output_tokens": max_output_tokens,
                "retry_policy": retry_policy,
            }
        )
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(route, 0))
        finally:
            self.in_flight -= 1

        reply = self.replies[route]
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return reply(user_prompt)
        return reply
