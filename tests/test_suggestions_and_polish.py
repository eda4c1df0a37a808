"""Tests for the profile suggestions chain and the executive tone editor."""

import json

import pytest

from crew_engine.chains.generate_suggestions import generate_suggestions
from crew_engine.chains.polish_summary import polish_summary
from crew_engine.core.llm import EDITOR_RETRY, LIGHT_RETRY, ServiceError
from crew_engine.core.structured_output import RecoveryExhausted
from tests.fakes.fake_generation import SUGGESTIONS, TONE_EDITOR, FakeGenerationClient
from tests.fixtures_crew import SUGGESTIONS_REPLY, fenced

# =============================================================================
# Suggestions
# =============================================================================


class TestGenerateSuggestions:
    @pytest.mark.asyncio
    async def test_returns_parsed_suggestions(self):
        client = FakeGenerationClient({SUGGESTIONS: fenced(SUGGESTIONS_REPLY)})

        result = await generate_suggestions("  Acme Logistics ", "Logistics", client=client)

        assert result.industry == "Logistics & Supply Chain"
        assert result.core_business_goal == SUGGESTIONS_REPLY["core_business_goal"]
        call = client.calls[0]
        assert 'company: "Acme Logistics" (Industry: Logistics)' in call["user_prompt"]
        assert call["retry_policy"] == LIGHT_RETRY

    @pytest.mark.asyncio
    async def test_short_company_name_rejected_without_call(self):
        client = FakeGenerationClient({SUGGESTIONS: fenced(SUGGESTIONS_REPLY)})

        with pytest.raises(ValueError):
            await generate_suggestions(" A ", client=client)
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_unparseable_reply_raises(self):
        client = FakeGenerationClient({SUGGESTIONS: "Acme is a logistics company."})

        with pytest.raises(RecoveryExhausted):
            await generate_suggestions("Acme", client=client)


# =============================================================================
# Tone editor
# =============================================================================


class TestPolishSummary:
    @pytest.mark.asyncio
    async def test_returns_polished_summary(self):
        client = FakeGenerationClient(
            {TONE_EDITOR: json.dumps({"executive_summary": "Calm, polished text."})}
        )

        result = await polish_summary("Brutal truth: costs are $2.3M.", client=client)

        assert result == "Calm, polished text."
        call = client.calls[0]
        assert '{"executive_summary": "Brutal truth: costs are $2.3M."}' in call["user_prompt"]
        assert call["retry_policy"] == EDITOR_RETRY

    @pytest.mark.asyncio
    async def test_service_failure_keeps_original(self):
        client = FakeGenerationClient({TONE_EDITOR: ServiceError("down", kind="transient")})

        assert await polish_summary("Original", client=client) == "Original"

    @pytest.mark.asyncio
    async def test_unparseable_reply_keeps_original(self):
        client = FakeGenerationClient({TONE_EDITOR: "Here is a nicer version: ..."})

        assert await polish_summary("Original", client=client) == "Original"

    @pytest.mark.asyncio
    async def test_empty_summary_in_reply_keeps_original(self):
        client = FakeGenerationClient({TONE_EDITOR: '{"summary": "wrong key"}'})

        assert await polish_summary("Original", client=client) == "Original"
