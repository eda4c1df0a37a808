"""Tests for the four crew agents.

Each agent is driven by a fake generation client; no network.
"""

import pytest

from crew_engine.agents.crew import (
    BusinessStrategyAgent,
    DocumentIntelligenceAgent,
    ExecutiveOrchestratorAgent,
    FinancialAnalystAgent,
)
from crew_engine.agents.crew.document_agent import TRUNCATION_MARKER, truncate_document
from crew_engine.core.config import Settings
from crew_engine.core.llm import HEAVY_RETRY, ServiceError
from crew_engine.core.schemas_crew import (
    AgentContext,
    BusinessStrategyData,
    BusinessStrategyOutput,
    CognitiveNode,
    DocumentIntelligenceOutput,
    FinancialAnalystOutput,
)
from crew_engine.core.structured_output import RecoveryExhausted
from tests.fakes.fake_generation import (
    DOCUMENT,
    FINANCIAL,
    ORCHESTRATOR,
    STRATEGY,
    FakeGenerationClient,
)
from tests.fixtures_crew import (
    DOCUMENT_REPLY,
    DOCUMENT_TEXT,
    FINANCIAL_REPLY,
    STRATEGY_REPLY,
    SYNTHESIS_REPLY,
    as_json,
    fenced,
)

SETTINGS = Settings(ANTHROPIC_API_KEY="test-key", MAX_DOCUMENT_CHARS=100)


def _context(profile, **kwargs):
    return AgentContext(organization_profile=profile, **kwargs)


# =============================================================================
# Document Intelligence Agent
# =============================================================================


class TestDocumentIntelligenceAgent:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("document", [None, "", "   \n\t "])
    async def test_no_document_skips_generation(self, profile, document):
        client = FakeGenerationClient({DOCUMENT: as_json(DOCUMENT_REPLY)})
        agent = DocumentIntelligenceAgent(client, SETTINGS)

        output = await agent.execute(_context(profile, document_content=document))

        assert client.calls == []
        assert output.confidence == 0
        assert output.insights == ["No document uploaded - analysis based on form inputs only"]
        assert output.structured_data.key_findings == []
        assert output.structured_data.relevant_metrics == []

    @pytest.mark.asyncio
    async def test_parses_fenced_reply(self, profile):
        client = FakeGenerationClient({DOCUMENT: fenced(DOCUMENT_REPLY)})
        agent = DocumentIntelligenceAgent(client, SETTINGS)

        output = await agent.execute(
            _context(profile, document_content=DOCUMENT_TEXT, document_name="report.pdf")
        )

        assert output.confidence == 0.85
        assert len(output.structured_data.key_findings) == 2
        call = client.calls[0]
        assert "DOCUMENT NAME: report.pdf" in call["user_prompt"]
        assert DOCUMENT_TEXT in call["user_prompt"]
        assert call["retry_policy"] == HEAVY_RETRY
        assert call["max_output_tokens"] == SETTINGS.DOCUMENT_AGENT_MAX_TOKENS

    @pytest.mark.asyncio
    async def test_long_document_is_truncated_in_prompt(self, profile):
        client = FakeGenerationClient({DOCUMENT: as_json(DOCUMENT_REPLY)})
        agent = DocumentIntelligenceAgent(client, SETTINGS)

        await agent.execute(_context(profile, document_content="x" * 500))

        prompt = client.calls[0]["user_prompt"]
        assert "x" * 100 + TRUNCATION_MARKER in prompt
        assert "x" * 101 not in prompt

    @pytest.mark.asyncio
    async def test_unparseable_reply_returns_fallback(self, profile):
        client = FakeGenerationClient({DOCUMENT: "I could not read the document, sorry."})
        agent = DocumentIntelligenceAgent(client, SETTINGS)

        output = await agent.execute(_context(profile, document_content="short doc"))

        assert output.confidence == 0.5
        assert output.structured_data.key_findings == [
            "Document provided for analysis - content length: 9 characters",
            "Document name: Uploaded Document",
        ]

    @pytest.mark.asyncio
    async def test_service_error_propagates(self, profile):
        client = FakeGenerationClient({DOCUMENT: ServiceError("overloaded", kind="transient")})
        agent = DocumentIntelligenceAgent(client, SETTINGS)

        with pytest.raises(ServiceError):
            await agent.execute(_context(profile, document_content=DOCUMENT_TEXT))


def test_truncate_document_keeps_short_text():
    assert truncate_document("abc", 10) == "abc"


# =============================================================================
# Business Strategy Agent
# =============================================================================


class TestBusinessStrategyAgent:
    @pytest.mark.asyncio
    async def test_prompt_includes_document_findings(self, profile):
        client = FakeGenerationClient({STRATEGY: as_json(STRATEGY_REPLY)})
        agent = BusinessStrategyAgent(client, SETTINGS)
        doc = DocumentIntelligenceOutput.model_validate(DOCUMENT_REPLY)

        output = await agent.execute(_context(profile, document_intelligence=doc))

        prompt = client.calls[0]["user_prompt"]
        assert "DOCUMENT INTELLIGENCE (from Document Agent)" in prompt
        assert "- Invoice cost: $2.3M (annual)" in prompt
        assert "- Automated invoice matching" in prompt
        assert len(output.structured_data.cognitive_nodes) == 2

    @pytest.mark.asyncio
    async def test_prompt_omits_document_section_without_findings(self, profile):
        client = FakeGenerationClient({STRATEGY: as_json(STRATEGY_REPLY)})
        agent = BusinessStrategyAgent(client, SETTINGS)

        await agent.execute(_context(profile, document_intelligence=DocumentIntelligenceOutput()))

        prompt = client.calls[0]["user_prompt"]
        assert "DOCUMENT INTELLIGENCE" not in prompt
        assert f"- Company: {profile.company_name}" in prompt

    @pytest.mark.asyncio
    async def test_unparseable_reply_returns_fallback(self, profile):
        client = FakeGenerationClient({STRATEGY: "```json\n{\"cognitive_nodes\": [ ..."})
        agent = BusinessStrategyAgent(client, SETTINGS)

        output = await agent.execute(_context(profile))

        nodes = output.structured_data.cognitive_nodes
        assert len(nodes) == 1
        assert nodes[0].name == "Manual Process Review"
        assert nodes[0].agentic_pattern == "Orchestrator"
        assert nodes[0].automation_potential == 60
        assert output.confidence == 0.5


# =============================================================================
# Financial Analyst Agent
# =============================================================================


class TestFinancialAnalystAgent:
    @pytest.mark.asyncio
    async def test_prompt_includes_metrics_and_strategy_nodes(self, profile):
        client = FakeGenerationClient({FINANCIAL: as_json(FINANCIAL_REPLY)})
        agent = FinancialAnalystAgent(client, SETTINGS)
        doc = DocumentIntelligenceOutput.model_validate(DOCUMENT_REPLY)
        strategy = BusinessStrategyOutput.model_validate(STRATEGY_REPLY)

        await agent.execute(
            _context(profile, document_intelligence=doc, business_strategy=strategy)
        )

        prompt = client.calls[0]["user_prompt"]
        assert "DOCUMENT METRICS (from Document Agent)" in prompt
        assert "- Legacy ERP integration" in prompt
        assert "COGNITIVE NODES (from Strategy Agent)" in prompt
        assert (
            "- Invoice Matching: Match invoices to POs and receipts "
            "(Tool User, 80% automation potential)"
        ) in prompt
        assert "- Three-way matching" in prompt

    @pytest.mark.asyncio
    async def test_prompt_lists_every_strategy_node(self, profile):
        client = FakeGenerationClient({FINANCIAL: as_json(FINANCIAL_REPLY)})
        agent = FinancialAnalystAgent(client, SETTINGS)
        strategy = BusinessStrategyOutput(
            structured_data=BusinessStrategyData(
                cognitive_nodes=[
                    CognitiveNode(name="Invoice Matching", automation_potential=90),
                    CognitiveNode(name="Vendor Negotiation Prep", automation_potential=40),
                    CognitiveNode(name="Board Reporting", automation_potential=10),
                ]
            )
        )

        await agent.execute(_context(profile, business_strategy=strategy))

        prompt = client.calls[0]["user_prompt"]
        assert "Invoice Matching" in prompt
        assert "Vendor Negotiation Prep" in prompt
        assert "Board Reporting" in prompt
        assert "90% automation potential" in prompt
        assert "40% automation potential" in prompt
        assert "10% automation potential" in prompt

    @pytest.mark.asyncio
    async def test_prompt_without_strategy_has_no_node_section(self, profile):
        client = FakeGenerationClient({FINANCIAL: as_json(FINANCIAL_REPLY)})
        agent = FinancialAnalystAgent(client, SETTINGS)

        output = await agent.execute(_context(profile))

        prompt = client.calls[0]["user_prompt"]
        assert "COGNITIVE NODES" not in prompt
        assert "DOCUMENT METRICS" not in prompt
        assert output.structured_data.overall_roi == 180

    @pytest.mark.asyncio
    async def test_unparseable_reply_returns_fallback(self, profile):
        client = FakeGenerationClient({FINANCIAL: ""})
        agent = FinancialAnalystAgent(client, SETTINGS)

        output = await agent.execute(_context(profile))

        use_case = output.structured_data.use_cases[0]
        assert use_case.title == "Process Automation Initiative"
        assert use_case.horizon == "H1"
        assert output.structured_data.trust_tax_breakdown.human_review == 20


# =============================================================================
# Executive Orchestrator Agent
# =============================================================================


def _analysis_context(profile):
    return _context(
        profile,
        document_intelligence=DocumentIntelligenceOutput.model_validate(DOCUMENT_REPLY),
        business_strategy=BusinessStrategyOutput.model_validate(STRATEGY_REPLY),
        financial_analysis=FinancialAnalystOutput.model_validate(FINANCIAL_REPLY),
    )


class TestExecutiveOrchestratorAgent:
    @pytest.mark.asyncio
    async def test_synthesis_prompt_summarizes_outputs(self, profile):
        client = FakeGenerationClient({ORCHESTRATOR: as_json(SYNTHESIS_REPLY)})
        agent = ExecutiveOrchestratorAgent(client, SETTINGS)

        output = await agent.execute(_analysis_context(profile))

        assert output.executive_summary.startswith("According to the provided documentation")
        prompt = client.calls[0]["user_prompt"]
        assert "Cognitive Nodes Identified: 2" in prompt
        assert "Total Current Cost: $2,700,000" in prompt
        assert "Overall ROI: 180%" in prompt
        assert "Trust Tax Breakdown: Human Review 20%, Error Correction 10%" in prompt
        assert client.calls[0]["max_output_tokens"] == SETTINGS.SYNTHESIS_MAX_TOKENS

    @pytest.mark.asyncio
    async def test_empty_outputs_use_placeholders(self, profile):
        client = FakeGenerationClient({ORCHESTRATOR: as_json(SYNTHESIS_REPLY)})
        agent = ExecutiveOrchestratorAgent(client, SETTINGS)
        context = _context(
            profile,
            document_intelligence=DocumentIntelligenceOutput(),
            business_strategy=BusinessStrategyOutput(),
            financial_analysis=FinancialAnalystOutput(),
        )

        await agent.execute(context)

        prompt = client.calls[0]["user_prompt"]
        assert "Key Findings: No document provided" in prompt
        assert "Top Nodes: Processing..." in prompt
        assert "Jagged Frontier: Being mapped" in prompt

    @pytest.mark.asyncio
    async def test_unparseable_synthesis_raises(self, profile):
        client = FakeGenerationClient({ORCHESTRATOR: "Here is my summary in prose."})
        agent = ExecutiveOrchestratorAgent(client, SETTINGS)

        with pytest.raises(RecoveryExhausted):
            await agent.execute(_analysis_context(profile))

    @pytest.mark.asyncio
    async def test_requires_all_prior_outputs(self, profile):
        client = FakeGenerationClient({ORCHESTRATOR: as_json(SYNTHESIS_REPLY)})
        agent = ExecutiveOrchestratorAgent(client, SETTINGS)

        with pytest.raises(ValueError):
            await agent.execute(_context(profile))
        assert client.calls == []
