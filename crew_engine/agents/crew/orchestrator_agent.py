"""Executive Orchestrator Agent.

Synthesizes the three analytical outputs into a board-ready executive brief.
Unlike the other agents it has no fallback: if no structured reply can be
recovered the run fails.
"""

from crew_engine.agents.crew.base import CrewAgent
from crew_engine.core.llm import HEAVY_RETRY
from crew_engine.core.logging import get_logger
from crew_engine.core.schemas_crew import (
    ORCHESTRATOR_AGENT_NAME,
    AgentContext,
    BusinessStrategyOutput,
    DocumentIntelligenceOutput,
    FinancialAnalystOutput,
    SynthesisOutput,
)
from crew_engine.core.structured_output import recover

logger = get_logger(__name__)


SYSTEM_PROMPT = """You are the Executive Orchestrator Agent synthesizing outputs from a multi-agent analysis crew.

## Your Role
Combine insights from the Document Intelligence, Business Strategy and Financial Analysis agents into a cohesive executive brief that PROMINENTLY CITES DOCUMENT EVIDENCE.

## Agents In Your Crew
1. Document Intelligence Agent - extracted key findings from uploaded documents
2. Business Strategy Agent - applied the Cognitive Zero-Base framework
3. Financial Analyst Agent - calculated unit economics and ROI

## Document Citation Requirements
- When document findings are provided, the executive summary MUST cite them directly
- Include at least 2-3 direct references to document data in the executive summary
- Format citations as: "According to the provided documentation, [specific quote or metric]..."
- The first paragraph MUST acknowledge the document analysis
- If no document was provided, acknowledge that recommendations are based on the organizational profile alone

## Requirements
- The executive summary should be 3-4 paragraphs with embedded document citations
- Highlight top recommendations with document-backed rationale
- Provide an honest risk assessment citing document risk factors when available
- Use board-ready, professional language

## Output Format
Output valid JSON only:
{
  "executive_summary": "3-4 paragraph executive summary WITH document citations embedded",
  "recommendations": ["recommendation citing document evidence", ...],
  "risk_assessment": "honest assessment referencing document risk factors"
}"""


def _join_or(items: list[str], fallback: str) -> str:
    return "; ".join(items) if items else fallback


def _format_number(value: float | None) -> str:
    if value is None:
        return "0"
    return str(int(value)) if float(value).is_integer() else str(value)


def build_synthesis_prompt(
    context: AgentContext,
    doc: DocumentIntelligenceOutput,
    strategy: BusinessStrategyOutput,
    financial: FinancialAnalystOutput,
) -> str:
    """Render the three analytical outputs into the synthesis user prompt."""
    profile = context.organization_profile
    doc_data = doc.structured_data
    strategy_data = strategy.structured_data
    financial_data = financial.structured_data
    trust_tax = financial_data.trust_tax_breakdown

    top_nodes = "; ".join(
        f"{n.name} ({n.agentic_pattern or 'unspecified'}, {_format_number(n.automation_potential)}%)"
        for n in strategy_data.cognitive_nodes[:3]
    )
    metrics = [f"{m.name}: {m.value}" for m in doc_data.relevant_metrics]
    trust_tax_line = (
        f"Human Review {_format_number(trust_tax.human_review)}%, "
        f"Error Correction {_format_number(trust_tax.error_correction)}%"
        if trust_tax is not None
        else "Human Review 0%, Error Correction 0%"
    )

    return f"""Synthesize these agent outputs into an executive brief:

ORGANIZATION: {profile.company_name} ({profile.industry})

DOCUMENT INTELLIGENCE AGENT OUTPUT:
Key Findings: {_join_or(doc_data.key_findings, "No document provided")}
Metrics: {_join_or(metrics, "N/A")}
Opportunities: {_join_or(doc_data.opportunities, "To be identified")}
Risk Factors: {_join_or(doc_data.risk_factors, "To be assessed")}

BUSINESS STRATEGY AGENT OUTPUT:
Cognitive Nodes Identified: {len(strategy_data.cognitive_nodes)}
Top Nodes: {top_nodes or "Processing..."}
Jagged Frontier: {_join_or(strategy_data.jagged_frontier, "Being mapped")}
Strategic Insights: {_join_or(strategy.insights, "Analysis in progress")}

FINANCIAL ANALYST AGENT OUTPUT:
Use Cases: {len(financial_data.use_cases)}
Total Current Cost: ${financial_data.total_current_cost:,.0f}
Total Projected Savings: ${financial_data.total_projected_savings:,.0f}
Overall ROI: {_format_number(financial_data.overall_roi)}%
Trust Tax Breakdown: {trust_tax_line}

Create a compelling executive summary that weaves together document insights, strategic opportunities, and financial projections."""


class ExecutiveOrchestratorAgent(CrewAgent):
    name = ORCHESTRATOR_AGENT_NAME
    role = "Executive Synthesizer"
    goal = "Synthesize crew outputs into a board-ready executive brief"

    async def execute(self, context: AgentContext) -> SynthesisOutput:
        if (
            context.document_intelligence is None
            or context.business_strategy is None
            or context.financial_analysis is None
        ):
            raise ValueError("Synthesis requires document, strategy and financial outputs")

        user_prompt = build_synthesis_prompt(
            context,
            context.document_intelligence,
            context.business_strategy,
            context.financial_analysis,
        )

        raw = await self.client.complete(
            SYSTEM_PROMPT,
            user_prompt,
            max_output_tokens=self.settings.SYNTHESIS_MAX_TOKENS,
            retry_policy=HEAVY_RETRY,
        )

        # No default: an unrecoverable synthesis aborts the run
        synthesis = recover(raw, SynthesisOutput, label="Orchestrator")
        logger.info(f"Synthesis complete with {len(synthesis.recommendations)} recommendations")
        return synthesis
