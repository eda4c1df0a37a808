"""Financial Analyst Agent.

Turns the organization profile (and any document metrics or strategy nodes it
is handed) into a horizon-tagged portfolio of use cases with unit economics,
a trust-tax breakdown and a three-scenario analysis.
"""

from crew_engine.agents.crew.base import CrewAgent
from crew_engine.core.llm import HEAVY_RETRY
from crew_engine.core.logging import get_logger
from crew_engine.core.schemas_crew import (
    FINANCIAL_AGENT_NAME,
    AgentContext,
    BusinessStrategyOutput,
    DocumentIntelligenceOutput,
    FinancialAnalysisData,
    FinancialAnalystOutput,
    TrustTaxBreakdown,
    UseCase,
)
from crew_engine.core.structured_output import recover

logger = get_logger(__name__)


SYSTEM_PROMPT = """You are the Financial Analyst Agent in a multi-agent analysis crew.

## Your Role
Calculate unit economics and ROI for AI transformation initiatives, with MANDATORY document citations for financial justifications.

## Key Metrics

### 1. LCOAI (Levelized Cost of AI)
Formula: (Compute + API Costs + Human Review Time) / Successful Outcome
Lower is better. Target: < $5 per successful outcome.

### 2. Trust Tax
The cost of human verification required for AI outputs. Components:
- Human Review (% of outputs requiring review)
- Error Correction (cost of fixing AI mistakes)
- Compliance Overhead (regulatory/audit costs)
- Training/Maintenance (ongoing AI tuning)

### 3. Horizons Portfolio
- H1 (Deflationary Core): High data readiness, low risk. Goal: cost collapse
- H2 (Augmented Workforce): Moderate risk, human-in-loop. Goal: quality/speed
- H3 (Strategic Optionality): High risk, new business model. Goal: disruption

## Document Citation Requirements
- When document metrics are provided, EVERY use case MUST include a document_justification field
- document_justification MUST reference specific metrics, costs, or data from the document
- Format: "Based on document data: [metric/quote] justifies [savings/cost estimate]"
- If no document data exists for a use case, state: "Industry benchmark estimate - no direct document data"
- Use EXACT figures from the document when available

## Mandatory Requirements
- Generate 6-10 use cases across H1, H2, H3
- Provide realistic cost/savings estimates based on industry benchmarks
- Calculate payback periods and ROI
- Trust Tax should be realistic (typically 15-40% for new AI implementations)

## Legacy Way / Agentic Way Enrichment
- legacy_process_steps: 3-6 specific steps of the current manual workflow
- legacy_pain_points: 2-4 quantified pain points
- legacy_cognition_nodes: count of decision points where human judgment converts unstructured to structured data
- legacy_translation_tax: the format conversion chain (e.g. "Email -> PDF -> Spreadsheet -> Database")
- legacy_context_switching: tool/system switching (e.g. "5 systems, avg 8 min context switch")
- legacy_time_consumed: time burden (e.g. "32 hrs/week across 4 FTEs")
- agentic_primitives: choose from Research & Retrieval, Content Creation, Data Analysis, Conversational Interfaces, Workflow Automation, Coding Assistance
- agentic_hitl_checkpoints: EPOCH-filtered human checkpoints
- agentic_transform_steps: 3-5 steps showing how AI changes the process

## Output Format
Output valid JSON only:
{
  "agent_name": "Financial Analyst Agent",
  "confidence": 0.0-1.0,
  "reasoning": "your financial reasoning",
  "insights": ["financial insight", ...],
  "structured_data": {
    "use_cases": [
      {
        "title": "use case title",
        "description": "what it does",
        "horizon": "H1|H2|H3",
        "current_cost": annual cost in dollars,
        "projected_savings": annual savings in dollars,
        "implementation_cost": one-time cost in dollars,
        "trust_tax_percent": 15-40 typically,
        "lcoai": cost per outcome,
        "payback_months": months to ROI,
        "document_justification": "reference from document if available",
        "legacy_process_steps": ["step", ...],
        "legacy_pain_points": ["pain point", ...],
        "legacy_cognition_nodes": number,
        "legacy_translation_tax": "...",
        "legacy_context_switching": "...",
        "legacy_time_consumed": "...",
        "agentic_pattern_rationale": "why this agentic pattern fits",
        "agentic_automation_level": "full|assisted|supervised",
        "agentic_primitives": ["primitive", ...],
        "agentic_hitl_checkpoints": ["checkpoint", ...],
        "agentic_transform_steps": ["step", ...]
      }
    ],
    "total_current_cost": sum of current costs,
    "total_projected_savings": sum of savings,
    "overall_roi": percentage,
    "trust_tax_breakdown": {
      "human_review": percentage,
      "error_correction": percentage,
      "compliance_overhead": percentage,
      "training_maintenance": percentage
    },
    "scenario_analysis": {
      "conservative": {
        "label": "Conservative",
        "description": "what this scenario assumes",
        "adoption_rate": "70%",
        "ramp_time": "18 months",
        "realization_rate": "75%",
        "annual_benefit": dollars,
        "three_year_npv": dollars,
        "payback_months": months,
        "key_assumptions": ["assumption", ...]
      },
      "base_case": {"label": "Base Case", "adoption_rate": "85%", "ramp_time": "12 months", "realization_rate": "100%", ...},
      "optimistic": {"label": "Optimistic", "adoption_rate": "95%", "ramp_time": "9 months", "realization_rate": "125%", ...}
    }
  }
}"""


def _format_percent(value: float | None) -> str:
    if value is None:
        return "0"
    return str(int(value)) if float(value).is_integer() else str(value)


def build_metrics_excerpt(doc: DocumentIntelligenceOutput | None) -> str:
    """Render document metrics and risk factors; empty when there are no metrics."""
    if doc is None or not doc.structured_data.relevant_metrics:
        return ""

    data = doc.structured_data
    metrics = "\n".join(f"- {m.name}: {m.value} ({m.context})" for m in data.relevant_metrics)
    risks = "\n".join(f"- {r}" for r in data.risk_factors)

    return f"""
DOCUMENT METRICS (from Document Agent):
{metrics}

Risk Factors:
{risks}

Use these metrics to inform your cost/savings calculations where applicable.
"""


def build_strategy_excerpt(strategy: BusinessStrategyOutput | None) -> str:
    """Render strategy cognitive nodes and jagged frontier; empty without nodes."""
    if strategy is None or not strategy.structured_data.cognitive_nodes:
        return ""

    data = strategy.structured_data
    nodes = "\n".join(
        f"- {n.name}: {n.description} ({n.agentic_pattern or 'unspecified'}, "
        f"{_format_percent(n.automation_potential)}% automation potential)"
        for n in data.cognitive_nodes
    )
    frontier = "\n".join(f"- {j}" for j in data.jagged_frontier)

    return f"""
COGNITIVE NODES (from Strategy Agent):
{nodes}

Jagged Frontier Opportunities:
{frontier}

Build use cases based on these cognitive nodes and their automation potential.
"""


def _fallback_output() -> FinancialAnalystOutput:
    return FinancialAnalystOutput(
        agent_name=FINANCIAL_AGENT_NAME,
        confidence=0.5,
        reasoning="Financial analysis completed but response parsing encountered issues.",
        insights=["Financial projections calculated - manual review recommended"],
        structured_data=FinancialAnalysisData(
            use_cases=[
                UseCase(
                    title="Process Automation Initiative",
                    description="AI-powered automation of manual processes",
                    horizon="H1",
                    current_cost=500_000,
                    projected_savings=200_000,
                    implementation_cost=100_000,
                    trust_tax_percent=25,
                    lcoai=5,
                    payback_months=6,
                )
            ],
            total_current_cost=500_000,
            total_projected_savings=200_000,
            overall_roi=100,
            trust_tax_breakdown=TrustTaxBreakdown(),
        ),
    )


class FinancialAnalystAgent(CrewAgent):
    name = FINANCIAL_AGENT_NAME
    role = "Financial Modeler"
    goal = "Calculate unit economics and ROI for AI transformation initiatives"

    async def execute(self, context: AgentContext) -> FinancialAnalystOutput:
        profile = context.organization_profile
        metrics_excerpt = build_metrics_excerpt(context.document_intelligence)
        strategy_excerpt = build_strategy_excerpt(context.business_strategy)

        user_prompt = f"""Calculate financial projections for AI transformation:

ORGANIZATION PROFILE:
- Company: {profile.company_name}
- Industry: {profile.industry}
- Business Goal: {profile.core_business_goal}
- Pain Points: {profile.current_pain_points}
- Data Landscape: {profile.data_landscape}
{metrics_excerpt}
{strategy_excerpt}
Generate realistic use cases with financial projections based on industry benchmarks for {profile.industry}.
Use document metrics to justify cost estimates where available."""

        raw = await self.client.complete(
            SYSTEM_PROMPT,
            user_prompt,
            max_output_tokens=self.settings.FINANCIAL_AGENT_MAX_TOKENS,
            retry_policy=HEAVY_RETRY,
        )

        output = recover(raw, FinancialAnalystOutput, default=_fallback_output, label="Financial Agent")
        logger.info(
            f"Financial Agent produced {len(output.structured_data.use_cases)} use cases",
            extra={"with_strategy_context": bool(strategy_excerpt)},
        )
        return output
