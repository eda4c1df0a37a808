"""Map a fused crew result onto the denormalized analysis record.

The record is what storage and presentation consume: 1-10 scores per node and
use case, a trust-tax cost breakdown, and the three chart series (cognitive
load heatmap, trust-tax waterfall, horizons bubble).
"""

import math
from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from crew_engine.core.schemas_crew import (
    DocumentIntelligenceData,
    OrganizationProfile,
    ScenarioAnalysis,
)
from crew_engine.core.schemas_report import (
    AgenticPatternType,
    FusedCognitiveNode,
    FusedResult,
    FusedUseCase,
    HorizonsSummary,
)

PATTERN_NAMES: dict[str, str] = {
    "drafter-critic": "Drafter-Critic Loop",
    "reasoning-engine": "Reasoning Engine",
    "tool-user": "Tool User",
    "orchestrator": "The Orchestrator",
}

HORIZON_LABELS: dict[int, str] = {
    1: "Deflationary Core",
    2: "Augmented Workforce",
    3: "Strategic Optionality",
}

HUMAN_LOAD_SCORES = {"high": 9, "medium": 6, "low": 3}

WATERFALL_LABELS = ["Current Human Cost", "AI Efficiency Savings", "Trust Tax", "Final LCOAI"]
WATERFALL_COLORS = ["#001278", "#36bf78", "#f59e0b", "#02a2fd"]

DEFAULT_CURRENT_HUMAN_COST = 200_000
DEFAULT_TOTAL_SAVINGS = 100_000
DEFAULT_USE_CASE_SAVINGS = 50_000


class RecordCognitiveNode(BaseModel):
    id: str
    name: str
    description: str
    human_cognitive_load: int = Field(..., ge=1, le=10)
    ai_cognitive_load: int = Field(..., ge=1, le=10)
    translation_tax: str
    context_switching_cost: str


class RecordUseCase(BaseModel):
    id: str
    title: str
    pattern: AgenticPatternType
    pattern_name: str
    old_way: str
    agentic_way: str
    horizon: Literal[1, 2, 3]
    horizon_label: str
    data_readiness: int = Field(..., ge=1, le=10)
    business_value: int = Field(..., ge=1, le=10)
    implementation_risk: int = Field(..., ge=1, le=10)
    estimated_savings: str


class TrustTaxCostBreakdown(BaseModel):
    current_human_cost: float
    ai_efficiency_savings: float
    trust_tax_cost: int
    final_lcoai: int
    currency: str = "$"


class CognitiveLoadHeatmapData(BaseModel):
    labels: list[str]
    human_load: list[int]
    ai_load: list[int]


class TrustTaxWaterfallData(BaseModel):
    labels: list[str]
    values: list[float]
    colors: list[str]


class HorizonsBubblePoint(BaseModel):
    label: str
    x: int
    y: int
    r: int
    horizon: Literal[1, 2, 3]


class HorizonsBubbleData(BaseModel):
    use_cases: list[HorizonsBubblePoint]


class AnalysisRecord(BaseModel):
    """Denormalized analysis as stored and rendered."""

    id: str
    organization_profile: OrganizationProfile
    executive_summary: str
    recommendations: list[str] = Field(default_factory=list)
    risk_assessment: str = ""
    cognitive_nodes: list[RecordCognitiveNode]
    use_cases: list[RecordUseCase]
    trust_tax_breakdown: TrustTaxCostBreakdown
    horizons_summary: HorizonsSummary
    scenario_analysis: ScenarioAnalysis | None = None
    document_insights: DocumentIntelligenceData | None = None
    cognitive_load_data: CognitiveLoadHeatmapData
    trust_tax_data: TrustTaxWaterfallData
    horizons_bubble_data: HorizonsBubbleData
    created_at: str


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _score(value: float) -> int:
    """Round and clamp into the 1-10 score range."""
    return max(1, min(10, _round_half_up(value)))


def _horizon_number(horizon: str) -> Literal[1, 2, 3]:
    if horizon == "H1":
        return 1
    if horizon == "H2":
        return 2
    return 3


def build_record_node(node: FusedCognitiveNode, index: int) -> RecordCognitiveNode:
    description = node.description
    if node.document_evidence:
        description = f"{description} (Evidence: {node.document_evidence})"

    return RecordCognitiveNode(
        id=f"node-{index}",
        name=node.name,
        description=description,
        human_cognitive_load=HUMAN_LOAD_SCORES.get(node.cognitive_load, 3),
        ai_cognitive_load=_score((100 - node.automation_potential) / 10),
        translation_tax=f"Pattern: {node.agentic_pattern}",
        context_switching_cost=f"Data readiness: {node.data_readiness}",
    )


def build_record_use_case(use_case: FusedUseCase, index: int) -> RecordUseCase:
    savings = use_case.savings_amount or DEFAULT_USE_CASE_SAVINGS
    agentic_way = use_case.description
    if use_case.document_justification:
        agentic_way = f"{agentic_way} ({use_case.document_justification})"
    horizon = _horizon_number(use_case.horizon)

    return RecordUseCase(
        id=f"usecase-{index}",
        title=use_case.title,
        pattern=use_case.pattern,
        pattern_name=PATTERN_NAMES.get(use_case.pattern, "The Orchestrator"),
        old_way=use_case.current_state or "Legacy manual process",
        agentic_way=agentic_way,
        horizon=horizon,
        horizon_label=HORIZON_LABELS[horizon],
        data_readiness=_score(7 - use_case.trust_tax_percent / 15),
        business_value=_score(savings / 25_000 + 3),
        implementation_risk=_score(use_case.payback_months / 4),
        estimated_savings=f"${savings:,.0f}/year",
    )


def build_trust_tax_costs(fused: FusedResult) -> TrustTaxCostBreakdown:
    """Current cost, savings, trust-tax cost and final LCOAI for the portfolio."""
    breakdown = fused.trust_tax_breakdown
    total_savings = fused.total_projected_savings or DEFAULT_TOTAL_SAVINGS
    avg_trust_tax = (
        breakdown.human_review
        + breakdown.error_correction
        + breakdown.compliance_overhead
        + breakdown.training_maintenance
    ) / 4

    return TrustTaxCostBreakdown(
        current_human_cost=fused.total_current_cost or DEFAULT_CURRENT_HUMAN_COST,
        ai_efficiency_savings=total_savings,
        trust_tax_cost=_round_half_up(total_savings * avg_trust_tax / 100),
        final_lcoai=_round_half_up(total_savings * (1 - avg_trust_tax / 100)),
    )


def build_analysis_record(
    fused: FusedResult,
    profile: OrganizationProfile,
    *,
    executive_summary: str | None = None,
    record_id: str | None = None,
    created_at: datetime | None = None,
) -> AnalysisRecord:
    """
    Build the stored/presented record for one analysis.

    Args:
        fused: Normalized crew result
        profile: Organization profile the analysis ran for
        executive_summary: Replacement summary (e.g. the tone-polished one)
        record_id: Record id (random UUID if omitted)
        created_at: Creation time (now, UTC, if omitted)

    Returns:
        AnalysisRecord with scores and chart series derived from ``fused``
    """
    nodes = [build_record_node(n, i) for i, n in enumerate(fused.cognitive_nodes)]
    use_cases = [build_record_use_case(uc, i) for i, uc in enumerate(fused.use_cases)]
    costs = build_trust_tax_costs(fused)

    return AnalysisRecord(
        id=record_id or str(uuid4()),
        organization_profile=profile,
        executive_summary=executive_summary or fused.executive_summary,
        recommendations=list(fused.recommendations),
        risk_assessment=fused.risk_assessment,
        cognitive_nodes=nodes,
        use_cases=use_cases,
        trust_tax_breakdown=costs,
        horizons_summary=fused.horizons_summary,
        scenario_analysis=fused.scenario_analysis,
        document_insights=fused.document_insights,
        cognitive_load_data=CognitiveLoadHeatmapData(
            labels=[n.name for n in nodes],
            human_load=[n.human_cognitive_load for n in nodes],
            ai_load=[n.ai_cognitive_load for n in nodes],
        ),
        trust_tax_data=TrustTaxWaterfallData(
            labels=list(WATERFALL_LABELS),
            values=[
                costs.current_human_cost,
                -costs.ai_efficiency_savings,
                costs.trust_tax_cost,
                costs.final_lcoai,
            ],
            colors=list(WATERFALL_COLORS),
        ),
        horizons_bubble_data=HorizonsBubbleData(
            use_cases=[
                HorizonsBubblePoint(
                    label=uc.title,
                    x=uc.data_readiness,
                    y=uc.business_value,
                    r=uc.implementation_risk,
                    horizon=uc.horizon,
                )
                for uc in use_cases
            ]
        ),
        created_at=(created_at or datetime.now(timezone.utc)).isoformat(),
    )
