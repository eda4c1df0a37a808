"""Pydantic schemas for the fused, caller-facing analysis result."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from crew_engine.core.schemas_crew import (
    DocumentIntelligenceData,
    EpochFilters,
    ScenarioAnalysis,
    TrustTaxBreakdown,
)

Horizon = Literal["H1", "H2", "H3"]
LoadLevel = Literal["high", "medium", "low"]
AgenticPatternType = Literal["drafter-critic", "reasoning-engine", "orchestrator", "tool-user"]


class FusedCognitiveNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    cognitive_load: LoadLevel
    data_readiness: LoadLevel
    agentic_pattern: str
    automation_potential: int = Field(..., ge=0, le=100)
    document_evidence: str | None = None


class FusedUseCase(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    horizon: Horizon
    pattern: AgenticPatternType
    current_cost: float
    current_state: str
    ai_solution: str
    expected_outcome: str
    savings_amount: float
    implementation_cost: float
    payback_months: float
    trust_tax_percent: float = Field(..., ge=0, le=100)
    lcoai: float
    document_justification: str | None = None

    legacy_process_steps: list[str] = Field(default_factory=list)
    legacy_pain_points: list[str] = Field(default_factory=list)
    legacy_cognition_nodes: int | None = None
    legacy_translation_tax: str | None = None
    legacy_context_switching: str | None = None
    legacy_time_consumed: str | None = None
    agentic_pattern_rationale: str | None = None
    agentic_automation_level: str | None = None
    agentic_primitives: list[str] = Field(default_factory=list)
    agentic_hitl_checkpoints: list[str] = Field(default_factory=list)
    agentic_transform_steps: list[str] = Field(default_factory=list)


class HorizonsSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    h1_count: int = 0
    h2_count: int = 0
    h3_count: int = 0
    h1_savings: float = 0.0
    h2_savings: float = 0.0
    h3_savings: float = 0.0


class FusedResult(BaseModel):
    """Denormalized result consumed by storage and presentation."""

    model_config = ConfigDict(frozen=True)

    executive_summary: str
    recommendations: list[str] = Field(default_factory=list)
    risk_assessment: str = ""
    cognitive_nodes: list[FusedCognitiveNode] = Field(default_factory=list)
    use_cases: list[FusedUseCase] = Field(default_factory=list)
    trust_tax_breakdown: TrustTaxBreakdown
    horizons_summary: HorizonsSummary
    epoch_filters: EpochFilters = Field(default_factory=EpochFilters)
    jagged_frontier: list[str] = Field(default_factory=list)
    total_current_cost: float = 0.0
    total_projected_savings: float = 0.0
    overall_roi: float = 0.0
    scenario_analysis: ScenarioAnalysis | None = None
    document_insights: DocumentIntelligenceData | None = None
    agent_confidence: dict[str, float] = Field(default_factory=dict)
