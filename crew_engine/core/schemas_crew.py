"""Pydantic schemas for the agent crew.

Agent outputs are parsed from generator JSON, so every model here is lenient:
unknown keys are ignored, explicit nulls fall back to field defaults, and
numbers are accepted where text is expected. Keys may arrive in snake_case or
camelCase, and loosely formatted numbers ("70%", "$1,200,000") are parsed,
with unparseable or non-finite values falling back to the field default.
Range checks are absent; the normalizer clamps bounded values.
"""

import math
from typing import Annotated, Any

from pydantic import AliasGenerator, BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

DOCUMENT_AGENT_NAME = "Document Intelligence Agent"
STRATEGY_AGENT_NAME = "Business Strategy Agent"
FINANCIAL_AGENT_NAME = "Financial Analyst Agent"
ORCHESTRATOR_AGENT_NAME = "Executive Orchestrator Agent"


def _lenient_number(default: float | None) -> BeforeValidator:
    """Accept "70%", "$1,200,000" and similar; anything unusable becomes ``default``."""

    def parse(value: Any) -> Any:
        if isinstance(value, bool):
            return default
        if isinstance(value, str):
            cleaned = value.replace(",", "").replace("$", "").replace("%", "").strip()
            try:
                value = float(cleaned)
            except ValueError:
                return default
        if isinstance(value, (int, float)):
            try:
                number = float(value)
            except OverflowError:
                return default
            return number if math.isfinite(number) else default
        return default

    return BeforeValidator(parse)


Number = Annotated[float, _lenient_number(0.0)]
OptionalNumber = Annotated[float | None, _lenient_number(None)]


class CrewModel(BaseModel):
    """Base for generator-produced structures."""

    model_config = ConfigDict(
        extra="ignore",
        coerce_numbers_to_str=True,
        frozen=True,
        alias_generator=AliasGenerator(validation_alias=to_camel),
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # null means "not provided"; let the field default apply
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


# =============================================================================
# Input
# =============================================================================


class OrganizationProfile(BaseModel):
    """Caller-supplied description of the organization under analysis."""

    model_config = ConfigDict(str_strip_whitespace=True)

    company_name: str = Field(..., min_length=1, description="Company name")
    industry: str = Field(..., min_length=1, description="Industry")
    core_business_goal: str = Field(..., min_length=1, description="Core business goal")
    current_pain_points: str = Field(..., min_length=1, description="Current pain points")
    data_landscape: str = Field(..., min_length=1, description="Data infrastructure description")
    uploaded_document_content: str | None = Field(
        None, description="Text extracted from an uploaded document"
    )
    uploaded_document_name: str | None = Field(None, description="Uploaded document file name")


class ProfileSuggestions(CrewModel):
    """Generated starting values for the profile form, keyed by profile field."""

    industry: str = Field(..., description="Industry category")
    core_business_goal: str = Field(..., description="One-sentence measurable goal")
    current_pain_points: str = Field(..., description="Comma-separated pain points")
    data_landscape: str = Field(..., description="2-3 sentence data infrastructure description")


# =============================================================================
# Document Intelligence
# =============================================================================


class RelevantMetric(CrewModel):
    name: str = ""
    value: str = ""
    context: str = ""


class DocumentIntelligenceData(CrewModel):
    key_findings: list[str] = Field(default_factory=list)
    relevant_metrics: list[RelevantMetric] = Field(default_factory=list)
    strategic_implications: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)


class AgentOutput(CrewModel):
    """Fields every analytical agent returns."""

    agent_name: str = ""
    confidence: Number = Field(default=0.0, description="Self-reported confidence, nominally 0-1")
    reasoning: str = ""
    insights: list[str] = Field(default_factory=list)


class DocumentIntelligenceOutput(AgentOutput):
    agent_name: str = DOCUMENT_AGENT_NAME
    structured_data: DocumentIntelligenceData = Field(default_factory=DocumentIntelligenceData)


# =============================================================================
# Business Strategy
# =============================================================================


class CognitiveNode(CrewModel):
    """A moment where human capital turns unstructured data into a decision."""

    name: str = ""
    description: str = ""
    cognitive_load: str | None = Field(None, description="high | medium | low")
    data_readiness: str | None = Field(None, description="high | medium | low")
    agentic_pattern: str | None = None
    automation_potential: OptionalNumber = Field(None, description="0-100")
    document_evidence: str | None = None


class EpochFilters(CrewModel):
    """Tasks filtered out for needing Empathy, Physicality, Opinion or Leadership."""

    empathy: list[str] = Field(default_factory=list)
    physicality: list[str] = Field(default_factory=list)
    opinion: list[str] = Field(default_factory=list)
    leadership: list[str] = Field(default_factory=list)


class BusinessStrategyData(CrewModel):
    cognitive_nodes: list[CognitiveNode] = Field(default_factory=list)
    epoch_filters: EpochFilters = Field(default_factory=EpochFilters)
    jagged_frontier: list[str] = Field(default_factory=list)


class BusinessStrategyOutput(AgentOutput):
    agent_name: str = STRATEGY_AGENT_NAME
    structured_data: BusinessStrategyData = Field(default_factory=BusinessStrategyData)


# =============================================================================
# Financial Analysis
# =============================================================================


class UseCase(CrewModel):
    """An agentic transformation proposal with its unit economics."""

    title: str = ""
    description: str = ""
    horizon: str | None = Field(None, description="H1 | H2 | H3")
    current_cost: Number = 0.0
    projected_savings: Number = 0.0
    implementation_cost: Number = 0.0
    trust_tax_percent: OptionalNumber = Field(None, description="0-100")
    lcoai: Number = Field(default=0.0, description="Levelized cost of AI per successful outcome")
    payback_months: OptionalNumber = None
    document_justification: str | None = None

    # Legacy way
    legacy_process_steps: list[str] = Field(default_factory=list)
    legacy_pain_points: list[str] = Field(default_factory=list)
    legacy_cognition_nodes: OptionalNumber = None
    legacy_translation_tax: str | None = None
    legacy_context_switching: str | None = None
    legacy_time_consumed: str | None = None

    # Agentic way
    agentic_pattern_rationale: str | None = None
    agentic_automation_level: str | None = Field(None, description="full | assisted | supervised")
    agentic_primitives: list[str] = Field(default_factory=list)
    agentic_hitl_checkpoints: list[str] = Field(default_factory=list)
    agentic_transform_steps: list[str] = Field(default_factory=list)


class TrustTaxBreakdown(CrewModel):
    """Percent cost of human verification, by component."""

    human_review: Annotated[float, _lenient_number(20.0)] = 20.0
    error_correction: Annotated[float, _lenient_number(10.0)] = 10.0
    compliance_overhead: Annotated[float, _lenient_number(5.0)] = 5.0
    training_maintenance: Annotated[float, _lenient_number(5.0)] = 5.0


class ScenarioDetail(CrewModel):
    label: str = ""
    description: str = ""
    adoption_rate: str = ""
    ramp_time: str = ""
    realization_rate: str = ""
    annual_benefit: Number = 0.0
    three_year_npv: Number = 0.0
    payback_months: Number = 0.0
    key_assumptions: list[str] = Field(default_factory=list)


class ScenarioAnalysis(CrewModel):
    conservative: ScenarioDetail = Field(default_factory=ScenarioDetail)
    base_case: ScenarioDetail = Field(default_factory=ScenarioDetail)
    optimistic: ScenarioDetail = Field(default_factory=ScenarioDetail)


class FinancialAnalysisData(CrewModel):
    use_cases: list[UseCase] = Field(default_factory=list)
    total_current_cost: Number = 0.0
    total_projected_savings: Number = 0.0
    overall_roi: Number = 0.0
    trust_tax_breakdown: TrustTaxBreakdown | None = None
    scenario_analysis: ScenarioAnalysis | None = None


class FinancialAnalystOutput(AgentOutput):
    agent_name: str = FINANCIAL_AGENT_NAME
    structured_data: FinancialAnalysisData = Field(default_factory=FinancialAnalysisData)


# =============================================================================
# Synthesis
# =============================================================================


class SynthesisOutput(CrewModel):
    """Executive brief produced by the orchestrator agent."""

    executive_summary: str = Field(..., description="3-4 paragraph executive summary")
    recommendations: list[str] = Field(default_factory=list)
    risk_assessment: str = ""


# =============================================================================
# Pipeline state
# =============================================================================


class AgentContext(BaseModel):
    """Shared, read-only input handed to each agent.

    The coordinator builds one per stage, carrying only the outputs that
    stage depends on.
    """

    model_config = ConfigDict(frozen=True)

    organization_profile: OrganizationProfile
    document_content: str | None = None
    document_name: str | None = None
    document_intelligence: DocumentIntelligenceOutput | None = None
    business_strategy: BusinessStrategyOutput | None = None
    financial_analysis: FinancialAnalystOutput | None = None

    @property
    def previous_outputs(self) -> dict[str, AgentOutput]:
        """Earlier stage outputs keyed by agent display name."""
        named = (
            (DOCUMENT_AGENT_NAME, self.document_intelligence),
            (STRATEGY_AGENT_NAME, self.business_strategy),
            (FINANCIAL_AGENT_NAME, self.financial_analysis),
        )
        return {name: output for name, output in named if output is not None}


class CrewAnalysisResult(BaseModel):
    """Terminal value of a crew run."""

    model_config = ConfigDict(frozen=True)

    document_intelligence: DocumentIntelligenceOutput
    business_strategy: BusinessStrategyOutput
    financial_analysis: FinancialAnalystOutput
    synthesis: SynthesisOutput
