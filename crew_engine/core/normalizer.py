"""Fuse the crew's three analytical outputs into one normalized result.

``normalize`` is a pure function: no I/O, no randomness, and it never raises
on well-typed input. Every missing field is defaulted, every bounded number
is clamped, and uncited nodes/use cases borrow evidence verbatim from the
document-intelligence output.
"""

import math

from crew_engine.core.schemas_crew import (
    DOCUMENT_AGENT_NAME,
    FINANCIAL_AGENT_NAME,
    STRATEGY_AGENT_NAME,
    CognitiveNode,
    CrewAnalysisResult,
    DocumentIntelligenceData,
    TrustTaxBreakdown,
    UseCase,
)
from crew_engine.core.schemas_report import (
    AgenticPatternType,
    FusedCognitiveNode,
    FusedResult,
    FusedUseCase,
    Horizon,
    HorizonsSummary,
    LoadLevel,
)

DEFAULT_EXECUTIVE_SUMMARY = "Analysis complete. Please review the detailed findings below."
DEFAULT_AUTOMATION_POTENTIAL = 50
DEFAULT_TRUST_TAX_PERCENT = 20.0
DEFAULT_PAYBACK_MONTHS = 12.0

_HORIZONS: tuple[Horizon, ...] = ("H1", "H2", "H3")
_LOAD_LEVELS: tuple[LoadLevel, ...] = ("high", "medium", "low")

# Ordered: first matching rule wins.
_PATTERN_KEYWORDS: tuple[tuple[AgenticPatternType, tuple[str, ...]], ...] = (
    ("drafter-critic", ("draft", "review", "critic")),
    ("reasoning-engine", ("reason", "analysis", "intelligence")),
    ("tool-user", ("tool", "automat", "execut")),
)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]``; NaN maps to ``low``, infinities to the bounds."""
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def _finite(value: float | None, default: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return default
    return value


def infer_agentic_pattern(title: str | None) -> AgenticPatternType:
    """Best-effort keyword guess at an agentic pattern from a title.

    This is a heuristic fallback, not a classification; anything unmatched
    becomes ``orchestrator``.
    """
    lowered = (title or "").lower()
    for pattern, keywords in _PATTERN_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return pattern
    return "orchestrator"


def normalize_horizon(value: str | None) -> Horizon:
    tag = (value or "").strip().upper()
    return tag if tag in _HORIZONS else "H1"  # type: ignore[return-value]


def _normalize_load(value: str | None) -> LoadLevel:
    level = (value or "").strip().lower()
    return level if level in _LOAD_LEVELS else "medium"  # type: ignore[return-value]


def _has_text(value: str | None) -> bool:
    return bool(value and value.strip())


def _money(value: float) -> float:
    return max(0.0, value) if math.isfinite(value) else 0.0


def _node_evidence_pool(doc: DocumentIntelligenceData) -> list[str]:
    return [f'Per document: "{finding}"' for finding in doc.key_findings] + [
        f"Document opportunity: {opportunity}" for opportunity in doc.opportunities
    ]


def _use_case_justification_pool(doc: DocumentIntelligenceData) -> list[str]:
    return [
        f"Based on document data: {m.name} = {m.value} ({m.context})" for m in doc.relevant_metrics
    ] + [f'Document insight: "{finding}"' for finding in doc.key_findings[:3]]


def _backfill(existing: list[str | None], pool: list[str], enabled: bool) -> list[str | None]:
    """Fill empty citations from ``pool``, cycling by the count of filled slots."""
    if not enabled or not pool:
        return [value if _has_text(value) else None for value in existing]

    filled: list[str | None] = []
    next_index = 0
    for value in existing:
        if _has_text(value):
            filled.append(value)
        else:
            filled.append(pool[next_index % len(pool)])
            next_index += 1
    return filled


def _fuse_node(node: CognitiveNode, evidence: str | None) -> FusedCognitiveNode:
    potential = _finite(node.automation_potential, DEFAULT_AUTOMATION_POTENTIAL)
    pattern = node.agentic_pattern if _has_text(node.agentic_pattern) else None

    return FusedCognitiveNode(
        name=node.name or "Unnamed Node",
        description=node.description,
        cognitive_load=_normalize_load(node.cognitive_load),
        data_readiness=_normalize_load(node.data_readiness),
        agentic_pattern=pattern or infer_agentic_pattern(node.name),
        automation_potential=int(round(clamp(potential, 0, 100))),
        document_evidence=evidence,
    )


def _fuse_use_case(uc: UseCase, justification: str | None) -> FusedUseCase:
    trust_tax = _finite(uc.trust_tax_percent, DEFAULT_TRUST_TAX_PERCENT)
    payback = _finite(uc.payback_months, None) or DEFAULT_PAYBACK_MONTHS
    current_cost = _money(uc.current_cost)
    savings = _money(uc.projected_savings)
    cognition_nodes = _finite(uc.legacy_cognition_nodes, None)

    return FusedUseCase(
        title=uc.title or "Unnamed Use Case",
        description=uc.description,
        horizon=normalize_horizon(uc.horizon),
        pattern=infer_agentic_pattern(uc.title),
        current_cost=current_cost,
        current_state=f"Annual cost: ${current_cost:,.0f}",
        ai_solution=uc.description,
        expected_outcome=f"${savings:,.0f} annual savings",
        savings_amount=savings,
        implementation_cost=_money(uc.implementation_cost),
        payback_months=_money(payback),
        trust_tax_percent=clamp(trust_tax, 0, 100),
        lcoai=_money(uc.lcoai),
        document_justification=justification,
        legacy_process_steps=list(uc.legacy_process_steps),
        legacy_pain_points=list(uc.legacy_pain_points),
        legacy_cognition_nodes=(
            max(0, int(round(cognition_nodes))) if cognition_nodes is not None else None
        ),
        legacy_translation_tax=uc.legacy_translation_tax,
        legacy_context_switching=uc.legacy_context_switching,
        legacy_time_consumed=uc.legacy_time_consumed,
        agentic_pattern_rationale=uc.agentic_pattern_rationale,
        agentic_automation_level=uc.agentic_automation_level,
        agentic_primitives=list(uc.agentic_primitives),
        agentic_hitl_checkpoints=list(uc.agentic_hitl_checkpoints),
        agentic_transform_steps=list(uc.agentic_transform_steps),
    )


def _summarize_horizons(use_cases: list[FusedUseCase]) -> HorizonsSummary:
    counts = {h: 0 for h in _HORIZONS}
    savings = {h: 0.0 for h in _HORIZONS}
    for uc in use_cases:
        counts[uc.horizon] += 1
        savings[uc.horizon] += uc.savings_amount

    return HorizonsSummary(
        h1_count=counts["H1"],
        h2_count=counts["H2"],
        h3_count=counts["H3"],
        h1_savings=savings["H1"],
        h2_savings=savings["H2"],
        h3_savings=savings["H3"],
    )


def _clamp_breakdown(breakdown: TrustTaxBreakdown | None) -> TrustTaxBreakdown:
    breakdown = breakdown or TrustTaxBreakdown()
    return TrustTaxBreakdown(
        human_review=clamp(breakdown.human_review, 0, 100),
        error_correction=clamp(breakdown.error_correction, 0, 100),
        compliance_overhead=clamp(breakdown.compliance_overhead, 0, 100),
        training_maintenance=clamp(breakdown.training_maintenance, 0, 100),
    )


def normalize(result: CrewAnalysisResult) -> FusedResult:
    """
    Merge the crew's outputs into a single ``FusedResult``.

    Args:
        result: Completed crew run

    Returns:
        FusedResult with defaults applied, bounded values clamped and
        citations back-filled from document evidence
    """
    doc = result.document_intelligence.structured_data
    strategy = result.business_strategy.structured_data
    financial = result.financial_analysis.structured_data
    has_document = len(doc.key_findings) > 0

    nodes = strategy.cognitive_nodes
    node_evidence = _backfill(
        [n.document_evidence for n in nodes], _node_evidence_pool(doc), has_document
    )
    fused_nodes = [_fuse_node(n, ev) for n, ev in zip(nodes, node_evidence)]

    use_cases = financial.use_cases
    justifications = _backfill(
        [uc.document_justification for uc in use_cases],
        _use_case_justification_pool(doc),
        has_document,
    )
    fused_use_cases = [_fuse_use_case(uc, j) for uc, j in zip(use_cases, justifications)]

    summary = result.synthesis.executive_summary
    agents = (
        (DOCUMENT_AGENT_NAME, result.document_intelligence),
        (STRATEGY_AGENT_NAME, result.business_strategy),
        (FINANCIAL_AGENT_NAME, result.financial_analysis),
    )

    return FusedResult(
        executive_summary=summary if _has_text(summary) else DEFAULT_EXECUTIVE_SUMMARY,
        recommendations=list(result.synthesis.recommendations),
        risk_assessment=result.synthesis.risk_assessment,
        cognitive_nodes=fused_nodes,
        use_cases=fused_use_cases,
        trust_tax_breakdown=_clamp_breakdown(financial.trust_tax_breakdown),
        horizons_summary=_summarize_horizons(fused_use_cases),
        epoch_filters=strategy.epoch_filters,
        jagged_frontier=list(strategy.jagged_frontier),
        total_current_cost=_money(financial.total_current_cost),
        total_projected_savings=_money(financial.total_projected_savings),
        overall_roi=_finite(financial.overall_roi, 0.0),
        scenario_analysis=financial.scenario_analysis,
        document_insights=doc if has_document else None,
        agent_confidence={name: clamp(a.confidence, 0.0, 1.0) for name, a in agents},
    )
