"""Cognitive Crew Pipeline Graph.

4-stage LangGraph StateGraph:
1. document_intelligence: evidence extraction from the uploaded document
2. business_strategy + financial_analysis: fan out from stage 1, run in one superstep
3. join_analysis: waits for both analytical branches
4. synthesize: executive brief over all three outputs

Stage dependencies are declared in STAGE_DEPENDENCIES. Hard dependencies are
always edges in the graph. The financial stage's dependency on strategy is
soft: it becomes an edge only when CREW_FINANCIAL_AWAITS_STRATEGY is set, and
otherwise the financial prompt is built without strategy context.
"""

import asyncio
import logging
import operator
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any
from uuid import uuid4

from langgraph.graph import END, StateGraph

from crew_engine.agents.crew import (
    BusinessStrategyAgent,
    DocumentIntelligenceAgent,
    ExecutiveOrchestratorAgent,
    FinancialAnalystAgent,
)
from crew_engine.core.config import Settings, get_settings
from crew_engine.core.llm import GenerationClient, ServiceError
from crew_engine.core.logging import get_logger, log_with_context
from crew_engine.core.schemas_crew import (
    AgentContext,
    BusinessStrategyOutput,
    CrewAnalysisResult,
    DocumentIntelligenceOutput,
    FinancialAnalystOutput,
    OrganizationProfile,
    SynthesisOutput,
)

logger = get_logger(__name__)

MAX_STEPS = 8


class CrewStage(str, Enum):
    """Forward-only progress marker for one crew run."""

    START = "start"
    DOCUMENT_DONE = "document_done"
    ANALYSIS_DONE = "analysis_done"
    SYNTHESIZED = "synthesized"


class DependencyKind(str, Enum):
    HARD = "hard"
    SOFT = "soft"


# stage -> {upstream stage: kind}
STAGE_DEPENDENCIES: dict[str, dict[str, DependencyKind]] = {
    "document_intelligence": {},
    "business_strategy": {"document_intelligence": DependencyKind.HARD},
    "financial_analysis": {
        "document_intelligence": DependencyKind.HARD,
        "business_strategy": DependencyKind.SOFT,
    },
    "synthesize": {
        "document_intelligence": DependencyKind.HARD,
        "business_strategy": DependencyKind.HARD,
        "financial_analysis": DependencyKind.HARD,
    },
}


class CrewPipelineError(Exception):
    """Raised when a crew stage fails for a reason other than the generation service."""

    def __init__(self, message: str, stage: str):
        super().__init__(message)
        self.stage = stage


class CrewTimeoutError(Exception):
    """Raised when a crew run exceeds its deadline."""

    def __init__(self, message: str, deadline_seconds: float):
        super().__init__(message)
        self.deadline_seconds = deadline_seconds


@dataclass
class CrewAgents:
    """The four agents a run uses. Swappable for tests."""

    document: DocumentIntelligenceAgent
    strategy: BusinessStrategyAgent
    financial: FinancialAnalystAgent
    orchestrator: ExecutiveOrchestratorAgent

    @classmethod
    def default(cls, client: GenerationClient, settings: Settings | None = None) -> "CrewAgents":
        return cls(
            document=DocumentIntelligenceAgent(client, settings),
            strategy=BusinessStrategyAgent(client, settings),
            financial=FinancialAnalystAgent(client, settings),
            orchestrator=ExecutiveOrchestratorAgent(client, settings),
        )


@dataclass
class CrewPipelineState:
    """State for the crew pipeline graph."""

    # Input
    run_id: str = ""
    profile: OrganizationProfile = None  # type: ignore[assignment]
    document_content: str | None = None
    document_name: str | None = None
    agents: CrewAgents = None  # type: ignore[assignment]
    step_count: Annotated[int, operator.add] = 0

    # Progress
    stage: CrewStage = CrewStage.START
    stage_timings: Annotated[dict[str, float], operator.or_] = field(default_factory=dict)

    # Stage outputs
    document_intelligence: DocumentIntelligenceOutput | None = None
    business_strategy: BusinessStrategyOutput | None = None
    financial_analysis: FinancialAnalystOutput | None = None
    synthesis: SynthesisOutput | None = None


def _check_max_steps(state: CrewPipelineState) -> None:
    """Check the step budget before running a node."""
    if state.step_count + 1 > MAX_STEPS:
        raise RuntimeError(f"Exceeded max steps ({MAX_STEPS})")


def _stage_context(state: CrewPipelineState, stage: str) -> AgentContext:
    """Build the read-only context a stage sees.

    Every declared upstream output that is already available is included.
    A missing hard dependency is a wiring defect and raises.
    """
    available = {
        "document_intelligence": state.document_intelligence,
        "business_strategy": state.business_strategy,
        "financial_analysis": state.financial_analysis,
    }
    outputs: dict[str, Any] = {}
    for upstream, kind in STAGE_DEPENDENCIES[stage].items():
        value = available[upstream]
        if value is None and kind is DependencyKind.HARD:
            raise RuntimeError(f"Stage {stage} ran before hard dependency {upstream}")
        outputs[upstream] = value

    return AgentContext(
        organization_profile=state.profile,
        document_content=state.document_content,
        document_name=state.document_name,
        **outputs,
    )


async def _run_stage(state: CrewPipelineState, stage: str, agent) -> tuple[Any, float]:
    """Run one agent, wrapping non-service failures with the stage name."""
    _check_max_steps(state)
    start = time.time()
    log_with_context(logger, logging.INFO, f"Starting {agent.name}", run_id=state.run_id, stage=stage)

    try:
        output = await agent.execute(_stage_context(state, stage))
    except ServiceError:
        raise
    except Exception as e:
        logger.error(
            f"Stage {stage} failed: {e}",
            extra={"run_id": state.run_id, "stage": stage},
        )
        raise CrewPipelineError(f"Stage {stage} failed: {e}", stage=stage) from e

    return output, round(time.time() - start, 2)


# ==========================================================================
# Nodes
# ==========================================================================


async def document_intelligence(state: CrewPipelineState) -> dict[str, Any]:
    """Node 1: Extract document evidence."""
    output, elapsed = await _run_stage(state, "document_intelligence", state.agents.document)

    log_with_context(
        logger,
        logging.INFO,
        f"Document Agent completed with {len(output.structured_data.key_findings)} findings",
        run_id=state.run_id,
        elapsed_s=elapsed,
    )
    return {
        "document_intelligence": output,
        "stage": CrewStage.DOCUMENT_DONE,
        "stage_timings": {"document_intelligence": elapsed},
        "step_count": 1,
    }


async def business_strategy(state: CrewPipelineState) -> dict[str, Any]:
    """Node 2a: Cognitive Zero-Base strategy analysis."""
    output, elapsed = await _run_stage(state, "business_strategy", state.agents.strategy)

    log_with_context(
        logger,
        logging.INFO,
        f"Strategy Agent completed with {len(output.structured_data.cognitive_nodes)} cognitive nodes",
        run_id=state.run_id,
        elapsed_s=elapsed,
    )
    return {
        "business_strategy": output,
        "stage_timings": {"business_strategy": elapsed},
        "step_count": 1,
    }


async def financial_analysis(state: CrewPipelineState) -> dict[str, Any]:
    """Node 2b: Use-case portfolio and unit economics."""
    output, elapsed = await _run_stage(state, "financial_analysis", state.agents.financial)

    log_with_context(
        logger,
        logging.INFO,
        f"Financial Agent completed with {len(output.structured_data.use_cases)} use cases",
        run_id=state.run_id,
        elapsed_s=elapsed,
        with_strategy=state.business_strategy is not None,
    )
    return {
        "financial_analysis": output,
        "stage_timings": {"financial_analysis": elapsed},
        "step_count": 1,
    }


def join_analysis(state: CrewPipelineState) -> dict[str, Any]:
    """Node 3: Barrier after both analytical branches."""
    _check_max_steps(state)
    return {"stage": CrewStage.ANALYSIS_DONE, "step_count": 1}


async def synthesize(state: CrewPipelineState) -> dict[str, Any]:
    """Node 4: Executive synthesis over all three outputs."""
    output, elapsed = await _run_stage(state, "synthesize", state.agents.orchestrator)

    log_with_context(logger, logging.INFO, "Orchestrator synthesis complete", run_id=state.run_id)
    return {
        "synthesis": output,
        "stage": CrewStage.SYNTHESIZED,
        "stage_timings": {"synthesize": elapsed},
        "step_count": 1,
    }


def _build_graph(financial_awaits_strategy: bool = False) -> StateGraph:
    """Build the crew pipeline graph."""
    graph = StateGraph(CrewPipelineState)

    # Add nodes
    graph.add_node("document_intelligence", document_intelligence)
    graph.add_node("business_strategy", business_strategy)
    graph.add_node("financial_analysis", financial_analysis)
    graph.add_node("join_analysis", join_analysis)
    graph.add_node("synthesize", synthesize)

    graph.set_entry_point("document_intelligence")
    graph.add_edge("document_intelligence", "business_strategy")
    if financial_awaits_strategy:
        graph.add_edge("business_strategy", "financial_analysis")
    else:
        graph.add_edge("document_intelligence", "financial_analysis")
    graph.add_edge(["business_strategy", "financial_analysis"], "join_analysis")
    graph.add_edge("join_analysis", "synthesize")
    graph.add_edge("synthesize", END)

    return graph


async def run_agent_crew(
    profile: OrganizationProfile,
    document_content: str | None = None,
    document_name: str | None = None,
    *,
    client: GenerationClient | None = None,
    agents: CrewAgents | None = None,
    deadline_seconds: float | None = None,
) -> CrewAnalysisResult:
    """
    Run the agent crew for one organization.

    Args:
        profile: Organization profile
        document_content: Extracted document text, if a document was uploaded
        document_name: Uploaded document file name
        client: Generation client shared by all agents (built from settings if omitted)
        agents: Agent bundle override (defaults to the four standard agents)
        deadline_seconds: Wall-clock deadline (defaults to ANALYSIS_TIMEOUT_SECONDS)

    Returns:
        CrewAnalysisResult with all four outputs

    Raises:
        ServiceError: If the generation service fails (unchanged from the client)
        CrewPipelineError: If any stage fails for another reason
        CrewTimeoutError: If the deadline expires first
    """
    settings = get_settings()
    run_id = str(uuid4())
    if agents is None:
        agents = CrewAgents.default(client or GenerationClient(settings), settings)
    if deadline_seconds is None:
        deadline_seconds = settings.ANALYSIS_TIMEOUT_SECONDS

    logger.info(
        f"Starting crew run for '{profile.company_name}'",
        extra={
            "run_id": run_id,
            "has_document": bool(document_content and document_content.strip()),
            "financial_awaits_strategy": settings.CREW_FINANCIAL_AWAITS_STRATEGY,
        },
    )

    initial_state = CrewPipelineState(
        run_id=run_id,
        profile=profile,
        document_content=document_content,
        document_name=document_name,
        agents=agents,
    )

    compiled = _build_graph(settings.CREW_FINANCIAL_AWAITS_STRATEGY).compile()

    try:
        final_state = await asyncio.wait_for(compiled.ainvoke(initial_state), timeout=deadline_seconds)
    except asyncio.TimeoutError as e:
        logger.error(f"Crew run exceeded {deadline_seconds}s deadline", extra={"run_id": run_id})
        raise CrewTimeoutError(
            f"Analysis timed out after {deadline_seconds} seconds", deadline_seconds=deadline_seconds
        ) from e

    # LangGraph StateGraph.ainvoke() returns a dict, not the typed state object
    if final_state.get("stage") != CrewStage.SYNTHESIZED:
        raise CrewPipelineError("Graph completed without synthesis", stage="synthesize")

    logger.info(
        "Completed crew run",
        extra={"run_id": run_id, "stage_timings": final_state.get("stage_timings", {})},
    )

    return CrewAnalysisResult(
        document_intelligence=final_state["document_intelligence"],
        business_strategy=final_state["business_strategy"],
        financial_analysis=final_state["financial_analysis"],
        synthesis=final_state["synthesis"],
    )
