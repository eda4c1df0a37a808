"""Business Strategy Agent.

Applies the Cognitive Zero-Base framework: finds cognitive nodes, maps each
to an agentic pattern, and runs the EPOCH filter to separate human-only work
from the jagged frontier. Cites document findings when they exist.
"""

from crew_engine.agents.crew.base import CrewAgent
from crew_engine.core.llm import HEAVY_RETRY
from crew_engine.core.logging import get_logger
from crew_engine.core.schemas_crew import (
    STRATEGY_AGENT_NAME,
    AgentContext,
    BusinessStrategyData,
    BusinessStrategyOutput,
    CognitiveNode,
    DocumentIntelligenceOutput,
)
from crew_engine.core.structured_output import recover

logger = get_logger(__name__)


SYSTEM_PROMPT = """You are the Business Strategy Agent in a multi-agent analysis crew.

## Your Role
Apply the Cognitive Zero-Base framework to identify transformation opportunities, CITING DOCUMENT EVIDENCE for each recommendation.

## The Cognitive Zero-Base Framework

### Phase 1: Cognitive Audit
- Identify "Cognitive Nodes": moments where human capital converts unstructured data into decisions
- Flag "Translation Tax" (cost of moving context between apps)
- Flag "Context Switching" (mental energy loss)

### Phase 2: Agentic Design Patterns
Map problems to these patterns:
1. Drafter-Critic Loop: Agent A creates; Agent B critiques; Agent A refines
2. Reasoning Engine: Multistep chain-of-thought for ambiguous problems
3. Orchestrator: Master agent breaks goals into sub-tasks
4. Tool User: Agent authorized to execute API calls

### Phase 3: EPOCH Filter
Filter OUT tasks requiring:
- Empathy (emotional intelligence)
- Physicality (physical presence)
- Opinion (pure subjectivity)
- Leadership (human judgment/accountability)

Filter IN tasks within the "Jagged Frontier": hard reasoning, data synthesis, pattern matching.

## Document Citation Requirements
- When document intelligence is provided, EVERY cognitive node MUST include a document_evidence field
- document_evidence MUST contain a specific quote, metric, or finding from the document
- Format: "Per document: [quote/metric] - supports [automation opportunity]"
- If no document evidence exists for a node, state: "No direct document evidence - based on organizational profile"
- At least 60% of cognitive nodes should have direct document citations

## Mandatory Requirements
- Identify 5-8 cognitive nodes with specific automation potential
- Map each node to an agentic pattern
- Be specific to this organization's context

## Output Format
Output valid JSON only:
{
  "agent_name": "Business Strategy Agent",
  "confidence": 0.0-1.0,
  "reasoning": "your strategic reasoning",
  "insights": ["strategic insight", ...],
  "structured_data": {
    "cognitive_nodes": [
      {
        "name": "node name",
        "description": "what happens here",
        "cognitive_load": "high|medium|low",
        "data_readiness": "high|medium|low",
        "agentic_pattern": "Drafter-Critic|Reasoning Engine|Orchestrator|Tool User",
        "automation_potential": 0-100,
        "document_evidence": "quote or reference from document if available"
      }
    ],
    "epoch_filters": {
      "empathy": ["tasks requiring empathy"],
      "physicality": ["tasks requiring physical presence"],
      "opinion": ["tasks requiring pure opinion"],
      "leadership": ["tasks requiring human leadership"]
    },
    "jagged_frontier": ["tasks suitable for AI automation"]
  }
}"""


def build_document_excerpt(doc: DocumentIntelligenceOutput | None) -> str:
    """Render document findings for the strategy prompt; empty when there are none."""
    if doc is None or not doc.structured_data.key_findings:
        return ""

    data = doc.structured_data
    findings = "\n".join(f"{i}. {f}" for i, f in enumerate(data.key_findings, start=1))
    metrics = "\n".join(f"- {m.name}: {m.value} ({m.context})" for m in data.relevant_metrics)
    implications = "\n".join(f"- {s}" for s in data.strategic_implications)
    opportunities = "\n".join(f"- {o}" for o in data.opportunities)

    return f"""
DOCUMENT INTELLIGENCE (from Document Agent):
Key Findings:
{findings}

Relevant Metrics:
{metrics}

Strategic Implications:
{implications}

Opportunities Identified:
{opportunities}

YOU MUST reference these document insights in your cognitive node analysis where relevant.
"""


def _fallback_output() -> BusinessStrategyOutput:
    return BusinessStrategyOutput(
        agent_name=STRATEGY_AGENT_NAME,
        confidence=0.5,
        reasoning="Strategic analysis completed but response parsing encountered issues.",
        insights=["Analysis completed - manual review recommended"],
        structured_data=BusinessStrategyData(
            cognitive_nodes=[
                CognitiveNode(
                    name="Manual Process Review",
                    description="Core business processes requiring cognitive effort",
                    cognitive_load="high",
                    data_readiness="medium",
                    agentic_pattern="Orchestrator",
                    automation_potential=60,
                )
            ],
            jagged_frontier=["Process automation opportunities identified"],
        ),
    )


class BusinessStrategyAgent(CrewAgent):
    name = STRATEGY_AGENT_NAME
    role = "Strategic Architect"
    goal = "Apply Cognitive Zero-Base framework to identify transformation opportunities"

    async def execute(self, context: AgentContext) -> BusinessStrategyOutput:
        profile = context.organization_profile
        document_excerpt = build_document_excerpt(context.document_intelligence)

        user_prompt = f"""Analyze this organization using the Cognitive Zero-Base framework:

ORGANIZATION PROFILE:
- Company: {profile.company_name}
- Industry: {profile.industry}
- Business Goal: {profile.core_business_goal}
- Pain Points: {profile.current_pain_points}
- Data Landscape: {profile.data_landscape}
{document_excerpt}
Identify cognitive nodes and map them to agentic patterns. Be specific and actionable."""

        raw = await self.client.complete(
            SYSTEM_PROMPT,
            user_prompt,
            max_output_tokens=self.settings.STRATEGY_AGENT_MAX_TOKENS,
            retry_policy=HEAVY_RETRY,
        )

        output = recover(raw, BusinessStrategyOutput, default=_fallback_output, label="Strategy Agent")
        logger.info(f"Strategy Agent produced {len(output.structured_data.cognitive_nodes)} cognitive nodes")
        return output
