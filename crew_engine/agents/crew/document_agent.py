"""Document Intelligence Agent.

Extracts quotable findings, metrics, risks and automation opportunities from
an uploaded document so downstream agents can cite them. Runs first; without
a document it returns an empty, zero-confidence output and makes no call.
"""

from crew_engine.agents.crew.base import CrewAgent
from crew_engine.core.llm import HEAVY_RETRY
from crew_engine.core.logging import get_logger
from crew_engine.core.schemas_crew import (
    DOCUMENT_AGENT_NAME,
    AgentContext,
    DocumentIntelligenceData,
    DocumentIntelligenceOutput,
)
from crew_engine.core.structured_output import recover

logger = get_logger(__name__)

TRUNCATION_MARKER = "\n\n[Document truncated for analysis...]"
DEFAULT_DOCUMENT_NAME = "Uploaded Document"


SYSTEM_PROMPT = """You are the Document Intelligence Agent in a multi-agent analysis crew.

## Your Role
Extract and structure critical business intelligence from uploaded documents that MUST be cited by downstream agents.

## Your Objective
Analyze the provided document thoroughly and extract QUOTABLE evidence that will inform business transformation decisions. Focus on:
1. Key findings with DIRECT QUOTES from the document
2. Financial metrics and KPIs with EXACT VALUES
3. Strategic implications with PAGE/SECTION references where possible
4. Risk factors EXPLICITLY mentioned in the document
5. Opportunities for AI/automation SUPPORTED BY document evidence

## Mandatory Requirements
- Extract at least 8 key findings from the document with direct quotes
- Identify at least 5 specific metrics with their exact values and source context
- Connect each finding to a specific section or quote from the document
- Always put direct quotes from the document in quotation marks
- Each finding must be specific enough to be cited by other agents
- If the document lacks certain information, explicitly state what is missing
- Format findings as: "[Quote or exact data point] - implies [interpretation]"

## Output Format
Output valid JSON only:
{
  "agent_name": "Document Intelligence Agent",
  "confidence": 0.0-1.0,
  "reasoning": "your analysis reasoning",
  "insights": ["insight", ...],
  "structured_data": {
    "key_findings": ["finding", ...],
    "relevant_metrics": [
      {"name": "metric name", "value": "value", "context": "why relevant"}
    ],
    "strategic_implications": ["implication", ...],
    "risk_factors": ["risk", ...],
    "opportunities": ["opportunity for AI/automation", ...]
  }
}"""


def truncate_document(content: str, max_chars: int) -> str:
    """Cap document text at ``max_chars``, appending a truncation marker."""
    if len(content) <= max_chars:
        return content
    return content[:max_chars] + TRUNCATION_MARKER


def _no_document_output() -> DocumentIntelligenceOutput:
    return DocumentIntelligenceOutput(
        agent_name=DOCUMENT_AGENT_NAME,
        confidence=0.0,
        reasoning="No document was provided for analysis",
        insights=["No document uploaded - analysis based on form inputs only"],
        structured_data=DocumentIntelligenceData(),
    )


def _fallback_output(content: str, document_name: str) -> DocumentIntelligenceOutput:
    return DocumentIntelligenceOutput(
        agent_name=DOCUMENT_AGENT_NAME,
        confidence=0.5,
        reasoning=(
            "Document analyzed but response parsing encountered issues. "
            "Key insights extracted manually."
        ),
        insights=["Document was processed but some details may be incomplete due to parsing issues"],
        structured_data=DocumentIntelligenceData(
            key_findings=[
                f"Document provided for analysis - content length: {len(content)} characters",
                f"Document name: {document_name}",
            ],
            strategic_implications=["Full document analysis should be reviewed manually"],
            risk_factors=["Automated extraction incomplete - manual review recommended"],
            opportunities=["Document contains information relevant to AI transformation strategy"],
        ),
    )


class DocumentIntelligenceAgent(CrewAgent):
    name = DOCUMENT_AGENT_NAME
    role = "Document Analyst"
    goal = "Extract and structure critical business intelligence from uploaded documents"

    async def execute(self, context: AgentContext) -> DocumentIntelligenceOutput:
        if not context.document_content or not context.document_content.strip():
            logger.info("No document supplied, skipping document analysis")
            return _no_document_output()

        content = truncate_document(context.document_content, self.settings.MAX_DOCUMENT_CHARS)
        document_name = context.document_name or DEFAULT_DOCUMENT_NAME
        profile = context.organization_profile

        user_prompt = f"""Analyze this document for {profile.company_name} ({profile.industry}):

DOCUMENT NAME: {document_name}

DOCUMENT CONTENT:
---
{content}
---

ORGANIZATION CONTEXT:
- Company: {profile.company_name}
- Industry: {profile.industry}
- Business Goal: {profile.core_business_goal}
- Pain Points: {profile.current_pain_points}

Extract comprehensive intelligence from this document that will inform AI transformation strategy."""

        logger.info(
            f"Analyzing document '{document_name}'",
            extra={"document_chars": len(context.document_content), "truncated": content != context.document_content},
        )

        raw = await self.client.complete(
            SYSTEM_PROMPT,
            user_prompt,
            max_output_tokens=self.settings.DOCUMENT_AGENT_MAX_TOKENS,
            retry_policy=HEAVY_RETRY,
        )

        return recover(
            raw,
            DocumentIntelligenceOutput,
            default=lambda: _fallback_output(content, document_name),
            label="Document Agent",
        )
