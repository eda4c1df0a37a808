"""API endpoints for crew analysis and profile suggestions."""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from crew_engine.chains.generate_suggestions import generate_suggestions
from crew_engine.chains.polish_summary import polish_summary
from crew_engine.core.analysis_record import AnalysisRecord, build_analysis_record
from crew_engine.core.config import get_settings
from crew_engine.core.llm import GenerationClient, ServiceError
from crew_engine.core.logging import get_logger
from crew_engine.core.normalizer import normalize
from crew_engine.core.schemas_crew import OrganizationProfile, ProfileSuggestions
from crew_engine.core.structured_output import RecoveryExhausted
from crew_engine.graphs.crew_pipeline_graph import CrewPipelineError, CrewTimeoutError, run_agent_crew

logger = get_logger(__name__)

router = APIRouter()


class AnalyzeResponse(BaseModel):
    success: bool = True
    result: AnalysisRecord


class SuggestionsRequest(BaseModel):
    company_name: str = Field(..., description="Company name (at least 2 characters)")
    industry: str | None = Field(None, description="Optional industry hint")


class SuggestionsResponse(BaseModel):
    success: bool = True
    suggestions: ProfileSuggestions


def get_generation_client() -> GenerationClient:
    """Generation client dependency."""
    return GenerationClient(get_settings())


def _service_error_to_http(e: ServiceError) -> HTTPException:
    if e.retryable:
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The analysis service is busy. Please try again in a few minutes.",
        )
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Generation service error: {str(e)}",
    )


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(
    profile: OrganizationProfile,
    client: GenerationClient = Depends(get_generation_client),
):
    """
    Run the agent crew for an organization profile.

    Runs the four-agent pipeline under the analysis deadline, normalizes the
    result, optionally polishes the executive summary, and returns the
    denormalized analysis record. Nothing is persisted.
    """
    settings = get_settings()
    logger.info(
        f"Starting multi-agent crew analysis for '{profile.company_name}'",
        extra={"has_document": bool(profile.uploaded_document_content)},
    )

    try:
        crew_result = await run_agent_crew(
            profile,
            profile.uploaded_document_content,
            profile.uploaded_document_name,
            client=client,
            deadline_seconds=settings.ANALYSIS_TIMEOUT_SECONDS,
        )
    except ServiceError as e:
        logger.error(f"Analysis failed at generation service ({e.kind}): {e}")
        raise _service_error_to_http(e)
    except CrewTimeoutError as e:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=(
                "Analysis timed out. Please try again with a simpler organization "
                "profile or without a document."
            ),
        ) from e
    except CrewPipelineError as e:
        logger.error(f"Crew pipeline failed at stage {e.stage}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process agent analysis: {str(e)}",
        )

    fused = normalize(crew_result)

    summary = fused.executive_summary
    if settings.TONE_EDIT_ENABLED:
        summary = await polish_summary(summary, client=client)

    record = build_analysis_record(fused, profile, executive_summary=summary)
    logger.info(
        "Multi-agent analysis complete",
        extra={
            "cognitive_nodes": len(record.cognitive_nodes),
            "use_cases": len(record.use_cases),
            "document_insights": fused.document_insights is not None,
        },
    )
    return AnalyzeResponse(result=record)


@router.post("/suggestions", response_model=SuggestionsResponse)
async def suggestions(
    request: SuggestionsRequest,
    client: GenerationClient = Depends(get_generation_client),
):
    """Suggest profile form values from a company name."""
    try:
        result = await generate_suggestions(request.company_name, request.industry, client=client)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ServiceError as e:
        raise _service_error_to_http(e)
    except RecoveryExhausted as e:
        logger.error(f"Suggestions reply could not be parsed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate suggestions",
        )

    return SuggestionsResponse(suggestions=result)
