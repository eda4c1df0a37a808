"""LLM chain for suggesting organization-profile values from a company name."""

from crew_engine.core.llm import LIGHT_RETRY, GenerationClient
from crew_engine.core.logging import get_logger
from crew_engine.core.schemas_crew import ProfileSuggestions
from crew_engine.core.structured_output import recover

logger = get_logger(__name__)

MIN_COMPANY_NAME_CHARS = 2

INDUSTRIES = (
    "Healthcare",
    "Financial Services",
    "Manufacturing",
    "Retail & E-commerce",
    "Technology",
    "Logistics & Supply Chain",
    "Professional Services",
    "Government & Public Sector",
    "Education",
    "Energy & Utilities",
    "Real Estate",
    "Media & Entertainment",
    "Other",
)


# ruff: noqa: E501
SYSTEM_PROMPT = """You are a helpful business analyst assistant. Given a company name, provide realistic and specific suggestions for a Cognitive Zero-Base analysis form. Research the company if you know about it, or make educated guesses based on the industry and company name.

Always respond with valid JSON only, no markdown formatting."""


def build_suggestions_prompt(company_name: str, industry: str | None = None) -> str:
    industry_note = f" (Industry: {industry})" if industry else ""
    return f"""Provide form suggestions for this company: "{company_name}"{industry_note}

Return JSON in this exact format:
{{
  "industry": "The most appropriate industry category from: {", ".join(INDUSTRIES)}",
  "core_business_goal": "A specific, measurable business goal this type of company would likely have (one sentence)",
  "current_pain_points": "3-4 realistic pain points this company likely faces, separated by commas",
  "data_landscape": "A realistic description of their data infrastructure (2-3 sentences)"
}}

Be specific to the company and industry. If you know the company, use that knowledge. If not, make educated guesses."""


async def generate_suggestions(
    company_name: str,
    industry: str | None = None,
    *,
    client: GenerationClient | None = None,
) -> ProfileSuggestions:
    """
    Suggest profile values for a company.

    Args:
        company_name: Company name (at least 2 characters after trimming)
        industry: Optional industry hint
        client: Generation client (built from settings if omitted)

    Returns:
        ProfileSuggestions for the four free-form profile fields

    Raises:
        ValueError: If the company name is too short
        ServiceError: If the generation service fails
        RecoveryExhausted: If the reply cannot be parsed
    """
    company_name = (company_name or "").strip()
    if len(company_name) < MIN_COMPANY_NAME_CHARS:
        raise ValueError(f"Company name must be at least {MIN_COMPANY_NAME_CHARS} characters")

    client = client or GenerationClient()
    logger.info(f"Generating profile suggestions for '{company_name}'")

    raw = await client.complete(
        SYSTEM_PROMPT,
        build_suggestions_prompt(company_name, industry),
        max_output_tokens=client.settings.SUGGESTIONS_MAX_TOKENS,
        retry_policy=LIGHT_RETRY,
    )
    return recover(raw, ProfileSuggestions, label="Suggestions")
