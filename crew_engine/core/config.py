"""Configuration management for the Cognitive Crew Engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Anthropic configuration (required)
    ANTHROPIC_API_KEY: str = Field(..., description="Anthropic API key")
    ANTHROPIC_BASE_URL: str | None = Field(
        default=None, description="Optional gateway URL for the Anthropic API"
    )

    # Environment
    CREW_ENGINE_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Model selection
    CREW_MODEL: str = Field(default="claude-sonnet-4-5", description="Model for all crew agents")

    # Per-stage output budgets
    DOCUMENT_AGENT_MAX_TOKENS: int = Field(default=8192, description="Document agent output tokens")
    STRATEGY_AGENT_MAX_TOKENS: int = Field(default=8192, description="Strategy agent output tokens")
    FINANCIAL_AGENT_MAX_TOKENS: int = Field(
        default=8192, description="Financial agent output tokens"
    )
    SYNTHESIS_MAX_TOKENS: int = Field(default=2048, description="Orchestrator synthesis tokens")
    SUGGESTIONS_MAX_TOKENS: int = Field(default=2048, description="Profile suggestion tokens")
    TONE_EDITOR_MAX_TOKENS: int = Field(default=8192, description="Tone editor output tokens")

    # Input limits
    MAX_DOCUMENT_CHARS: int = Field(
        default=50_000, description="Document text beyond this is truncated before analysis"
    )

    # Pipeline behaviour
    ANALYSIS_TIMEOUT_SECONDS: float = Field(
        default=85.0, description="Wall-clock deadline for one crew run"
    )
    CREW_FINANCIAL_AWAITS_STRATEGY: bool = Field(
        default=False,
        description="Run the financial stage after the strategy stage so it sees cognitive nodes",
    )
    TONE_EDIT_ENABLED: bool = Field(
        default=True, description="Polish the executive summary with the tone editor"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
