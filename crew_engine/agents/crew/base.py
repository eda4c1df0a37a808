"""Base class for crew agents."""

from abc import ABC, abstractmethod

from crew_engine.core.config import Settings, get_settings
from crew_engine.core.llm import GenerationClient
from crew_engine.core.schemas_crew import AgentContext


class CrewAgent(ABC):
    """Base class for crew agents.

    Each agent turns an ``AgentContext`` into one structured output with a
    single generation call. Agents never call each other; the pipeline
    coordinator decides what context each one sees.
    """

    name: str = ""
    role: str = ""
    goal: str = ""

    def __init__(self, client: GenerationClient, settings: Settings | None = None):
        self.client = client
        self.settings = settings or get_settings()

    @abstractmethod
    async def execute(self, context: AgentContext):
        """Run the agent.

        Args:
            context: Shared pipeline context for this stage

        Returns:
            The agent's structured output model

        Raises:
            ServiceError: If the generation service fails
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
