"""Cognitive Crew Agents.

This module contains the four agents of the analysis crew:
- Document Intelligence Agent: Extracts citable evidence from an uploaded document
- Business Strategy Agent: Maps cognitive nodes to agentic patterns
- Financial Analyst Agent: Builds horizon-tagged use cases with unit economics
- Executive Orchestrator Agent: Synthesizes the executive brief
"""

from crew_engine.agents.crew.base import CrewAgent
from crew_engine.agents.crew.document_agent import DocumentIntelligenceAgent
from crew_engine.agents.crew.financial_agent import FinancialAnalystAgent
from crew_engine.agents.crew.orchestrator_agent import ExecutiveOrchestratorAgent
from crew_engine.agents.crew.strategy_agent import BusinessStrategyAgent

__all__ = [
    "CrewAgent",
    "DocumentIntelligenceAgent",
    "BusinessStrategyAgent",
    "FinancialAnalystAgent",
    "ExecutiveOrchestratorAgent",
]
