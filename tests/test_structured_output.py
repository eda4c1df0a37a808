"""Tests for structured-output recovery."""

import pytest

from crew_engine.core.schemas_crew import (
    BusinessStrategyOutput,
    CognitiveNode,
    DocumentIntelligenceOutput,
    FinancialAnalystOutput,
    SynthesisOutput,
)
from crew_engine.core.structured_output import (
    RecoveryExhausted,
    extract_braced,
    recover,
    strip_fences,
)


class TestStripFences:
    def test_strips_json_fence(self):
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strips_bare_fence(self):
        assert strip_fences('```\n{"a": 1}```') == '{"a": 1}'

    def test_leaves_plain_text(self):
        assert strip_fences('  {"a": 1}  ') == '{"a": 1}'


class TestExtractBraced:
    def test_outermost_span(self):
        assert extract_braced('Here you go: {"a": {"b": 2}} thanks') == '{"a": {"b": 2}}'

    def test_no_braces(self):
        assert extract_braced("no json here") is None


class TestRecover:
    def test_direct_parse(self):
        result = recover('{"executive_summary": "Hi"}', SynthesisOutput)
        assert result.executive_summary == "Hi"
        assert result.recommendations == []

    def test_fenced_parse(self):
        raw = '```json\n{"executive_summary": "Hi", "recommendations": ["a"]}\n```'
        assert recover(raw, SynthesisOutput).recommendations == ["a"]

    def test_prose_around_json_uses_extraction(self):
        raw = 'Sure! Here is the brief:\n{"executive_summary": "Hi", "risk_assessment": "Low"}\nLet me know.'
        result = recover(raw, SynthesisOutput)
        assert result.risk_assessment == "Low"

    def test_truncated_json_falls_back_to_default(self):
        raw = '{"agent_name": "Document Intelligence Agent", "structured_data": {"key_findings": ["a"'
        sentinel = DocumentIntelligenceOutput(confidence=0.5)

        result = recover(raw, DocumentIntelligenceOutput, default=lambda: sentinel)

        assert result is sentinel

    def test_no_default_raises(self):
        with pytest.raises(RecoveryExhausted) as exc_info:
            recover("not json at all", SynthesisOutput, label="Orchestrator")

        assert exc_info.value.label == "Orchestrator"

    def test_missing_required_field_without_default_raises(self):
        with pytest.raises(RecoveryExhausted):
            recover('{"recommendations": []}', SynthesisOutput)

    def test_nulls_and_unknown_keys_are_tolerated(self):
        raw = """{
            "agent_name": "Financial Analyst Agent",
            "confidence": 0.7,
            "insights": null,
            "surprise": true,
            "structured_data": {
                "use_cases": [{"title": "X", "horizon": null, "legacy_process_steps": null}],
                "trust_tax_breakdown": null
            }
        }"""

        result = recover(raw, FinancialAnalystOutput)

        assert result.insights == []
        assert result.structured_data.use_cases[0].horizon is None
        assert result.structured_data.use_cases[0].legacy_process_steps == []
        assert result.structured_data.trust_tax_breakdown is None

    def test_numeric_metric_value_is_coerced_to_text(self):
        raw = '{"structured_data": {"relevant_metrics": [{"name": "FTEs", "value": 40}]}}'
        result = recover(raw, DocumentIntelligenceOutput)
        assert result.structured_data.relevant_metrics[0].value == "40"


def _strategy_fallback():
    return BusinessStrategyOutput(confidence=0.5)


class TestLooseReplies:
    def test_formatted_number_keeps_the_other_nodes(self):
        raw = """{
            "confidence": 0.8,
            "structured_data": {
                "cognitive_nodes": [
                    {"name": "Invoice Matching", "automation_potential": 85},
                    {"name": "Carrier Review", "automation_potential": "70%"},
                    {"name": "Dispute Triage", "automation_potential": "about half"}
                ]
            }
        }"""

        result = recover(raw, BusinessStrategyOutput, default=_strategy_fallback)

        nodes = result.structured_data.cognitive_nodes
        assert [n.name for n in nodes] == ["Invoice Matching", "Carrier Review", "Dispute Triage"]
        assert [n.automation_potential for n in nodes] == [85, 70, None]
        assert result.confidence == 0.8

    def test_currency_and_percent_strings_are_parsed(self):
        raw = """{
            "structured_data": {
                "use_cases": [{
                    "title": "AP Automation",
                    "current_cost": "$1,200,000",
                    "trust_tax_percent": "25%",
                    "payback_months": "n/a"
                }],
                "total_projected_savings": "$450,000.50",
                "trust_tax_breakdown": {"human_review": "30%", "error_correction": "lots"}
            }
        }"""

        data = recover(raw, FinancialAnalystOutput).structured_data

        use_case = data.use_cases[0]
        assert use_case.current_cost == 1_200_000
        assert use_case.trust_tax_percent == 25
        assert use_case.payback_months is None
        assert data.total_projected_savings == 450_000.5
        assert data.trust_tax_breakdown.human_review == 30
        assert data.trust_tax_breakdown.error_correction == 10

    def test_overflowing_numbers_become_defaults(self):
        raw = """{
            "confidence": 1e999,
            "structured_data": {
                "use_cases": [{"title": "X", "legacy_cognition_nodes": 1e999, "current_cost": -1e999}],
                "overall_roi": 1e999
            }
        }"""

        result = recover(raw, FinancialAnalystOutput)

        use_case = result.structured_data.use_cases[0]
        assert use_case.legacy_cognition_nodes is None
        assert use_case.current_cost == 0
        assert result.structured_data.overall_roi == 0
        assert result.confidence == 0

    def test_camel_case_keys_are_accepted(self):
        raw = """{
            "agentName": "Business Strategy Agent",
            "confidence": 0.9,
            "structuredData": {
                "cognitiveNodes": [{
                    "name": "Invoice Matching",
                    "cognitiveLoad": "high",
                    "dataReadiness": "medium",
                    "agenticPattern": "Tool User",
                    "automationPotential": 80,
                    "documentEvidence": "Per document: $2.3M"
                }],
                "epochFilters": {"empathy": ["Dispute calls"]},
                "jaggedFrontier": ["Three-way matching"]
            }
        }"""

        result = recover(raw, BusinessStrategyOutput, default=_strategy_fallback)

        assert result.confidence == 0.9
        data = result.structured_data
        assert data.cognitive_nodes == [
            CognitiveNode(
                name="Invoice Matching",
                cognitive_load="high",
                data_readiness="medium",
                agentic_pattern="Tool User",
                automation_potential=80,
                document_evidence="Per document: $2.3M",
            )
        ]
        assert data.epoch_filters.empathy == ["Dispute calls"]
        assert data.jagged_frontier == ["Three-way matching"]

    def test_camel_case_financial_reply(self):
        raw = """{
            "structuredData": {
                "useCases": [{"title": "AP", "projectedSavings": 900000, "paybackMonths": 4}],
                "trustTaxBreakdown": {"humanReview": 25, "trainingMaintenance": 3}
            }
        }"""

        data = recover(raw, FinancialAnalystOutput).structured_data

        assert data.use_cases[0].projected_savings == 900000
        assert data.use_cases[0].payback_months == 4
        assert data.trust_tax_breakdown.human_review == 25
        assert data.trust_tax_breakdown.training_maintenance == 3
