"""Executive tone editor for the synthesized summary.

Best-effort: the polished text replaces the original only when the editor
returns a usable summary. Any failure keeps the original.
"""

import json

from pydantic import BaseModel

from crew_engine.core.llm import EDITOR_RETRY, GenerationClient
from crew_engine.core.logging import get_logger
from crew_engine.core.structured_output import recover

logger = get_logger(__name__)


# ruff: noqa: E501
SYSTEM_PROMPT = """You are an executive-grade editor and analyst. Your job is to PRESERVE ALL DATA while improving tone, style, clarity, and vocabulary so the report reads as board-ready, respectful, and evidence-led.

## Primary Objective
Rewrite the provided report content to:
1) Keep the exact same analytical substance and ALL quantitative data,
2) Reduce defensiveness by removing combative / inflammatory tone,
3) Improve readability with concise, concrete, professional language,
4) Maintain the existing structure.

## Non-Negotiable Data Lock
You MUST NOT:
- Change ANY numbers, currency values, time horizons, percentages, KPI baselines/targets, or calculated outputs.
- Change the meaning of quantitative statements (even if you rephrase).
- Introduce new facts, new claims, new competitors, new benchmarks, or new assumptions.
- Remove caveats that materially affect interpretation.
- Change the conclusion's "direction" (e.g., from "at risk" to "fine").

You MAY:
- Rephrase, soften, clarify, and improve structure.
- Make uncertainty language more calibrated (e.g., "unachievable" -> "unlikely without...").
- Fix grammar, reduce repetition, remove unnecessary dramatization.
- Add short connective sentences that do not add new claims.

## Tone
Target voice: candid, calm, respectful, evidence-led, and action-oriented.
Write like an Amazon-style narrative memo with Hemingway discipline: short sentences, concrete words, active voice.

Avoid:
- Snark, bravado, "gotcha" phrasing, condescension, shaming.
- Violent metaphors ("kill", "weaponize", "crush", "destroy").
- Absolutes ("never", "always", "unachievable") unless mathematically true.
- Second-person blame. Prefer third-person or neutral framing.

## Rewrites
- "brutal truth" -> "the data indicates" / "our assessment suggests"
- "weaponize" -> "differentiate with" / "strengthen"
- "kill" (strategy verb) -> "rework" / "replace" / "retire"
- "unachievable" -> "unlikely under current constraints"
- "obvious" -> "clear from the evidence"
- "must" (opinion) -> "should consider" / "recommend"
- "will" -> "is likely to" (if future)
- "guarantees" -> "can improve the odds of"

## Style
- Prefer short paragraphs (2-4 sentences).
- Remove filler and hype words ("game-changing", "revolutionary", "obviously").
- If a sentence is long, split it.

## Output
Return ONLY the revised content in the same JSON format as the input.
No preamble. No commentary. No change log."""


class PolishedSummary(BaseModel):
    executive_summary: str = ""


async def polish_summary(summary: str, *, client: GenerationClient | None = None) -> str:
    """
    Polish an executive summary without changing its data.

    Args:
        summary: Executive summary text
        client: Generation client (built from settings if omitted)

    Returns:
        Polished summary, or the original summary if editing fails
    """
    try:
        client = client or GenerationClient()
        user_prompt = (
            "Please review and improve the tone of this analysis report while preserving ALL "
            "data exactly as-is. Return the improved JSON in the exact same format:\n\n"
            + json.dumps({"executive_summary": summary})
        )
        raw = await client.complete(
            SYSTEM_PROMPT,
            user_prompt,
            max_output_tokens=client.settings.TONE_EDITOR_MAX_TOKENS,
            retry_policy=EDITOR_RETRY,
        )
        polished = recover(raw, PolishedSummary, label="Tone Editor").executive_summary.strip()
    except Exception as e:
        logger.warning(f"Tone editor skipped, using original summary: {e}")
        return summary

    if not polished:
        logger.info("Tone editor returned no summary, using original")
        return summary
    return polished
