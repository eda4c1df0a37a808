"""Structured-output recovery for free-form generator replies.

The generator is asked for a single JSON document but may wrap it in code
fences, add prose around it, or truncate it. ``recover`` walks a fixed ladder:

1. strip leading/trailing fences and parse the cleaned text
2. parse the substring between the first ``{`` and the last ``}``
3. fall back to a caller-supplied default, or raise ``RecoveryExhausted``
"""

import json
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from crew_engine.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


class RecoveryTier(str, Enum):
    """Which rung of the ladder produced the value."""

    DIRECT = "direct"
    EXTRACTED = "extracted"
    DEFAULT = "default"


class RecoveryExhausted(Exception):
    """Raised when no structured document could be recovered and no default exists."""

    def __init__(self, message: str, label: str = "structured output"):
        super().__init__(message)
        self.label = label


def strip_fences(raw_output: str) -> str:
    """Strip leading ```json / ``` and trailing ``` fences, trimming at each step."""
    cleaned = raw_output.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:].strip()
    if cleaned.startswith("```"):
        cleaned = cleaned[3:].strip()
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3].strip()
    return cleaned


def extract_braced(text: str) -> str | None:
    """Return the span from the first ``{`` to the last ``}``, or None."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def _parse(text: str, model: type[T]) -> T:
    return model.model_validate(json.loads(text))


def recover(
    raw_output: str,
    model: type[T],
    *,
    default: Callable[[], T] | None = None,
    label: str | None = None,
) -> T:
    """
    Turn raw generator text into a validated ``model`` instance.

    Args:
        raw_output: Raw text returned by the generation service
        model: Pydantic model the document must validate against
        default: Factory for a minimal valid value; omit to make failure loud
        label: Name used in log lines (defaults to the model name)

    Returns:
        Validated model instance (parsed or default)

    Raises:
        RecoveryExhausted: If parsing fails at every tier and no default is given
    """
    label = label or model.__name__
    cleaned = strip_fences(raw_output or "")

    try:
        result = _parse(cleaned, model)
        logger.debug(f"[{label}] parsed directly", extra={"tier": RecoveryTier.DIRECT.value})
        return result
    except (json.JSONDecodeError, ValidationError) as e:
        first_error = e
        logger.info(f"[{label}] JSON parse failed, attempting repair: {type(e).__name__}")

    extracted = extract_braced(cleaned)
    if extracted is not None:
        try:
            result = _parse(extracted, model)
            logger.info(
                f"[{label}] recovered from braced substring",
                extra={"tier": RecoveryTier.EXTRACTED.value},
            )
            return result
        except (json.JSONDecodeError, ValidationError) as e:
            first_error = e
            logger.info(f"[{label}] extracted JSON also invalid")

    if default is None:
        logger.error(
            f"[{label}] no structured document recovered",
            extra={"output_length": len(cleaned)},
        )
        raise RecoveryExhausted(
            f"Could not recover {label} from model output: {first_error}", label=label
        ) from first_error

    logger.warning(f"[{label}] returning default response", extra={"tier": RecoveryTier.DEFAULT.value})
    return default()
