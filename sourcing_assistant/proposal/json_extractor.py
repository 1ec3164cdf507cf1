"""Extract a JSON payload from free-form analysis text."""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from sourcing_assistant.errors import ParseError

logger = logging.getLogger(__name__)

FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")


@dataclass
class ExtractionResult:
    """Tagged outcome of a JSON extraction attempt."""

    ok: bool
    strategy: str
    data: Any = None
    error: Optional[ParseError] = None
    candidate: Optional[str] = None

    def unwrap(self) -> Any:
        """Return the payload or raise the recorded ParseError."""
        if not self.ok:
            raise self.error
        return self.data


def _decode(candidate: str, strategy: str) -> ExtractionResult:
    try:
        return ExtractionResult(
            ok=True, strategy=strategy, data=json.loads(candidate), candidate=candidate
        )
    except json.JSONDecodeError as e:
        logger.debug(f"JSON decode failed ({strategy}): {e}")
        return ExtractionResult(
            ok=False,
            strategy=strategy,
            error=ParseError(f"invalid JSON in {strategy}: {e}"),
            candidate=candidate,
        )


def extract_fenced_block(text: str) -> Optional[ExtractionResult]:
    """
    Parse the first ```json fenced block.

    Returns None when no non-empty block exists so the next strategy can run.
    A syntax error inside the block is a terminal failure.
    """
    match = FENCED_JSON_RE.search(text)
    if not match or not match.group(1):
        return None
    return _decode(match.group(1), "fenced_block")


def extract_brace_span(text: str) -> Optional[ExtractionResult]:
    """
    Parse everything from the first "{" to the last "}" inclusive.

    Trailing JSON-like fragments after the real object are captured too,
    which then fails to decode. This over-capture is kept as is.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return _decode(text[start:end + 1], "brace_span")


STRATEGIES: List[Callable[[str], Optional[ExtractionResult]]] = [
    extract_fenced_block,
    extract_brace_span,
]


def extract_json(text: str) -> ExtractionResult:
    """
    Run the extraction strategies in order; the first one that applies wins.

    Args:
        text: Raw analysis response

    Returns:
        ExtractionResult with the decoded value or a ParseError
    """
    for strategy in STRATEGIES:
        result = strategy(text or "")
        if result is not None:
            return result
    return ExtractionResult(ok=False, strategy="none", error=ParseError("no JSON found"))
