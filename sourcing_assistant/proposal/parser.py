"""Turn raw analysis text into a typed Proposal."""

import logging

from pydantic import ValidationError as PydanticValidationError

from sourcing_assistant import metrics
from sourcing_assistant.errors import ParseError
from sourcing_assistant.proposal.json_extractor import extract_json
from sourcing_assistant.proposal.models import Proposal

logger = logging.getLogger(__name__)


def parse_proposal(text: str) -> Proposal:
    """
    Parse an analysis response into a Proposal.

    Args:
        text: Raw text returned by the analysis service

    Returns:
        Parsed Proposal with at least one price tier

    Raises:
        ParseError: If no JSON object can be extracted or it has no price tiers
    """
    result = extract_json(text)
    if not result.ok:
        metrics.record_parse(False, result.strategy)
        logger.error(f"Proposal JSON extraction failed: {result.error}")
        raise result.error

    if not isinstance(result.data, dict):
        metrics.record_parse(False, result.strategy)
        raise ParseError(f"expected a JSON object, got {type(result.data).__name__}")

    try:
        proposal = Proposal.model_validate(result.data)
    except PydanticValidationError as e:
        metrics.record_parse(False, result.strategy)
        raise ParseError(f"proposal does not match the expected shape: {e}") from e

    if not proposal.ddp_price_tiers:
        metrics.record_parse(False, result.strategy)
        raise ParseError("proposal has no price tiers")

    metrics.record_parse(True, result.strategy)
    logger.info(
        f"Parsed proposal for {proposal.product_name or 'unnamed product'} "
        f"({len(proposal.ddp_price_tiers)} tiers, strategy={result.strategy})"
    )
    return proposal
