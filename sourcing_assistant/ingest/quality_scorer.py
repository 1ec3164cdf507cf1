"""Per-image quality scoring through the remote vision service."""

import logging
from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from sourcing_assistant import metrics
from sourcing_assistant.ai.llm_service import llm_service
from sourcing_assistant.errors import ScoringError
from sourcing_assistant.ingest.models import EncodedImage, ImageQualityResult, QualityRating

logger = logging.getLogger(__name__)

SCORING_FAILED_FEEDBACK = "Analysis failed to complete."


class ScoringBackend(Protocol):
    async def score_image(self, image: EncodedImage) -> Dict[str, Any]: ...


class ScoreResponse(BaseModel):
    """Expected shape of the scoring service's JSON."""

    quality_score: int = Field(alias="qualityScore")
    quality_rating: QualityRating = Field(alias="qualityRating")
    feedback: str = ""


class ImageQualityScorer:
    """Score images one call at a time; failures become an Error rating."""

    def __init__(self, backend: Optional[ScoringBackend] = None):
        self.backend = backend or llm_service

    async def _request(self, image: EncodedImage) -> ScoreResponse:
        try:
            raw = await self.backend.score_image(image)
            return ScoreResponse.model_validate(raw)
        except PydanticValidationError as e:
            raise ScoringError(f"Unexpected scoring response: {e}") from e
        except Exception as e:
            raise ScoringError(f"Scoring call failed: {e}") from e

    async def score(self, image: EncodedImage) -> ImageQualityResult:
        """
        Score one image.

        Never raises: any failure is logged and returned as an Error rating so
        the rest of the pipeline keeps moving.
        """
        try:
            response = await self._request(image)
        except ScoringError as e:
            logger.error(f"Image quality analysis failed: {e}")
            metrics.record_image_score(False)
            return ImageQualityResult.failed(SCORING_FAILED_FEEDBACK)

        metrics.record_image_score(True)
        return ImageQualityResult(
            score=max(0, min(100, response.quality_score)),
            rating=response.quality_rating,
            feedback=response.feedback,
            pending=False,
        )


# Global scorer instance
image_quality_scorer = ImageQualityScorer()
