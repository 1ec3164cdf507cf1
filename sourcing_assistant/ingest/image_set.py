"""Working set of product images: validation, ordering and primary selection."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Set

from sourcing_assistant import metrics
from sourcing_assistant.config import settings
from sourcing_assistant.errors import ValidationError
from sourcing_assistant.ingest.models import (
    CandidateFile,
    EncodedImage,
    ImageQualityResult,
    ImageSlot,
    UploadedImage,
    encode_image,
)
from sourcing_assistant.ingest.quality_scorer import ImageQualityScorer, image_quality_scorer

logger = logging.getLogger(__name__)

PublishCallback = Callable[[List[EncodedImage]], None]


@dataclass
class AddFilesResult:
    """Outcome of one upload batch."""

    accepted: List[ImageSlot] = field(default_factory=list)
    error: Optional[ValidationError] = None


class ImageSetManager:
    """
    Owns the ordered list of uploaded images and their quality results.

    Every change to the list or to the primary image republishes the full
    encoded list, primary first, to the ``on_publish`` subscriber. Scoring runs
    as independent tasks tagged with the slot id they were submitted for;
    results for slots that no longer exist are dropped.
    """

    def __init__(
        self,
        scorer: Optional[ImageQualityScorer] = None,
        on_publish: Optional[PublishCallback] = None,
        max_images: Optional[int] = None,
        max_size_bytes: Optional[int] = None,
        error_display_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.scorer = scorer or image_quality_scorer
        self.on_publish = on_publish
        self.max_images = max_images or settings.max_images
        self.max_size_bytes = max_size_bytes or settings.max_image_size_mb * 1024 * 1024
        self.error_display_seconds = (
            error_display_seconds if error_display_seconds is not None
            else settings.error_display_seconds
        )
        self._clock = clock

        self._slots: List[ImageSlot] = []
        self._primary_id: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()
        self._error: Optional[ValidationError] = None
        self._error_expires_at: float = 0.0
        self.published: List[EncodedImage] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def slots(self) -> List[ImageSlot]:
        return list(self._slots)

    @property
    def qualities(self) -> List[ImageQualityResult]:
        return [slot.quality for slot in self._slots]

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def primary_index(self) -> int:
        for index, slot in enumerate(self._slots):
            if slot.slot_id == self._primary_id:
                return index
        return 0

    @property
    def current_error(self) -> Optional[ValidationError]:
        """The last batch's validation message, until it expires."""
        if self._error is not None and self._clock() >= self._error_expires_at:
            self._error = None
        return self._error

    def _index_of(self, slot_id: int) -> Optional[int]:
        for index, slot in enumerate(self._slots):
            if slot.slot_id == slot_id:
                return index
        return None

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._slots):
            raise IndexError(f"image index {index} out of range (0..{len(self._slots) - 1})")

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def ordered_images(self) -> List[EncodedImage]:
        """Encoded images with the primary first, others in relative order."""
        if not self._slots:
            return []
        primary = self.primary_index
        encoded = [slot.encoded for slot in self._slots]
        return [encoded[primary], *encoded[:primary], *encoded[primary + 1:]]

    def _publish(self) -> None:
        self.published = self.ordered_images()
        if self.on_publish is not None:
            self.on_publish(list(self.published))

    def _show_error(self, error: Optional[ValidationError]) -> None:
        self._error = error
        self._error_expires_at = self._clock() + self.error_display_seconds if error else 0.0

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _validate_batch(self, candidates: Iterable[CandidateFile]) -> AddFilesResult:
        result = AddFilesResult()
        accepted: List[CandidateFile] = []
        first_error: Optional[str] = None
        seen = {(slot.image.name, slot.image.size_bytes) for slot in self._slots}

        for candidate in candidates:
            if len(self._slots) + len(accepted) >= self.max_images:
                if not first_error:
                    first_error = f"Cannot exceed {self.max_images} images. Some files were not added."
                break
            if (candidate.name, candidate.size_bytes) in seen:
                continue
            if not candidate.mime_type.startswith("image/"):
                if not first_error:
                    first_error = (
                        f'File "{candidate.name}" is not a valid image. '
                        f"Please use formats like PNG or JPG."
                    )
                continue
            if candidate.size_bytes > self.max_size_bytes:
                if not first_error:
                    max_mb = self.max_size_bytes / (1024 * 1024)
                    first_error = f'File "{candidate.name}" is too large. Maximum size is {max_mb:g}MB.'
                continue

            seen.add((candidate.name, candidate.size_bytes))
            accepted.append(candidate)

        for candidate in accepted:
            image = UploadedImage.from_candidate(candidate)
            result.accepted.append(ImageSlot(image=image, encoded=encode_image(image)))

        if first_error:
            result.error = ValidationError(first_error)
        return result

    async def add_files(self, candidates: Iterable[CandidateFile]) -> AddFilesResult:
        """
        Validate and append a batch of files, then start scoring them.

        Only the first violation in the batch is reported. Scoring runs in the
        background; use ``wait_for_scoring()`` to await it.
        """
        self._show_error(None)
        result = self._validate_batch(candidates)

        if result.error:
            logger.warning(f"Upload batch rejected files: {result.error}")
            self._show_error(result.error)

        if not result.accepted:
            return result

        self._slots.extend(result.accepted)
        if self._primary_id is None:
            self._primary_id = self._slots[0].slot_id
        logger.info(f"Accepted {len(result.accepted)} images ({len(self._slots)} total)")

        for slot in result.accepted:
            task = asyncio.create_task(self._score_slot(slot.slot_id, slot.encoded))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        self._publish()
        return result

    def remove(self, index: int) -> None:
        """Drop the image at ``index``; its pending scoring call is not cancelled."""
        self._check_index(index)
        removed = self._slots.pop(index)

        if removed.slot_id == self._primary_id:
            self._primary_id = self._slots[0].slot_id if self._slots else None

        self._reevaluate_primary()
        self._publish()

    def move(self, from_index: int, to_index: int) -> None:
        """Move the image at ``from_index`` to ``to_index``; the primary image keeps its identity."""
        self._check_index(from_index)
        self._check_index(to_index)
        if from_index == to_index:
            return

        slot = self._slots.pop(from_index)
        self._slots.insert(to_index, slot)

        self._reevaluate_primary()
        self._publish()

    def set_primary(self, index: int) -> None:
        """Explicitly choose the primary image."""
        self._check_index(index)
        slot_id = self._slots[index].slot_id
        if slot_id == self._primary_id:
            return
        self._primary_id = slot_id
        self._publish()

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    async def _score_slot(self, slot_id: int, encoded: EncodedImage) -> None:
        result = await self.scorer.score(encoded)
        self._apply_quality(slot_id, result)

    def _apply_quality(self, slot_id: int, result: ImageQualityResult) -> None:
        index = self._index_of(slot_id)
        if index is None:
            logger.debug(f"Dropping quality result for removed image slot {slot_id}")
            metrics.stale_image_scores_total.inc()
            return

        self._slots[index].quality = result
        if self._reevaluate_primary():
            self._publish()

    def _reevaluate_primary(self) -> bool:
        """
        Promote the strictly highest-scoring image once all scores are in.

        Needs at least two images. Ties keep the current primary; images
        without a numeric score never win.

        Returns:
            True if the primary image changed
        """
        if len(self._slots) < 2 or any(slot.quality.pending for slot in self._slots):
            return False

        best_id = self._primary_id
        current = self._index_of(best_id) if best_id is not None else None
        best_score = -1
        if current is not None and self._slots[current].quality.score is not None:
            best_score = self._slots[current].quality.score

        for slot in self._slots:
            score = slot.quality.score
            if score is not None and score > best_score:
                best_score = score
                best_id = slot.slot_id

        if best_id == self._primary_id:
            return False

        logger.info(f"Auto-selected image slot {best_id} as primary (score {best_score})")
        self._primary_id = best_id
        return True

    async def wait_for_scoring(self) -> None:
        """Wait until every submitted scoring call has completed."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
