"""Sourcing session: images in, proposal out, with history and price alerts."""

import logging
import time
from typing import Any, List, Optional

from sourcing_assistant import metrics
from sourcing_assistant.ai.llm_service import LLMService, llm_service
from sourcing_assistant.ai.prompts import AnalysisRequest
from sourcing_assistant.errors import NetworkError, ParseError, ValidationError
from sourcing_assistant.ingest.image_set import ImageSetManager
from sourcing_assistant.ingest.models import EncodedImage
from sourcing_assistant.ingest.quality_scorer import ImageQualityScorer
from sourcing_assistant.notify.lead_capture import (
    LeadCaptureClient,
    LeadSubmissionResult,
    lead_capture_client,
)
from sourcing_assistant.notify.price_alerts import PriceAlertBook, PriceAlertNotification
from sourcing_assistant.proposal.models import PriorityLevel, Proposal
from sourcing_assistant.proposal.parser import parse_proposal
from sourcing_assistant.storage.history import HistoryEntry, HistoryStore
from sourcing_assistant.storage.local_state import LocalStateStore

logger = logging.getLogger(__name__)

NO_IMAGES_MESSAGE = "Please upload at least one image of the product."
EMPTY_RESPONSE_MESSAGE = "Received an empty response from the AI."
PARSE_FAILED_MESSAGE = "Failed to parse the data from the AI. The format was invalid."
ANALYSIS_FAILED_MESSAGE = "An error occurred while fetching the estimate. Please try again."


class SourcingSession:
    """
    One user's working session.

    Holds the image set, the proposal currently on display, and the persisted
    history and price alerts. Nothing here retries: a failed submission sets
    ``error`` and waits for the user to submit again.
    """

    def __init__(
        self,
        state: Optional[LocalStateStore] = None,
        llm: Optional[LLMService] = None,
        scorer: Optional[ImageQualityScorer] = None,
        lead_client: Optional[LeadCaptureClient] = None,
    ):
        self.state = state or LocalStateStore()
        self.history = HistoryStore(self.state)
        self.alerts = PriceAlertBook(self.state)
        self.llm = llm or llm_service
        self.lead_client = lead_client or lead_capture_client
        self.images = ImageSetManager(scorer=scorer, on_publish=self._on_images_published)

        self.uploaded_images: List[EncodedImage] = []
        self.proposal: Optional[Proposal] = None
        self.notifications: List[PriceAlertNotification] = []
        self.error: Optional[str] = None
        self.is_loading: bool = False

    def load(self) -> None:
        """Read persisted history and alerts; call once at startup."""
        self.history.load()
        self.alerts.load()

    def _on_images_published(self, images: List[EncodedImage]) -> None:
        self.uploaded_images = images
        self.error = None
        self.history.active_id = None

    def _show(self, proposal: Optional[Proposal]) -> None:
        self.proposal = proposal
        self.refresh_notifications()
        if self.notifications:
            metrics.price_alerts_triggered_total.inc(len(self.notifications))

    def refresh_notifications(self) -> None:
        self.notifications = self.alerts.evaluate(self.proposal) if self.proposal else []

    async def submit(
        self,
        details: str = "",
        export_country: str = "",
        priority: PriorityLevel = PriorityLevel.MEDIUM,
    ) -> Proposal:
        """
        Generate a proposal from the current images.

        Raises:
            ValidationError: If no image has been uploaded
            NetworkError: If the analysis service failed
            ParseError: If the response could not be parsed
        """
        if not self.uploaded_images:
            self.error = NO_IMAGES_MESSAGE
            raise ValidationError(NO_IMAGES_MESSAGE)

        self.is_loading = True
        self.error = None
        self._show(None)

        request = AnalysisRequest(
            images=self.uploaded_images,
            user_details=details,
            export_country_hint=export_country or None,
            priority_hint=priority,
        )

        started = time.monotonic()
        try:
            response_text = await self.llm.analyze_product(request)
        except Exception as e:
            metrics.record_analysis(False, time.monotonic() - started)
            logger.error(f"Error getting price estimate: {e}")
            self.error = ANALYSIS_FAILED_MESSAGE
            raise NetworkError(ANALYSIS_FAILED_MESSAGE) from e
        finally:
            self.is_loading = False
        metrics.record_analysis(True, time.monotonic() - started)

        if not response_text:
            self.error = EMPTY_RESPONSE_MESSAGE
            raise ParseError(EMPTY_RESPONSE_MESSAGE)

        try:
            proposal = parse_proposal(response_text)
        except ParseError:
            self.error = PARSE_FAILED_MESSAGE
            raise

        entry = HistoryEntry.for_proposal(proposal, priority)
        self.history.append(entry)
        self.history.active_id = entry.id
        self._show(proposal)
        return proposal

    def select_history(self, entry_id: str) -> Optional[Proposal]:
        proposal = self.history.select(entry_id)
        if proposal is not None:
            self._show(proposal)
            self.error = None
        return proposal

    def delete_history(self, entry_id: str) -> None:
        if self.history.delete(entry_id):
            self._show(None)

    def clear_history(self) -> None:
        self.history.clear()
        self._show(None)

    def set_alert(self, quantity: int, price: Any) -> None:
        """Set a target price for a tier of the proposal on display."""
        if self.proposal is None:
            return
        self.alerts.set_alert(self.proposal.product_name, quantity, price)
        self.refresh_notifications()

    def delete_alert(self, quantity: int) -> None:
        if self.proposal is None:
            return
        self.alerts.delete_alert(self.proposal.product_name, quantity)
        self.refresh_notifications()

    async def request_quote(self, email: str) -> LeadSubmissionResult:
        """
        Send the proposal on display to the lead-capture endpoint.

        Raises:
            ValidationError: If the email is invalid or no proposal is shown
        """
        return await self.lead_client.submit(email, self.proposal)
