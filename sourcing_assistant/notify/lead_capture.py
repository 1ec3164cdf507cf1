"""Client for the lead-capture endpoint."""

import logging
import re
from dataclasses import dataclass

import httpx

from sourcing_assistant import metrics
from sourcing_assistant.config import settings
from sourcing_assistant.errors import ValidationError
from sourcing_assistant.proposal.models import Proposal

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SUCCESS_MESSAGE = "Thank you! Our sourcing expert will contact you shortly."
DEFAULT_FAILURE_MESSAGE = "Failed to save lead. Please try again."


@dataclass
class LeadSubmissionResult:
    success: bool
    message: str


class LeadCaptureClient:
    """Posts ``{email, proposal}`` to the lead-capture endpoint."""

    def __init__(self, endpoint_url: str | None = None):
        self.endpoint_url = endpoint_url or settings.lead_capture_url
        self._http_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=settings.lead_capture_timeout_seconds)
        return self._http_client

    async def close(self):
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    @staticmethod
    def validate(email: str, proposal: Proposal | None) -> None:
        """
        Check the submission before it is sent.

        Raises:
            ValidationError: If the email is malformed or the proposal has no product name
        """
        if not email or not EMAIL_RE.match(email):
            raise ValidationError("A valid email is required.")
        if proposal is None or not proposal.product_name:
            raise ValidationError("Valid proposal data is required.")

    async def submit(self, email: str, proposal: Proposal) -> LeadSubmissionResult:
        """
        Send a lead.

        Returns:
            LeadSubmissionResult; transport failures are reported as a failed result
        """
        self.validate(email, proposal)

        try:
            client = await self._get_client()
            response = await client.post(
                self.endpoint_url,
                json={"email": email, "proposal": proposal.to_json_dict()},
            )
        except httpx.HTTPError as e:
            logger.error(f"Lead submission failed: {e}")
            metrics.record_lead_submission(False)
            return LeadSubmissionResult(success=False, message=DEFAULT_FAILURE_MESSAGE)

        if response.is_success:
            logger.info(f"Lead saved for {proposal.product_name}")
            metrics.record_lead_submission(True)
            return LeadSubmissionResult(success=True, message=SUCCESS_MESSAGE)

        message = DEFAULT_FAILURE_MESSAGE
        try:
            body = response.json()
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
        except ValueError:
            pass  # Non-JSON error body

        logger.warning(f"Lead endpoint returned {response.status_code}: {message}")
        metrics.record_lead_submission(False)
        return LeadSubmissionResult(success=False, message=message)


# Global lead capture client
lead_capture_client = LeadCaptureClient()
