"""Tests for the sourcing session workflow."""

from unittest.mock import AsyncMock

import pytest

from sourcing_assistant.errors import NetworkError, ParseError, ValidationError
from sourcing_assistant.notify.lead_capture import LeadSubmissionResult
from sourcing_assistant.pipeline import (
    ANALYSIS_FAILED_MESSAGE,
    EMPTY_RESPONSE_MESSAGE,
    NO_IMAGES_MESSAGE,
    PARSE_FAILED_MESSAGE,
    SourcingSession,
)
from sourcing_assistant.proposal.models import PriorityLevel


class TestSourcingSession:

    @pytest.fixture(autouse=True)
    def _session(self, state_store, fake_scorer):
        self.llm = AsyncMock()
        self.lead_client = AsyncMock()
        self.session = SourcingSession(
            state=state_store,
            llm=self.llm,
            scorer=fake_scorer({b"front": 90, b"side": 40}),
            lead_client=self.lead_client,
        )
        self.session.load()

    async def _upload(self, image_file):
        await self.session.images.add_files([image_file("side"), image_file("front")])
        await self.session.images.wait_for_scoring()

    @pytest.mark.asyncio
    async def test_submit_without_images(self):
        with pytest.raises(ValidationError):
            await self.session.submit("details")

        assert self.session.error == NO_IMAGES_MESSAGE
        self.llm.analyze_product.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submit_success(self, image_file, proposal_text):
        await self._upload(image_file)
        self.llm.analyze_product.return_value = proposal_text

        proposal = await self.session.submit("bamboo", "China", PriorityLevel.HIGH)

        assert proposal.product_name == "Bamboo Cutting Board"
        assert self.session.proposal is proposal
        assert self.session.error is None
        assert self.session.is_loading is False

        entries = self.session.history.entries
        assert len(entries) == 1
        assert entries[0].priority_level == PriorityLevel.HIGH
        assert self.session.history.active_id == entries[0].id

    @pytest.mark.asyncio
    async def test_request_sends_primary_image_first(self, image_file, proposal_text):
        await self._upload(image_file)
        self.llm.analyze_product.return_value = proposal_text

        await self.session.submit("bamboo", "", PriorityLevel.LOW)

        request = self.llm.analyze_product.await_args.args[0]
        assert request.images[0] == self.session.images.slots[1].encoded
        assert request.export_country_hint is None
        assert request.priority_hint == PriorityLevel.LOW
        assert request.user_details == "bamboo"

    @pytest.mark.asyncio
    async def test_analysis_failure(self, image_file):
        await self._upload(image_file)
        self.llm.analyze_product.side_effect = RuntimeError("connection reset")

        with pytest.raises(NetworkError):
            await self.session.submit()

        assert self.session.error == ANALYSIS_FAILED_MESSAGE
        assert self.session.is_loading is False
        assert self.session.proposal is None
        assert self.session.history.entries == []

    @pytest.mark.asyncio
    async def test_empty_response(self, image_file):
        await self._upload(image_file)
        self.llm.analyze_product.return_value = ""

        with pytest.raises(ParseError):
            await self.session.submit()

        assert self.session.error == EMPTY_RESPONSE_MESSAGE

    @pytest.mark.asyncio
    async def test_unparsable_response_discards_attempt(self, image_file):
        await self._upload(image_file)
        self.llm.analyze_product.return_value = '{"a":1} extra {not json}'

        with pytest.raises(ParseError):
            await self.session.submit()

        assert self.session.error == PARSE_FAILED_MESSAGE
        assert self.session.proposal is None
        assert self.session.history.entries == []

    @pytest.mark.asyncio
    async def test_new_images_clear_selection(self, image_file, proposal_text):
        await self._upload(image_file)
        self.llm.analyze_product.return_value = proposal_text
        await self.session.submit()

        await self.session.images.add_files([image_file("top")])
        await self.session.images.wait_for_scoring()

        assert self.session.history.active_id is None
        assert len(self.session.uploaded_images) == 3

    @pytest.mark.asyncio
    async def test_alerts_follow_displayed_proposal(self, image_file, proposal_text):
        await self._upload(image_file)
        self.llm.analyze_product.return_value = proposal_text
        await self.session.submit()

        self.session.set_alert(1000, "1.00")
        assert [n.quantity for n in self.session.notifications] == [1000]

        self.session.delete_alert(1000)
        assert self.session.notifications == []

    @pytest.mark.asyncio
    async def test_history_selection_and_deletion(self, image_file, proposal_text):
        await self._upload(image_file)
        self.llm.analyze_product.return_value = proposal_text
        await self.session.submit()
        self.session.set_alert(5000, 0.90)

        self.session.clear_history()
        assert self.session.proposal is None
        assert self.session.notifications == []

        await self.session.submit()
        entry_id = self.session.history.entries[0].id

        assert self.session.select_history(entry_id).product_name == "Bamboo Cutting Board"
        assert [n.quantity for n in self.session.notifications] == [5000]

        self.session.delete_history(entry_id)
        assert self.session.proposal is None
        assert self.session.history.active_id is None

    @pytest.mark.asyncio
    async def test_request_quote_uses_displayed_proposal(self, image_file, proposal_text):
        await self._upload(image_file)
        self.llm.analyze_product.return_value = proposal_text
        await self.session.submit()
        self.lead_client.submit.return_value = LeadSubmissionResult(success=True, message="ok")

        result = await self.session.request_quote("buyer@example.com")

        assert result.success
        self.lead_client.submit.assert_awaited_once_with("buyer@example.com", self.session.proposal)
