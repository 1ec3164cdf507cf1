"""Tests for the lead capture client."""

import httpx
import pytest

from sourcing_assistant.errors import ValidationError
from sourcing_assistant.notify.lead_capture import (
    DEFAULT_FAILURE_MESSAGE,
    SUCCESS_MESSAGE,
    LeadCaptureClient,
)
from sourcing_assistant.proposal.models import Proposal

ENDPOINT = "https://leads.example.com/api/save-lead"


@pytest.fixture
def proposal():
    return Proposal.model_validate({"productName": "Widget", "ddpPriceTiers": [{"quantity": 1000, "pricePerUnit": 1}]})


def _client(handler) -> LeadCaptureClient:
    client = LeadCaptureClient(endpoint_url=ENDPOINT)
    client._http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


@pytest.mark.asyncio
async def test_successful_submission(proposal):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.read()
        return httpx.Response(200, json={"ok": True})

    client = _client(handler)
    result = await client.submit("buyer@example.com", proposal)
    await client.close()

    assert result.success
    assert result.message == SUCCESS_MESSAGE
    assert seen["url"] == ENDPOINT
    assert b'"email":"buyer@example.com"' in seen["body"].replace(b" ", b"")
    assert b'"productName":"Widget"' in seen["body"].replace(b" ", b"")


@pytest.mark.asyncio
async def test_server_error_message_is_passed_through(proposal):
    client = _client(lambda request: httpx.Response(409, json={"error": "Lead already exists."}))

    result = await client.submit("buyer@example.com", proposal)

    assert not result.success
    assert result.message == "Lead already exists."


@pytest.mark.asyncio
async def test_non_json_error_uses_default_message(proposal):
    client = _client(lambda request: httpx.Response(500, text="Internal Server Error"))

    result = await client.submit("buyer@example.com", proposal)

    assert not result.success
    assert result.message == DEFAULT_FAILURE_MESSAGE


@pytest.mark.asyncio
async def test_transport_failure_is_a_failed_result(proposal):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await _client(handler).submit("buyer@example.com", proposal)

    assert not result.success
    assert result.message == DEFAULT_FAILURE_MESSAGE


@pytest.mark.parametrize("email", ["", "buyer", "buyer@example", "a b@example.com"])
def test_invalid_email(email, proposal):
    with pytest.raises(ValidationError, match="valid email"):
        LeadCaptureClient.validate(email, proposal)


def test_proposal_needs_product_name():
    with pytest.raises(ValidationError, match="proposal"):
        LeadCaptureClient.validate("buyer@example.com", Proposal())

    with pytest.raises(ValidationError):
        LeadCaptureClient.validate("buyer@example.com", None)
