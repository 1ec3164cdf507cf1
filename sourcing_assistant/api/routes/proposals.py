"""Proposal generation, derived figures and quote requests."""

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from sourcing_assistant.api.deps import get_session
from sourcing_assistant.errors import NetworkError, ParseError, ValidationError
from sourcing_assistant.pipeline import SourcingSession
from sourcing_assistant.proposal import calculations
from sourcing_assistant.proposal.models import PriorityLevel
from sourcing_assistant.proposal.sustainability import classify_risk, classify_sustainability

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proposals", tags=["proposals"])


# Request/response models

class SubmitRequest(BaseModel):
    """Free-text details and hints for the analysis."""
    details: str = ""
    export_country: str = ""
    priority: PriorityLevel = PriorityLevel.MEDIUM


class QuoteRequest(BaseModel):
    email: str


class QuoteResponse(BaseModel):
    success: bool
    message: str


class FactoryRating(BaseModel):
    name: Optional[str]
    risk: Optional[str]
    sustainability: str


class ProposalView(BaseModel):
    """A proposal with every figure derived from it."""
    proposal: Dict[str, Any]
    cost_breakdown: List[Dict[str, Any]]
    includes_section_301: bool
    margins: List[Dict[str, Any]]
    cartons: List[Dict[str, Any]]
    chart: List[Dict[str, Any]]
    factories: List[FactoryRating]
    insight_snippet: str
    source_urls: List[str]
    summary: str
    mid_tier_price: Optional[float] = None
    notifications: List[str] = Field(default_factory=list)


def _build_view(
    session: SourcingSession,
    retail_price: Optional[float],
    packaging_index: int,
) -> ProposalView:
    proposal = session.proposal
    packaging = None
    if 0 <= packaging_index < len(proposal.packaging_options):
        packaging = proposal.packaging_options[packaging_index]

    factories = []
    for bid in proposal.factory_bids:
        risk = classify_risk(bid.risk)
        factories.append(FactoryRating(
            name=bid.name,
            risk=risk.value if risk else None,
            sustainability=classify_sustainability(bid.sustainability).value,
        ))

    return ProposalView(
        proposal=proposal.to_json_dict(),
        cost_breakdown=[asdict(line) for line in calculations.cost_breakdown_lines(proposal)],
        includes_section_301=calculations.includes_section_301(proposal),
        margins=[asdict(row) for row in calculations.margin_table(proposal, retail_price, packaging)],
        cartons=[asdict(row) for row in calculations.carton_table(proposal)],
        chart=[asdict(point) for point in calculations.chart_series(proposal)],
        factories=factories,
        insight_snippet=calculations.insight_snippet(proposal),
        source_urls=calculations.all_source_urls(proposal),
        summary=calculations.summary_text(proposal),
        mid_tier_price=calculations.mid_tier_price(proposal),
        notifications=[note.message for note in session.notifications],
    )


@router.post("", response_model=ProposalView)
async def submit_proposal(
    request: SubmitRequest,
    session: SourcingSession = Depends(get_session),
):
    """Analyze the current images and show the resulting proposal."""
    try:
        await session.submit(
            details=request.details,
            export_country=request.export_country,
            priority=request.priority,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ParseError:
        raise HTTPException(status_code=422, detail=session.error)
    except NetworkError:
        raise HTTPException(status_code=502, detail=session.error)

    return _build_view(session, None, 0)


@router.get("/current", response_model=ProposalView)
async def get_current_proposal(
    retail_price: Optional[float] = Query(None, description="Target retail price for the margin table"),
    packaging: int = Query(0, ge=0, description="Index of the chosen packaging option"),
    session: SourcingSession = Depends(get_session),
):
    """The proposal on display."""
    if session.proposal is None:
        raise HTTPException(status_code=404, detail="No proposal is being displayed")
    return _build_view(session, retail_price, packaging)


@router.post("/current/quote", response_model=QuoteResponse)
async def request_quote(
    request: QuoteRequest,
    session: SourcingSession = Depends(get_session),
):
    """Send the proposal on display to a sourcing expert."""
    try:
        result = await session.request_quote(request.email)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return QuoteResponse(success=result.success, message=result.message)
