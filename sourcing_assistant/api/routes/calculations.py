"""Derived figures for any proposal payload."""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from sourcing_assistant.api.deps import get_session
from sourcing_assistant.pipeline import SourcingSession
from sourcing_assistant.proposal import calculations
from sourcing_assistant.proposal.models import Proposal

router = APIRouter(prefix="/api/calculations", tags=["calculations"])


class CalculationRequest(BaseModel):
    proposal: Dict[str, Any]
    retail_price: Optional[float] = None
    packaging_index: int = 0


class CalculationResponse(BaseModel):
    margins: List[Dict[str, Any]]
    cartons: List[Dict[str, Any]]
    cost_breakdown: List[Dict[str, Any]]
    chart: List[Dict[str, Any]]


@router.post("", response_model=CalculationResponse)
async def calculate(request: CalculationRequest):
    """Margins, cartons, cost lines and chart points for a proposal."""
    proposal = Proposal.model_validate(request.proposal)
    packaging = None
    if 0 <= request.packaging_index < len(proposal.packaging_options):
        packaging = proposal.packaging_options[request.packaging_index]

    return CalculationResponse(
        margins=[asdict(row) for row in calculations.margin_table(proposal, request.retail_price, packaging)],
        cartons=[asdict(row) for row in calculations.carton_table(proposal)],
        cost_breakdown=[asdict(line) for line in calculations.cost_breakdown_lines(proposal)],
        chart=[asdict(point) for point in calculations.chart_series(proposal)],
    )


@router.get("/cartons")
async def estimate_cartons(
    quantity: int = Query(..., ge=0),
    session: SourcingSession = Depends(get_session),
):
    """Cartons and total DDP cost for an order quantity of the displayed proposal."""
    if session.proposal is None:
        raise HTTPException(status_code=404, detail="No proposal is being displayed")
    return asdict(calculations.carton_estimate(session.proposal, quantity))
