"""Price alert routes for the proposal on display."""

from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from sourcing_assistant.api.deps import get_session
from sourcing_assistant.pipeline import SourcingSession

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


class AlertUpdate(BaseModel):
    price: float | str | None = None


class NotificationResponse(BaseModel):
    quantity: int
    threshold: float
    current_price: float
    message: str


class AlertsResponse(BaseModel):
    product_name: str | None
    thresholds: Dict[int, float]
    notifications: List[NotificationResponse]


def _alerts_response(session: SourcingSession) -> AlertsResponse:
    product_name = session.proposal.product_name if session.proposal else None
    return AlertsResponse(
        product_name=product_name,
        thresholds=session.alerts.alerts_for(product_name),
        notifications=[
            NotificationResponse(
                quantity=note.quantity,
                threshold=note.threshold,
                current_price=note.current_price,
                message=note.message,
            )
            for note in session.notifications
        ],
    )


def _require_proposal(session: SourcingSession) -> None:
    if session.proposal is None:
        raise HTTPException(status_code=409, detail="No proposal is being displayed")


@router.get("", response_model=AlertsResponse)
async def get_alerts(session: SourcingSession = Depends(get_session)):
    """Thresholds and triggered notifications for the current proposal."""
    return _alerts_response(session)


@router.put("/{quantity}", response_model=AlertsResponse)
async def set_alert(quantity: int, update: AlertUpdate, session: SourcingSession = Depends(get_session)):
    """Set a target price; a missing or non-positive price clears it."""
    _require_proposal(session)
    session.set_alert(quantity, update.price)
    return _alerts_response(session)


@router.delete("/{quantity}", response_model=AlertsResponse)
async def delete_alert(quantity: int, session: SourcingSession = Depends(get_session)):
    """Clear a target price."""
    _require_proposal(session)
    session.delete_alert(quantity)
    return _alerts_response(session)
