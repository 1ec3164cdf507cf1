"""Proposal history routes."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from sourcing_assistant.api.deps import get_session
from sourcing_assistant.pipeline import SourcingSession

router = APIRouter(prefix="/api/history", tags=["history"])


class HistoryItemResponse(BaseModel):
    id: str
    product_name: Optional[str]
    created_at: datetime
    priority: str
    active: bool


@router.get("", response_model=List[HistoryItemResponse])
async def list_history(session: SourcingSession = Depends(get_session)):
    """List past proposals, newest first."""
    return [
        HistoryItemResponse(
            id=entry.id,
            product_name=entry.product_name,
            created_at=entry.created_at,
            priority=entry.priority_level.value,
            active=entry.id == session.history.active_id,
        )
        for entry in session.history.entries
    ]


@router.post("/{entry_id}/select")
async def select_history(entry_id: str, session: SourcingSession = Depends(get_session)):
    """Show a past proposal."""
    proposal = session.select_history(entry_id)
    if proposal is None:
        raise HTTPException(status_code=404, detail="History entry not found")
    return proposal.to_json_dict()


@router.delete("/{entry_id}", status_code=204)
async def delete_history(entry_id: str, session: SourcingSession = Depends(get_session)):
    """Delete one history entry."""
    if session.history.get(entry_id) is None:
        raise HTTPException(status_code=404, detail="History entry not found")
    session.delete_history(entry_id)


@router.delete("", status_code=204)
async def clear_history(session: SourcingSession = Depends(get_session)):
    """Delete all history."""
    session.clear_history()
