"""Image upload and ordering routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from sourcing_assistant.api.deps import get_session
from sourcing_assistant.ingest.models import CandidateFile, ImageSlot
from sourcing_assistant.pipeline import SourcingSession

router = APIRouter(prefix="/api/images", tags=["images"])


class ImageResponse(BaseModel):
    slot_id: int
    name: str
    mime_type: str
    size_bytes: int
    is_primary: bool
    preview_uri: str
    pending: bool
    score: Optional[int] = None
    rating: Optional[str] = None
    feedback: Optional[str] = None


class ImageSetResponse(BaseModel):
    images: List[ImageResponse]
    primary_index: int
    error: Optional[str] = None


class MoveRequest(BaseModel):
    from_index: int
    to_index: int


class PrimaryRequest(BaseModel):
    index: int


def _image_response(slot: ImageSlot, is_primary: bool) -> ImageResponse:
    quality = slot.quality
    return ImageResponse(
        slot_id=slot.slot_id,
        name=slot.image.name,
        mime_type=slot.image.mime_type,
        size_bytes=slot.image.size_bytes,
        is_primary=is_primary,
        preview_uri=slot.preview_uri,
        pending=quality.pending,
        score=quality.score,
        rating=quality.rating.value if quality.rating else None,
        feedback=quality.feedback,
    )


def _image_set_response(session: SourcingSession) -> ImageSetResponse:
    manager = session.images
    primary = manager.primary_index
    error = manager.current_error
    return ImageSetResponse(
        images=[_image_response(slot, i == primary) for i, slot in enumerate(manager.slots)],
        primary_index=primary,
        error=str(error) if error else None,
    )


@router.get("", response_model=ImageSetResponse)
async def list_images(session: SourcingSession = Depends(get_session)):
    """List the working image set."""
    return _image_set_response(session)


@router.post("", response_model=ImageSetResponse)
async def upload_images(
    files: List[UploadFile] = File(...),
    session: SourcingSession = Depends(get_session),
):
    """Add a batch of images; scoring continues in the background."""
    candidates = [
        CandidateFile(
            name=upload.filename or "upload",
            mime_type=upload.content_type or "application/octet-stream",
            data=await upload.read(),
        )
        for upload in files
    ]
    await session.images.add_files(candidates)
    return _image_set_response(session)


@router.delete("/{index}", response_model=ImageSetResponse)
async def remove_image(index: int, session: SourcingSession = Depends(get_session)):
    """Remove an image by position."""
    try:
        session.images.remove(index)
    except IndexError:
        raise HTTPException(status_code=404, detail="Image not found")
    return _image_set_response(session)


@router.post("/move", response_model=ImageSetResponse)
async def move_image(request: MoveRequest, session: SourcingSession = Depends(get_session)):
    """Reorder an image."""
    try:
        session.images.move(request.from_index, request.to_index)
    except IndexError:
        raise HTTPException(status_code=404, detail="Image not found")
    return _image_set_response(session)


@router.put("/primary", response_model=ImageSetResponse)
async def set_primary_image(request: PrimaryRequest, session: SourcingSession = Depends(get_session)):
    """Choose the primary image."""
    try:
        session.images.set_primary(request.index)
    except IndexError:
        raise HTTPException(status_code=404, detail="Image not found")
    return _image_set_response(session)
