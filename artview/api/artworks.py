"""Artwork catalogue endpoints."""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db
from ..core.exceptions import NotFound
from ..core.security import get_current_staff_user
from ..crud.artworks import artwork_crud
from .. import models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Artworks"])


def artwork_page_url(artwork_id: str) -> Optional[str]:
    """Visitor page a QR code for this artwork should open."""
    if not settings.FRONTEND_URL:
        return None
    return f"{settings.FRONTEND_URL.rstrip('/')}/artwork.html?id={artwork_id}"


def to_response(artwork: models.Artwork) -> schemas.ArtworkResponse:
    response = schemas.ArtworkResponse.model_validate(artwork)
    return response.model_copy(update={"artwork_url": artwork_page_url(artwork.id)})


@router.get("/artworks", response_model=List[schemas.ArtworkResponse])
async def list_artworks(db: Session = Depends(get_db)) -> List[schemas.ArtworkResponse]:
    """Public catalogue, newest first."""
    return [to_response(artwork) for artwork in artwork_crud.list_artworks(db)]


@router.get("/artworks/{artwork_id}", response_model=schemas.ArtworkResponse)
async def get_artwork(artwork_id: str, db: Session = Depends(get_db)) -> schemas.ArtworkResponse:
    """Artwork details shown to a visitor after scanning its QR code."""
    artwork = artwork_crud.get_artwork(db, artwork_id)
    if not artwork:
        raise NotFound("Artwork not found")
    return to_response(artwork)


@router.get("/admin/artworks", response_model=List[schemas.ArtworkResponse])
async def list_artworks_admin(
    current_user: schemas.StaffIdentity = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
) -> List[schemas.ArtworkResponse]:
    return [to_response(artwork) for artwork in artwork_crud.list_artworks(db)]


@router.post("/admin/artworks", response_model=schemas.ArtworkResponse, status_code=status.HTTP_201_CREATED)
async def create_artwork(
    artwork_data: schemas.ArtworkCreate,
    current_user: schemas.StaffIdentity = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
) -> schemas.ArtworkResponse:
    """Register an artwork whose image has already been stored."""
    artwork = artwork_crud.create_artwork(db, artwork_data, created_by=current_user.username)
    logger.info(f"Artwork {artwork.id} created by {current_user.username}")
    return to_response(artwork)


@router.delete("/admin/artworks/{artwork_id}", response_model=schemas.MessageResponse)
async def delete_artwork(
    artwork_id: str,
    current_user: schemas.StaffIdentity = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
) -> schemas.MessageResponse:
    """Delete an artwork together with its engagement history."""
    artwork = artwork_crud.get_artwork(db, artwork_id)
    if not artwork:
        raise NotFound("Artwork not found")
    artwork_crud.delete_artwork(db, artwork)
    return schemas.MessageResponse(message="Artwork deleted successfully")


@router.get("/admin/download-qr/{artwork_id}", response_class=RedirectResponse)
async def download_qr_code(
    artwork_id: str,
    current_user: schemas.StaffIdentity = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
) -> RedirectResponse:
    """Redirect to the stored QR code image of an artwork."""
    artwork = artwork_crud.get_artwork(db, artwork_id)
    if not artwork:
        raise NotFound("Artwork not found")
    if not artwork.qr_code_url:
        raise NotFound("QR code not available for this artwork")
    return RedirectResponse(artwork.qr_code_url, status_code=status.HTTP_302_FOUND)
