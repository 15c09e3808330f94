"""CRUD operations for the artwork catalogue."""

import logging
import uuid
from typing import List, Optional
from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..models import Artwork
from ..schemas import ArtworkCreate
from .engagements import engagement_crud

logger = logging.getLogger(__name__)


class ArtworkCRUD:
    """CRUD operations for the artwork catalogue."""

    def get_artwork(self, db: Session, artwork_id: str) -> Optional[Artwork]:
        """Get an artwork by its public id."""
        return db.query(Artwork).filter(Artwork.id == artwork_id).first()

    def list_artworks(self, db: Session) -> List[Artwork]:
        """All artworks, newest first."""
        return db.query(Artwork).order_by(desc(Artwork.created_at), desc(Artwork.pk)).all()

    def create_artwork(self, db: Session, artwork_data: ArtworkCreate, created_by: str) -> Artwork:
        """Create a catalogue entry with a freshly generated public id."""
        artwork = Artwork(id=str(uuid.uuid4()), created_by=created_by, **artwork_data.model_dump())
        db.add(artwork)
        db.commit()
        db.refresh(artwork)
        return artwork

    def delete_artwork(self, db: Session, artwork: Artwork) -> int:
        """Delete an artwork and its engagements. Returns the number of engagements removed."""
        removed = engagement_crud.delete_for_artwork(db, artwork.id)
        db.delete(artwork)
        db.commit()
        logger.info(f"Deleted artwork {artwork.id} and {removed} engagement records")
        return removed


# Create instance
artwork_crud = ArtworkCRUD()
