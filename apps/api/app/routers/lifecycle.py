"""Archive/restore/delete endpoints shared by donors, children, and projects."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.db.enums import EntityType
from app.services import archive_service


def build_lifecycle_router(entity_type: EntityType, read_schema) -> APIRouter:
    """Routes: POST /{id}/archive, POST /{id}/restore, DELETE /{id}."""
    router = APIRouter()

    @router.post("/{entity_id}/archive", response_model=read_schema)
    def archive_entity(entity_id: int, db: Session = Depends(get_db)):
        """Soft delete; refused while the record owns an active sponsorship."""
        return archive_service.archive(db, entity_type, entity_id)

    @router.post("/{entity_id}/restore", response_model=read_schema)
    def restore_entity(entity_id: int, db: Session = Depends(get_db)):
        return archive_service.restore(db, entity_type, entity_id)

    @router.delete("/{entity_id}", status_code=204)
    def delete_entity(entity_id: int, db: Session = Depends(get_db)):
        """Permanently delete a record that has no donations or sponsorships."""
        archive_service.hard_delete(db, entity_type, entity_id)
        return Response(status_code=204)

    return router
