"""Scope listing — every case slug that has saved responses (attorney only)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from intake_forms.models.case import ScopeEntry
from intake_store.adapter import IntakeStore

from intake_server.dependencies import get_db, get_intake_store, require_attorney

router = APIRouter(tags=["scopes"], dependencies=[Depends(require_attorney)])


@router.get("/scopes")
async def list_scopes(
    db: AsyncSession = Depends(get_db),
    intake: IntakeStore = Depends(get_intake_store),
) -> list[ScopeEntry]:
    """Known scopes with their last update time, most recent first."""
    return await intake.list_scopes(db)
