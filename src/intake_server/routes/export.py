"""Export endpoints — Markdown report and JSON snapshot downloads (attorney only)."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from intake_forms.export import (
    ReportRenderer,
    report_filename,
    snapshot_filename,
    to_snapshot,
)
from intake_forms.models.case import ClientCase
from intake_store.adapter import IntakeStore

from intake_server.dependencies import (
    get_db,
    get_intake_store,
    require_attorney,
    require_case_access,
)

router = APIRouter(tags=["export"], dependencies=[Depends(require_attorney)])

_renderer = ReportRenderer()


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/cases/{slug}/export/report")
async def export_report(
    case: ClientCase = Depends(require_case_access),
    db: AsyncSession = Depends(get_db),
    intake: IntakeStore = Depends(get_intake_store),
) -> Response:
    """Human-readable Markdown report of the visible, answered questions."""
    saved = await intake.get_responses(db, case.slug)
    text = _renderer.to_report(case, saved.answers or {})
    return Response(
        content=text,
        media_type="text/markdown; charset=utf-8",
        headers=_attachment(report_filename(case.slug)),
    )


@router.get("/cases/{slug}/export/snapshot")
async def export_snapshot(
    case: ClientCase = Depends(require_case_access),
    db: AsyncSession = Depends(get_db),
    intake: IntakeStore = Depends(get_intake_store),
) -> Response:
    """Raw answer map with case metadata and timestamps."""
    saved = await intake.get_responses(db, case.slug)
    snapshot = to_snapshot(
        case,
        saved.answers or {},
        updated_at=saved.updated_at,
        exported_at=datetime.now(timezone.utc),
    )
    return Response(
        content=snapshot.model_dump_json(indent=2),
        media_type="application/json",
        headers=_attachment(snapshot_filename(case.slug)),
    )
