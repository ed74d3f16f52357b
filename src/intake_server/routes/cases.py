"""Case endpoints — dashboard, schema, rendered form and progress.

The rendered form and progress are computed from the latest saved answers
on every request; nothing is cached.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from intake_forms.casebook import CaseStore
from intake_forms.dashboard import summarize_cases
from intake_forms.evaluator import FormEvaluator
from intake_forms.models.case import CaseSummary, ClientCase
from intake_forms.models.view import FormView, ProgressReport
from intake_store.adapter import IntakeStore

from intake_server.dependencies import (
    get_case_store,
    get_db,
    get_evaluator,
    get_intake_store,
    require_attorney,
    require_case_access,
)

router = APIRouter(tags=["cases"])


class CaseDetail(BaseModel):
    """Case metadata plus the full question schema."""
    metadata: dict[str, Any]
    upload_url: str | None = None
    versions: list[int]
    case: ClientCase


@router.get("/cases", dependencies=[Depends(require_attorney)])
async def list_cases(
    db: AsyncSession = Depends(get_db),
    store: CaseStore = Depends(get_case_store),
    intake: IntakeStore = Depends(get_intake_store),
    evaluator: FormEvaluator = Depends(get_evaluator),
) -> list[CaseSummary]:
    """Attorney dashboard: every case with progress, most recently updated first."""
    index = await intake.get_index(db)
    answers_by_slug = {}
    for slug in store.slugs():
        saved = await intake.get_responses(db, slug)
        answers_by_slug[slug] = saved.answers or {}
    return summarize_cases(store, index, answers_by_slug, evaluator=evaluator)


@router.get("/cases/{slug}")
async def get_case(
    case: ClientCase = Depends(require_case_access),
    store: CaseStore = Depends(get_case_store),
) -> CaseDetail:
    """Case metadata and questionnaire schema."""
    return CaseDetail(
        metadata=case.metadata(),
        upload_url=case.upload_url,
        versions=store.versions(case.slug),
        case=case,
    )


@router.get("/cases/{slug}/form")
async def get_form(
    case: ClientCase = Depends(require_case_access),
    db: AsyncSession = Depends(get_db),
    intake: IntakeStore = Depends(get_intake_store),
    evaluator: FormEvaluator = Depends(get_evaluator),
) -> FormView:
    """Visible questions with their current values and answered flags."""
    saved = await intake.get_responses(db, case.slug)
    return evaluator.render_form(case, saved.answers or {})


@router.get("/cases/{slug}/progress")
async def get_progress(
    case: ClientCase = Depends(require_case_access),
    db: AsyncSession = Depends(get_db),
    intake: IntakeStore = Depends(get_intake_store),
    evaluator: FormEvaluator = Depends(get_evaluator),
) -> ProgressReport:
    """Overall and per-section progress."""
    saved = await intake.get_responses(db, case.slug)
    return evaluator.progress_report(case, saved.answers or {})
