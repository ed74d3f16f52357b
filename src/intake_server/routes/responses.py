"""Answer map endpoints — read and wholesale overwrite.

A save replaces the whole answer map (last write wins).  Every value is
checked against its question kind first; a wrong-shaped value rejects the
whole save.  The configured hidden-answer policy is applied before the
write.
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from intake_forms.evaluator import FormEvaluator
from intake_forms.models.case import ClientCase, StoredResponses
from intake_forms.validation import validate_answers
from intake_store.adapter import IntakeStore

from intake_server.config import ServerSettings
from intake_server.dependencies import (
    get_db,
    get_evaluator,
    get_intake_store,
    get_settings,
    require_case_access,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["responses"])


class SaveResponsesRequest(BaseModel):
    """Body for PUT /cases/{slug}/responses."""
    answers: dict[str, Any]


class SaveResponsesResult(BaseModel):
    updated_at: datetime


@router.get("/cases/{slug}/responses")
async def get_responses(
    case: ClientCase = Depends(require_case_access),
    db: AsyncSession = Depends(get_db),
    intake: IntakeStore = Depends(get_intake_store),
) -> StoredResponses:
    """Saved answers, or ``{answers: null, updated_at: null}`` if none yet."""
    return await intake.get_responses(db, case.slug)


@router.put("/cases/{slug}/responses")
async def save_responses(
    body: SaveResponsesRequest,
    case: ClientCase = Depends(require_case_access),
    db: AsyncSession = Depends(get_db),
    intake: IntakeStore = Depends(get_intake_store),
    evaluator: FormEvaluator = Depends(get_evaluator),
    settings: ServerSettings = Depends(get_settings),
) -> SaveResponsesResult:
    """Validate and overwrite the answer map for this case."""
    validate_answers(case, body.answers)
    answers = evaluator.apply_hidden_policy(case, body.answers, settings.hidden_answer_policy)
    updated_at = await intake.put_responses(db, case.slug, answers)
    return SaveResponsesResult(updated_at=updated_at)
