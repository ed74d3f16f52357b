"""Comment endpoints — list, append and remove inline field comments.

The role recorded on a comment must be the caller's own role: a client
cannot post as the attorney and vice versa.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from intake_forms.errors import AuthForbidden, ValidationError
from intake_forms.evaluator import FormEvaluator
from intake_forms.models.case import ClientCase
from intake_forms.models.comment import Comment, CommentThread
from intake_forms.models.enums import Role
from intake_store.adapter import IntakeStore

from intake_server.auth import Credential
from intake_server.dependencies import (
    get_credential,
    get_db,
    get_evaluator,
    get_intake_store,
    require_case_access,
)

router = APIRouter(tags=["comments"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class AddCommentRequest(BaseModel):
    """Body for POST /cases/{slug}/comments."""
    question_id: str
    role: Role
    text: str


class CommentsResponse(BaseModel):
    comments: CommentThread
    # Question ids with comments, in schema order (review navigator)
    commented: list[str]


class CommentCreated(BaseModel):
    comment: Comment


class RemoveResult(BaseModel):
    ok: bool = True


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/cases/{slug}/comments")
async def get_comments(
    case: ClientCase = Depends(require_case_access),
    db: AsyncSession = Depends(get_db),
    intake: IntakeStore = Depends(get_intake_store),
    evaluator: FormEvaluator = Depends(get_evaluator),
) -> CommentsResponse:
    thread = await intake.get_comments(db, case.slug)
    return CommentsResponse(
        comments=thread,
        commented=evaluator.commented_question_ids(case, thread),
    )


@router.post("/cases/{slug}/comments", status_code=201)
async def add_comment(
    body: AddCommentRequest,
    case: ClientCase = Depends(require_case_access),
    credential: Credential = Depends(get_credential),
    db: AsyncSession = Depends(get_db),
    intake: IntakeStore = Depends(get_intake_store),
) -> CommentCreated:
    """Append a comment to one question.  403 if ``role`` is not the caller's."""
    if body.role is not credential.role:
        raise AuthForbidden(
            f"comment role {body.role.value} does not match credential {credential.role.value}"
        )
    if body.question_id not in case.question_ids:
        raise ValidationError(f"Unknown question id '{body.question_id}' for case {case.slug}")
    comment = await intake.append_comment(db, case.slug, body.question_id, body.role, body.text)
    return CommentCreated(comment=comment)


@router.delete("/cases/{slug}/comments/{question_id}/{index}")
async def remove_comment(
    question_id: str,
    index: int,
    case: ClientCase = Depends(require_case_access),
    db: AsyncSession = Depends(get_db),
    intake: IntakeStore = Depends(get_intake_store),
) -> RemoveResult:
    """Remove one comment by position.  404 if there is no such comment."""
    await intake.remove_comment(db, case.slug, question_id, index)
    return RemoveResult()
