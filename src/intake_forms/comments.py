"""Comment thread operations.

Both functions mutate the given thread in place.  The store adapter wraps
them in a read-modify-write of the per-case messages blob.
"""

from __future__ import annotations

from datetime import datetime

from intake_forms.errors import NotFound, ValidationError
from intake_forms.models.comment import Comment, CommentThread
from intake_forms.models.enums import Role


def append_comment(
    thread: CommentThread,
    question_id: str,
    role: Role,
    text: str,
    now: datetime,
) -> Comment:
    """Append a comment, creating the question's list if absent.

    Raises:
        ValidationError: if the question id or the stripped text is empty,
            or the role is unknown.
    """
    if not question_id:
        raise ValidationError("question_id is required")
    text = (text or "").strip()
    if not text:
        raise ValidationError(f"Empty comment text for question '{question_id}'")

    try:
        role = Role(role)
    except ValueError:
        raise ValidationError(f"Unknown comment role: {role!r}") from None

    comment = Comment(role=role, text=text, timestamp=now)
    thread.setdefault(question_id, []).append(comment)
    return comment


def remove_comment(thread: CommentThread, question_id: str, index: int) -> Comment:
    """Remove the comment at ``index``; drop the key when the list empties.

    Raises:
        NotFound: if the question has no comments or the index is outside
            ``[0, len)``.
    """
    comments = thread.get(question_id)
    if not comments:
        raise NotFound(f"No comments for question '{question_id}'")
    if not 0 <= index < len(comments):
        raise NotFound(
            f"Comment index {index} out of range for question '{question_id}' "
            f"(len={len(comments)})"
        )
    removed = comments.pop(index)
    if not comments:
        del thread[question_id]
    return removed
