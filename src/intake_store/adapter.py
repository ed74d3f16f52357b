"""IntakeStore — responses, comments and the scope index over the blob table.

Key layout::

    responses-<slug>   {"answers": {...}, "updated_at": "ISO8601"}
    messages-<slug>    {question_id: [{"role", "text", "timestamp"}, ...]}
    scope-index        {slug: "ISO8601", ...}

Every write is a wholesale overwrite of one document (last write wins).
Comment operations are read-modify-write on the messages document and the
responses and messages documents are independent: there is no transaction
spanning both.  Answers are stored as given; shape validation and the
hidden-answer policy are applied by the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from intake_forms.comments import append_comment, remove_comment
from intake_forms.constants import (
    MESSAGES_KEY_PREFIX,
    SCOPE_INDEX_KEY,
    RESPONSES_KEY_PREFIX,
)
from intake_forms.models.case import ScopeEntry, StoredResponses
from intake_forms.models.comment import Comment, CommentThread
from intake_forms.models.enums import Role
from intake_store.repository import BlobRepository

logger = logging.getLogger(__name__)

_thread_adapter = TypeAdapter(CommentThread)


def responses_key(slug: str) -> str:
    return f"{RESPONSES_KEY_PREFIX}{slug}"


def messages_key(slug: str) -> str:
    return f"{MESSAGES_KEY_PREFIX}{slug}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IntakeStore:
    """Blob Store Adapter used by the HTTP layer.

    Args:
        repository: key -> JSON repository (swap for an in-memory mock in tests)
        clock: returns the current time; defaults to UTC now
    """

    def __init__(
        self,
        repository: BlobRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.repo = repository or BlobRepository()
        self._clock = clock or _utcnow

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    async def get_responses(self, db: AsyncSession, slug: str) -> StoredResponses:
        """Return the saved answers for ``slug``; empty (not an error) if none."""
        doc = await self.repo.get_json(db, responses_key(slug))
        if doc is None:
            return StoredResponses()
        return StoredResponses.model_validate(doc)

    async def put_responses(
        self, db: AsyncSession, slug: str, answers: Mapping[str, Any]
    ) -> datetime:
        """Overwrite the answers for ``slug`` and bump the scope index."""
        updated_at = self._clock()
        doc = StoredResponses(answers=dict(answers), updated_at=updated_at)
        await self.repo.put_json(db, responses_key(slug), doc.model_dump(mode="json"))

        index = await self.repo.get_json(db, SCOPE_INDEX_KEY) or {}
        index[slug] = updated_at.isoformat()
        await self.repo.put_json(db, SCOPE_INDEX_KEY, index)

        logger.info("Saved responses: slug=%s answers=%d", slug, len(answers))
        return updated_at

    async def get_index(self, db: AsyncSession) -> dict[str, datetime]:
        """Slug -> last update time for every slug ever saved."""
        raw = await self.repo.get_json(db, SCOPE_INDEX_KEY) or {}
        return {slug: datetime.fromisoformat(ts) for slug, ts in raw.items()}

    async def list_scopes(self, db: AsyncSession) -> list[ScopeEntry]:
        """All saved scopes, most recently updated first."""
        index = await self.get_index(db)
        entries = [ScopeEntry(scope=s, updated_at=ts) for s, ts in index.items()]
        entries.sort(key=lambda e: e.updated_at, reverse=True)
        return entries

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def get_comments(self, db: AsyncSession, slug: str) -> CommentThread:
        """Return the comment thread for ``slug``; ``{}`` if none."""
        doc = await self.repo.get_json(db, messages_key(slug))
        if not doc:
            return {}
        return _thread_adapter.validate_python(doc)

    async def _put_comments(
        self, db: AsyncSession, slug: str, thread: CommentThread
    ) -> None:
        await self.repo.put_json(
            db, messages_key(slug), _thread_adapter.dump_python(thread, mode="json")
        )

    async def append_comment(
        self,
        db: AsyncSession,
        slug: str,
        question_id: str,
        role: Role,
        text: str,
    ) -> Comment:
        """Append a server-timestamped comment and return it."""
        thread = await self.get_comments(db, slug)
        comment = append_comment(thread, question_id, role, text, self._clock())
        await self._put_comments(db, slug, thread)
        logger.info(
            "Comment added: slug=%s question=%s role=%s", slug, question_id, comment.role.value
        )
        return comment

    async def remove_comment(
        self, db: AsyncSession, slug: str, question_id: str, index: int
    ) -> Comment:
        """Remove one comment by index.

        Raises:
            NotFound: if the question has no comments or the index is out
                of range.
        """
        thread = await self.get_comments(db, slug)
        removed = remove_comment(thread, question_id, index)
        await self._put_comments(db, slug, thread)
        logger.info("Comment removed: slug=%s question=%s index=%d", slug, question_id, index)
        return removed
