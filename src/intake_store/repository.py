"""Async key -> JSON repository over the ``intake_blobs`` table.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Any SQLAlchemy failure is logged with its
traceback and re-raised as ``StoreUnavailable``; there is no retry.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from intake_forms.errors import StoreUnavailable
from intake_store.models.blob import IntakeBlob

logger = logging.getLogger(__name__)


class BlobRepository:
    """Async read/write operations on the ``intake_blobs`` table."""

    async def get_json(self, db: AsyncSession, key: str) -> Any | None:
        """Return the stored document for ``key``, or None if absent."""
        try:
            row = await db.get(IntakeBlob, key)
        except SQLAlchemyError as exc:
            logger.exception("Blob read failed: key=%s", key)
            raise StoreUnavailable(f"read failed for {key}") from exc
        return row.value if row is not None else None

    async def put_json(self, db: AsyncSession, key: str, value: Any) -> datetime:
        """Overwrite (or create) the document for ``key``.

        The caller must ``await db.commit()`` to persist.  Returns the
        write timestamp.
        """
        now = datetime.now(timezone.utc)
        try:
            row = await db.get(IntakeBlob, key)
            if row is None:
                db.add(IntakeBlob(key=key, value=value, updated_at=now))
            else:
                row.value = value
                row.updated_at = now
            await db.flush()
        except SQLAlchemyError as exc:
            logger.exception("Blob write failed: key=%s", key)
            raise StoreUnavailable(f"write failed for {key}") from exc
        return now
