"""IntakeBlob ORM model — one row per blob key.

The store is a plain key -> JSON document table.  Per case slug there is a
``responses-<slug>`` row (``{"answers": ..., "updated_at": ...}``) and a
``messages-<slug>`` row (the comment thread), plus a single
``scope-index`` row mapping slug -> last update time.
"""

from datetime import datetime, timezone

from sqlalchemy import Text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from intake_store.models.base import Base


class IntakeBlob(Base):
    """A single opaque JSON document addressed by key."""

    __tablename__ = "intake_blobs"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[dict] = mapped_column(JSONB, nullable=False)

    # Overwritten on every put (last write wins)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<IntakeBlob key={self.key!r}>"
