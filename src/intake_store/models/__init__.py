"""ORM models for intake_store."""

from intake_store.models.base import Base
from intake_store.models.blob import IntakeBlob

__all__ = ["Base", "IntakeBlob"]
