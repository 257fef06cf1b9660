"""SQLAlchemy ORM models for Bleep's on-disk store."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Current time as naive UTC, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class StoredValue(Base):
    """One JSON document per key (``allPrograms``, ``settings``)."""

    __tablename__ = "stored_values"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<StoredValue key={self.key} bytes={len(self.value or '')}>"


class CompletionRecord(Base):
    """A program played to the end."""

    __tablename__ = "completions"

    id = Column(String(16), primary_key=True)
    program_id = Column(String(64), nullable=False, index=True)
    completed_at = Column(DateTime, nullable=False)  # naive UTC

    def __repr__(self) -> str:
        return (
            f"<CompletionRecord id={self.id} program={self.program_id} "
            f"at={self.completed_at}>"
        )
