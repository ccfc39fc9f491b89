from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    # Set in Python so every row is stored with the same precision; the
    # server default only covers rows written outside the ORM (migrations).
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )


class IdMixin:
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)


class GuidMixin:
    guid: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, default=lambda: str(uuid4())
    )
