# sql_identity/db/models.py
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Identity(Base):
    __tablename__ = "identities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    userid: Mapped[str] = mapped_column(String(255))

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)


class IdentityRecord(BaseModel):
    """Detached copy of an `identities` row, safe to hold outside a session."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    token: str
    userid: str
    created: datetime = Field(default_factory=utcnow)
    ip: str | None = None
    user_agent: str | None = None
