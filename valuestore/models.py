"""SQLAlchemy declarative models.

The service persists a single table, `account_storage`, holding one value
document per (account, project) pair. The value is a JSON column (JSONB on
Postgres). The pair is protected by a unique constraint, and `id` is an
opaque hex UUID that gives each record a second, stable address.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# field name used for the value document in paths and API payloads
VALUE_FIELD = "values"


def new_id():
    return uuid.uuid4().hex


def utcnow():
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Record(Base):
    __tablename__ = "account_storage"
    __table_args__ = (
        UniqueConstraint("account", "project", name="uq_account_storage_account_project"),
        Index("ix_account_storage_updated_at", "updated_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    account: Mapped[str] = mapped_column(String(), nullable=False)
    project: Mapped[str] = mapped_column(String(), nullable=False)
    value: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self, include_id=False):
        """Shape the record the way the API returns it."""
        data = {"account": self.account, "project": self.project, VALUE_FIELD: self.value or {}}
        if include_id:
            data = {"id": self.id, **data}
        return data

    def __repr__(self):
        return f"Record(id={self.id!r}, account={self.account!r}, project={self.project!r})"
