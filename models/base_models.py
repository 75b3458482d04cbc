import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from settings.database import Base


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonType = JSON().with_variant(JSONB(), "postgresql")


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditedModel(Base):
    __abstract__ = True

    created_by = Column(String(255), nullable=True)
    modified_by = Column(String(255), nullable=True)
    created_on = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    modified_on = Column(DateTime(timezone=True), server_default=func.now(), onupdate=utcnow, nullable=False)
