from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, DateTime
from datetime import datetime

Base = declarative_base()


class TimestampMixin:
    """Mixin for timestamp columns"""
    __abstract__ = True
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class EntityRowMixin(TimestampMixin):
    """Columns named after the record fields so rows convert to records one-to-one."""
    __abstract__ = True
    __collection__ = None


__all__ = ["Base", "TimestampMixin", "EntityRowMixin"]
