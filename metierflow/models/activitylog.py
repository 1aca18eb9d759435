"""Append-only activity log."""

from sqlalchemy import Column, Text, String
from metierflow.models.base import Base, EntityRowMixin


class ActivityLogRow(Base, EntityRowMixin):
    __tablename__ = "activity_log"
    __collection__ = "activityLog"
    id = Column(String, primary_key=True, index=True)
    timestamp = Column(String, nullable=False)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    action = Column(String, nullable=False)
    field = Column(String, nullable=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    user_id = Column(String, nullable=True)
