"""Tasks model; phases are stored inline as a JSON list."""

from sqlalchemy import Column, Text, String, JSON
from metierflow.models.base import Base, EntityRowMixin


class TaskRow(Base, EntityRowMixin):
    """Model representing tasks scheduled as ordered phases."""

    __tablename__ = "tasks"
    __collection__ = "tasks"
    id = Column(String, primary_key=True, index=True)
    project_id = Column(String, nullable=False)
    task_type_id = Column(String, nullable=False)
    title = Column(String, nullable=False)
    phases = Column(JSON, nullable=False, default=list)
    link = Column(String, nullable=True)
    priority = Column(String, nullable=True, default="medium")
    delay_reason = Column(Text, nullable=True)
