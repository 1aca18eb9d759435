"""Task type model with per-department hour estimates."""

from sqlalchemy import Column, String, JSON
from metierflow.models.base import Base, EntityRowMixin


class TaskTypeRow(Base, EntityRowMixin):
    """Model representing a task type; estimated_hours maps department id to hours."""

    __tablename__ = "task_types"
    __collection__ = "taskTypes"
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    estimated_hours = Column(JSON, nullable=False, default=dict)
