"""Task template model; default_phases is the ordered phase blueprint."""

from sqlalchemy import Column, String, JSON
from metierflow.models.base import Base, EntityRowMixin


class TaskTemplateRow(Base, EntityRowMixin):
    __tablename__ = "task_templates"
    __collection__ = "taskTemplates"
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    task_type_id = Column(String, nullable=False, default="")
    default_phases = Column(JSON, nullable=False, default=list)
