"""Department models for organizational structure."""

from sqlalchemy import Column, String
from metierflow.models.base import Base, EntityRowMixin


class DepartmentRow(Base, EntityRowMixin):
    """Model representing departments (teams) in the organization."""

    __tablename__ = "departments"
    __collection__ = "departments"
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
