"""Project model."""

from sqlalchemy import Column, String
from metierflow.models.base import Base, EntityRowMixin


class ProjectRow(Base, EntityRowMixin):
    """Model representing a project; closed projects are deactivated, not removed."""

    __tablename__ = "projects"
    __collection__ = "projects"
    id = Column(String, primary_key=True, index=True)
    codename = Column(String, nullable=False)
    name = Column(String, nullable=False)
    owner = Column(String, nullable=True)
    status = Column(String, nullable=False, default="active")
