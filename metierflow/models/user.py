"""Team member model."""

from sqlalchemy import Column, String, Integer, JSON
from metierflow.models.base import Base, EntityRowMixin


class UserRow(Base, EntityRowMixin):
    __tablename__ = "users"
    __collection__ = "users"
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # No foreign keys: dangling department ids are tolerated by every view.
    department_id = Column(String, nullable=False, default="")
    role = Column(String, nullable=False, default="user")
    status = Column(String, nullable=False, default="active")
    skills = Column(JSON, nullable=True)
    capacity = Column(Integer, nullable=True)
