from typing import List

from pydantic import Field

from metierflow.constants.constants import TaskStatus
from metierflow.schemas.entitySchemas import CamelModel, TaskPhase


class BulkStatusRequest(CamelModel):
    task_ids: List[str] = Field(..., min_length=1)
    status: TaskStatus


class BulkDeleteRequest(CamelModel):
    task_ids: List[str] = Field(..., min_length=1)


class PhaseStatusRequest(CamelModel):
    status: TaskStatus


class EstimatedHoursRequest(CamelModel):
    hours: int


class NewPhaseRequest(CamelModel):
    """Phases already on the task form; the new phase chains to the last one."""
    phases: List[TaskPhase] = Field(default_factory=list)


class ReassignTeamRequest(CamelModel):
    phase: TaskPhase
    team_id: str
