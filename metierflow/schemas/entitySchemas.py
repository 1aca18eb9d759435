"""Entity records shared by the REST layer, the entity store and the scheduling core.

Python attributes are snake_case; records travel as camelCase JSON
(``departmentId``, ``estimatedHours``...) so stored rows keep the column names
the web client already uses.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, NonNegativeInt, field_validator
from pydantic.alias_generators import to_camel

from metierflow.constants.constants import (
    EntityType,
    LogAction,
    ProjectStatus,
    TaskPriority,
    TaskStatus,
    UserRole,
    UserStatus,
)


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Department(CamelModel):
    id: str
    name: str


class User(CamelModel):
    id: str
    name: str
    department_id: str = ""
    role: UserRole = UserRole.user
    status: UserStatus = UserStatus.active
    skills: Optional[List[str]] = None
    capacity: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.active


class Project(CamelModel):
    id: str
    codename: str
    name: str
    owner: Optional[str] = None
    status: ProjectStatus = ProjectStatus.active


class TaskTypeConfig(CamelModel):
    id: str
    name: str
    estimated_hours: Dict[str, NonNegativeInt] = Field(default_factory=dict)

    @field_validator("estimated_hours", mode="before")
    @classmethod
    def _empty_hours(cls, value):
        return value or {}


class TaskPhase(CamelModel):
    """One team-assigned, time-boxed stage of a task."""

    id: str
    team_id: str = ""
    user_id: str = ""
    start_date: str = ""
    end_date: str = ""
    actual_end_date: Optional[str] = None
    status: TaskStatus = TaskStatus.NOT_STARTED
    order: int = Field(1, ge=1)
    depends_on: Optional[str] = None

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE


class Task(CamelModel):
    id: str
    project_id: str
    task_type_id: str
    title: str
    phases: List[TaskPhase] = Field(default_factory=list)
    link: Optional[str] = None
    priority: TaskPriority = TaskPriority.medium
    delay_reason: Optional[str] = None

    @field_validator("priority", mode="before")
    @classmethod
    def _default_priority(cls, value):
        return value or TaskPriority.medium

    @field_validator("phases", mode="before")
    @classmethod
    def _empty_phases(cls, value):
        return value or []


class ActivityLogEntry(CamelModel):
    id: str
    timestamp: str
    entity_type: EntityType
    entity_id: str
    action: LogAction
    field: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    user_id: Optional[str] = None


class TemplatePhase(CamelModel):
    """Blueprint of one phase inside a task template."""

    team_id: str
    order: int = Field(1, ge=1)
    depends_on_prev: bool = False


class TaskTemplate(CamelModel):
    id: str
    name: str
    task_type_id: str = ""
    default_phases: List[TemplatePhase] = Field(default_factory=list)

    @field_validator("default_phases", mode="before")
    @classmethod
    def _empty_default_phases(cls, value):
        return value or []


def _find(items, item_id):
    if not item_id:
        return None
    return next((item for item in items if item.id == item_id), None)


class AppData(CamelModel):
    """Full snapshot of every collection; the unit passed into every derived view."""

    projects: List[Project] = Field(default_factory=list)
    departments: List[Department] = Field(default_factory=list)
    users: List[User] = Field(default_factory=list)
    task_types: List[TaskTypeConfig] = Field(default_factory=list)
    tasks: List[Task] = Field(default_factory=list)
    activity_log: List[ActivityLogEntry] = Field(default_factory=list)
    task_templates: List[TaskTemplate] = Field(default_factory=list)

    # Lookups return None for dangling ids instead of raising.
    def find_department(self, department_id: Optional[str]) -> Optional[Department]:
        return _find(self.departments, department_id)

    def find_user(self, user_id: Optional[str]) -> Optional[User]:
        return _find(self.users, user_id)

    def find_project(self, project_id: Optional[str]) -> Optional[Project]:
        return _find(self.projects, project_id)

    def find_task_type(self, task_type_id: Optional[str]) -> Optional[TaskTypeConfig]:
        return _find(self.task_types, task_type_id)

    def find_task(self, task_id: Optional[str]) -> Optional[Task]:
        return _find(self.tasks, task_id)

    def find_template(self, template_id: Optional[str]) -> Optional[TaskTemplate]:
        return _find(self.task_templates, template_id)

    def active_users_in(self, department_id: str) -> List[User]:
        return [u for u in self.users if u.department_id == department_id and u.is_active]


# Collection name -> record schema, in the order collections are loaded.
ENTITY_SCHEMAS = {
    "projects": Project,
    "departments": Department,
    "users": User,
    "taskTypes": TaskTypeConfig,
    "tasks": Task,
    "activityLog": ActivityLogEntry,
    "taskTemplates": TaskTemplate,
}

# Collection name -> AppData attribute.
SNAPSHOT_FIELDS = {
    "projects": "projects",
    "departments": "departments",
    "users": "users",
    "taskTypes": "task_types",
    "tasks": "tasks",
    "activityLog": "activity_log",
    "taskTemplates": "task_templates",
}
