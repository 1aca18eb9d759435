"""Checks run before any entity is written; nothing is persisted when one fails."""

from metierflow.schemas.entitySchemas import (
    AppData,
    Department,
    Project,
    Task,
    TaskTemplate,
    TaskTypeConfig,
    User,
)
from metierflow.utils.dates import parse_flexible_timestamp


class EntityValidationError(ValueError):
    """Raised when an entity is missing required data or is inconsistent."""


def validate_task(task: Task) -> None:
    if not task.title.strip() or not task.project_id or not task.task_type_id or not task.phases:
        raise EntityValidationError("Please fill all required fields and add at least 1 phase.")

    for phase in task.phases:
        start = parse_flexible_timestamp(phase.start_date)
        end = parse_flexible_timestamp(phase.end_date)
        if start is None or end is None:
            raise EntityValidationError(f"Invalid date/time in phase {phase.id}.")
        if start > end:
            raise EntityValidationError(f"Phase {phase.id} starts after it ends.")


def validate_user(user: User) -> None:
    if not user.name.strip() or not user.department_id:
        raise EntityValidationError("Name and Team are required.")


def validate_project(project: Project) -> None:
    if not project.codename.strip() or not project.name.strip():
        raise EntityValidationError("Codename and Display Name are required.")


def validate_named(entity) -> None:
    """Departments, task types and templates only need a name."""
    if not entity.name.strip():
        raise EntityValidationError(f"{type(entity).__name__} name is required.")


def ensure_department_unused(data: AppData, department_id: str) -> None:
    """Refuse to delete a department while any phase still references it."""
    in_use = any(p.team_id == department_id for t in data.tasks for p in t.phases)
    if in_use:
        raise EntityValidationError(
            "This team is used in existing tasks. Please remove/update those phases first."
        )


VALIDATORS = {
    Task: validate_task,
    User: validate_user,
    Project: validate_project,
    Department: validate_named,
    TaskTypeConfig: validate_named,
    TaskTemplate: validate_named,
}


def validate_entity(entity) -> None:
    validator = VALIDATORS.get(type(entity))
    if validator is not None:
        validator(entity)
