"""Expand task templates into concrete phases and build new phases for the task form."""

import time
from typing import List, Optional

from metierflow.constants.constants import DEFAULT_PHASE_END_TIME, DEFAULT_PHASE_START_TIME, TaskStatus
from metierflow.schemas.entitySchemas import AppData, TaskPhase, TaskTemplate, TemplatePhase
from metierflow.utils.dates import DateLike, combine_date_time, to_iso_date, today_start


def _epoch_ms(now: Optional[float] = None) -> int:
    return int((now if now is not None else time.time()) * 1000)


def phase_id(base: int, index: int) -> str:
    return f"ph_{base}_{index}"


def default_work_window(today: Optional[DateLike] = None):
    """Start and end timestamps of today's default 09:30-18:30 window."""
    day = to_iso_date(today_start(today))
    return (
        combine_date_time(day, DEFAULT_PHASE_START_TIME),
        combine_date_time(day, DEFAULT_PHASE_END_TIME),
    )


def first_active_user_id(data: AppData, team_id: str) -> str:
    members = data.active_users_in(team_id)
    return members[0].id if members else ""


def instantiate_template(
    template: TaskTemplate,
    data: AppData,
    now: Optional[float] = None,
    today: Optional[DateLike] = None,
) -> List[TaskPhase]:
    """
    Turn a template's phase blueprint into phases ready to attach to a new task.

    Every id shares one millisecond timestamp (``ph_<ms>_<index>``) so that
    ``depends_on`` can point at the previous phase before anything is
    persisted. ``now`` is an epoch time in seconds.
    """
    base = _epoch_ms(now)
    start_date, end_date = default_work_window(today)

    phases = []
    for index, blueprint in enumerate(template.default_phases):
        depends_on = phase_id(base, index - 1) if blueprint.depends_on_prev and index > 0 else None
        phases.append(TaskPhase(
            id=phase_id(base, index),
            team_id=blueprint.team_id,
            user_id=first_active_user_id(data, blueprint.team_id),
            start_date=start_date,
            end_date=end_date,
            status=TaskStatus.NOT_STARTED,
            order=blueprint.order,
            depends_on=depends_on,
        ))
    return phases


def new_blank_phase(
    existing: List[TaskPhase],
    data: AppData,
    now: Optional[float] = None,
    today: Optional[DateLike] = None,
) -> TaskPhase:
    """A fresh phase for the first department, chained to the last existing phase."""
    department = data.departments[0] if data.departments else None
    team_id = department.id if department else ""
    user_id = first_active_user_id(data, team_id) or (data.users[0].id if data.users else "")
    start_date, end_date = default_work_window(today)

    return TaskPhase(
        id=phase_id(_epoch_ms(now), len(existing)),
        team_id=team_id,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        status=TaskStatus.NOT_STARTED,
        order=len(existing) + 1,
        depends_on=existing[-1].id if existing else None,
    )


def reassign_team(phase: TaskPhase, team_id: str, data: AppData) -> TaskPhase:
    """Move a phase to another team, picking that team's first active member."""
    if team_id == phase.team_id:
        return phase
    return phase.model_copy(update={
        "team_id": team_id,
        "user_id": first_active_user_id(data, team_id),
    })


def append_template_phase(template: TaskTemplate, data: AppData) -> TaskTemplate:
    """Add a blueprint step for the first department; steps after the first chain by default."""
    if not data.departments:
        return template
    order = len(template.default_phases) + 1
    step = TemplatePhase(team_id=data.departments[0].id, order=order, depends_on_prev=order > 1)
    return template.model_copy(update={"default_phases": [*template.default_phases, step]})
