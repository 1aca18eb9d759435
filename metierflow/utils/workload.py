"""Workload roll-ups by person, team and project.

Demand counts only pending phases (status other than DONE) except the
per-project ``total_hours``, which sums every phase of the project's tasks.
Hours come from the task type's estimate for the phase's team.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from metierflow.constants.constants import (
    PERSON_CARD_SKILL_PREVIEW,
    PERSON_CARD_TASK_PREVIEW,
    STANDARD_MONTHLY_HOURS,
    WORKLOAD_BANDS,
    WORKLOAD_COLORS,
    ProjectStatus,
    TaskStatus,
    WorkloadLevel,
)
from metierflow.schemas.entitySchemas import AppData, Project, TaskTypeConfig, User


@dataclass
class PendingItem:
    title: str
    status: TaskStatus


@dataclass
class PersonWorkload:
    pending_count: int = 0
    pending_hours: int = 0
    tasks: List[PendingItem] = field(default_factory=list)

    def over_capacity(self, user: User) -> bool:
        """Soft check against the member's concurrent-phase capacity."""
        return user.capacity is not None and self.pending_count > user.capacity


@dataclass
class TeamWorkload:
    active_members: int = 0
    capacity_hours: int = 0
    total_tasks: int = 0
    total_hours: int = 0
    utilization: int = 0


@dataclass
class ProjectWorkload:
    project: Project
    task_count: int
    total_phases: int
    done_phases: int
    total_hours: int
    progress: int


@dataclass
class PersonCard:
    user_id: str
    name: str
    department_name: str
    skills: List[str]
    pending_count: int
    pending_hours: int
    utilization: int
    at_capacity: bool
    over_capacity: bool
    level: WorkloadLevel
    color: str
    preview: List[PendingItem]
    more_count: int


@dataclass
class DepartmentCards:
    department_id: str
    department_name: str
    members: List[PersonCard] = field(default_factory=list)


def estimated_hours(task_type: Optional[TaskTypeConfig], team_id: str) -> int:
    """Estimated hours of a task type for one team; 0 when either is unknown."""
    if task_type is None:
        return 0
    return task_type.estimated_hours.get(team_id, 0) or 0


def _percent(part, whole) -> int:
    if not whole:
        return 0
    # Half-up rounding, not banker's.
    return math.floor(part / whole * 100 + 0.5)


def workload_by_person(data: AppData) -> Dict[str, PersonWorkload]:
    stats = {user.id: PersonWorkload() for user in data.users}
    types = {tt.id: tt for tt in data.task_types}

    for task in data.tasks:
        task_type = types.get(task.task_type_id)
        for phase in task.phases:
            person = stats.get(phase.user_id)
            if person is None or phase.is_done:
                continue
            person.pending_count += 1
            person.pending_hours += estimated_hours(task_type, phase.team_id)
            person.tasks.append(PendingItem(title=task.title, status=phase.status))
    return stats


def active_members_by_department(data: AppData) -> Dict[str, List[User]]:
    groups = {department.id: [] for department in data.departments}
    for user in data.users:
        if user.is_active and user.department_id in groups:
            groups[user.department_id].append(user)
    return groups


def workload_by_team(data: AppData) -> Dict[str, TeamWorkload]:
    members = active_members_by_department(data)
    stats = {}
    for department in data.departments:
        count = len(members[department.id])
        stats[department.id] = TeamWorkload(
            active_members=count,
            capacity_hours=count * STANDARD_MONTHLY_HOURS,
        )

    types = {tt.id: tt for tt in data.task_types}
    for task in data.tasks:
        task_type = types.get(task.task_type_id)
        for phase in task.phases:
            team = stats.get(phase.team_id)
            if team is None or phase.is_done:
                continue
            team.total_tasks += 1
            team.total_hours += estimated_hours(task_type, phase.team_id)

    for team in stats.values():
        team.utilization = _percent(team.total_hours, team.capacity_hours)
    return stats


def workload_by_project(data: AppData) -> List[ProjectWorkload]:
    types = {tt.id: tt for tt in data.task_types}
    result = []
    for project in data.projects:
        if project.status != ProjectStatus.active:
            continue
        tasks = [t for t in data.tasks if t.project_id == project.id]
        total_phases = sum(len(t.phases) for t in tasks)
        done_phases = sum(1 for t in tasks for p in t.phases if p.is_done)
        total_hours = sum(
            estimated_hours(types.get(t.task_type_id), p.team_id)
            for t in tasks
            for p in t.phases
        )
        result.append(ProjectWorkload(
            project=project,
            task_count=len(tasks),
            total_phases=total_phases,
            done_phases=done_phases,
            total_hours=total_hours,
            progress=_percent(done_phases, total_phases),
        ))
    return result


def person_utilization(hours: int) -> int:
    """Pending hours as a percentage of the monthly standard, capped at 100."""
    return min(100, _percent(hours, STANDARD_MONTHLY_HOURS))


def workload_level(hours: int) -> WorkloadLevel:
    if hours == 0:
        return WorkloadLevel.idle
    for level, upper in WORKLOAD_BANDS:
        if hours < upper:
            return level
    return WorkloadLevel.overloaded


def build_person_cards(data: AppData) -> List[DepartmentCards]:
    """Per-department member cards for the workload screen (active members only)."""
    stats = workload_by_person(data)
    members = active_members_by_department(data)
    result = []
    for department in data.departments:
        group = DepartmentCards(department_id=department.id, department_name=department.name)
        for user in members[department.id]:
            person = stats[user.id]
            level = workload_level(person.pending_hours)
            group.members.append(PersonCard(
                user_id=user.id,
                name=user.name,
                department_name=department.name,
                skills=(user.skills or [])[:PERSON_CARD_SKILL_PREVIEW],
                pending_count=person.pending_count,
                pending_hours=person.pending_hours,
                utilization=person_utilization(person.pending_hours),
                at_capacity=person.pending_hours >= STANDARD_MONTHLY_HOURS,
                over_capacity=person.over_capacity(user),
                level=level,
                color=WORKLOAD_COLORS[level],
                preview=person.tasks[:PERSON_CARD_TASK_PREVIEW],
                more_count=max(0, len(person.tasks) - PERSON_CARD_TASK_PREVIEW),
            ))
        result.append(group)
    return result
