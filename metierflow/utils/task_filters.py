"""Filtering, sorting and bulk edits for the admin task table."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from metierflow.constants.constants import HEALTH_COLORS, PRIORITY_COLORS, SortKey, TaskStatus, TimelineHealth, TaskPriority
from metierflow.schemas.entitySchemas import AppData, Task
from metierflow.utils.dates import DateLike, intervals_overlap, parse_calendar_date, parse_day, parse_flexible_timestamp, today_start
from metierflow.utils.health import compute_delay_days, evaluate_health, phase_color


@dataclass
class TaskFilter:
    search: Optional[str] = None
    project_id: Optional[str] = None
    team_id: Optional[str] = None
    status: Optional[TaskStatus] = None
    start: Optional[str] = None
    end: Optional[str] = None


def _date_window(start: Optional[str], end: Optional[str]):
    """Parsed filter window; reversed bounds are swapped, a single bound is used for both ends."""
    low = parse_calendar_date(start)
    high = parse_calendar_date(end)
    if low is None and high is None:
        return None
    if low is None:
        low = high
    if high is None:
        high = low
    if low > high:
        low, high = high, low
    return low, high


def _phase_overlaps(phase, low, high) -> bool:
    start = parse_day(phase.start_date)
    end = parse_day(phase.end_date)
    if start is None or end is None:
        return False
    return intervals_overlap(start, end, low, high)


def filter_tasks(tasks: Iterable[Task], task_filter: Optional[TaskFilter] = None) -> List[Task]:
    """Apply every set filter (logical AND); team, status and date match on any phase."""
    result = list(tasks)
    if task_filter is None:
        return result

    if task_filter.search:
        needle = task_filter.search.lower()
        result = [t for t in result if needle in t.title.lower()]
    if task_filter.project_id:
        result = [t for t in result if t.project_id == task_filter.project_id]
    if task_filter.team_id:
        result = [t for t in result if any(p.team_id == task_filter.team_id for p in t.phases)]
    if task_filter.status:
        result = [t for t in result if any(p.status == task_filter.status for p in t.phases)]

    window = _date_window(task_filter.start, task_filter.end)
    if window is not None:
        low, high = window
        result = [t for t in result if any(_phase_overlaps(p, low, high) for p in t.phases)]
    return result


def _timestamps(task: Task, attribute: str) -> List[float]:
    values = []
    for phase in task.phases:
        parsed = parse_flexible_timestamp(getattr(phase, attribute))
        if parsed is not None:
            values.append(parsed.timestamp())
    return values


def earliest_start(task: Task) -> float:
    values = _timestamps(task, "start_date")
    return min(values) if values else 0


def latest_end(task: Task) -> float:
    values = _timestamps(task, "end_date")
    return max(values) if values else 0


def sort_tasks(tasks: Iterable[Task], sort_key: SortKey = SortKey.start, today: Optional[DateLike] = None) -> List[Task]:
    """Stable sort; ties keep their incoming order."""
    sort_key = SortKey(sort_key)
    if sort_key == SortKey.delay:
        now = today_start(today)
        return sorted(tasks, key=lambda t: -compute_delay_days(t, now))
    if sort_key == SortKey.end:
        return sorted(tasks, key=latest_end)
    return sorted(tasks, key=earliest_start)


def process_tasks(
    tasks: Iterable[Task],
    task_filter: Optional[TaskFilter] = None,
    sort_key: SortKey = SortKey.start,
    today: Optional[DateLike] = None,
) -> List[Task]:
    return sort_tasks(filter_tasks(tasks, task_filter), sort_key, today)


# ------------------------------
# Admin table rows
# ------------------------------

@dataclass
class AdminPhaseCell:
    phase_id: str
    team_name: str
    user_name: str
    start_date: str
    end_date: str
    status: TaskStatus
    color: str
    depends_on: Optional[str] = None


@dataclass
class AdminRow:
    task: Task
    project_codename: str
    project_name: str
    task_type_name: str
    priority: TaskPriority
    priority_color: str
    health: TimelineHealth
    health_color: str
    delay_days: int
    phases: List[AdminPhaseCell] = field(default_factory=list)


def build_admin_rows(
    data: AppData,
    task_filter: Optional[TaskFilter] = None,
    sort_key: SortKey = SortKey.start,
    today: Optional[DateLike] = None,
) -> List[AdminRow]:
    now = today_start(today)
    rows = []
    for task in process_tasks(data.tasks, task_filter, sort_key, now):
        project = data.find_project(task.project_id)
        task_type = data.find_task_type(task.task_type_id)
        health = evaluate_health(task, now)
        cells = []
        for phase in task.phases:
            department = data.find_department(phase.team_id)
            user = data.find_user(phase.user_id)
            cells.append(AdminPhaseCell(
                phase_id=phase.id,
                team_name=department.name if department else "",
                user_name=user.name if user else "",
                start_date=phase.start_date,
                end_date=phase.end_date,
                status=phase.status,
                color=phase_color(phase, now),
                depends_on=phase.depends_on,
            ))
        rows.append(AdminRow(
            task=task,
            project_codename=project.codename if project else "",
            project_name=project.name if project else "",
            task_type_name=task_type.name if task_type else "",
            priority=task.priority,
            priority_color=PRIORITY_COLORS[task.priority],
            health=health,
            health_color=HEALTH_COLORS[health],
            delay_days=compute_delay_days(task, now),
            phases=cells,
        ))
    return rows


def bulk_update_status(tasks: Iterable[Task], task_ids: Iterable[str], status: TaskStatus) -> List[Task]:
    """Set ``status`` on every non-DONE phase of the selected tasks."""
    selected = set(task_ids)
    updated = []
    for task in tasks:
        if task.id not in selected:
            updated.append(task)
            continue
        phases = [p if p.is_done else p.model_copy(update={"status": status}) for p in task.phases]
        updated.append(task.model_copy(update={"phases": phases}))
    return updated


def quick_update_phase_status(tasks: Iterable[Task], task_id: str, phase_id: str, status: TaskStatus) -> List[Task]:
    updated = []
    for task in tasks:
        if task.id != task_id:
            updated.append(task)
            continue
        phases = [p.model_copy(update={"status": status}) if p.id == phase_id else p for p in task.phases]
        updated.append(task.model_copy(update={"phases": phases}))
    return updated
