"""
Timeline (Gantt) slot and layout engine.

The visible window is driven by two optional ``YYYY-MM-DD`` filter bounds:

- no bounds: today-7 .. today+21, one slot per day
- both bounds on the same day: that day only, 30-minute work slots 09:30-18:30
- anything else: one slot per day over the inclusive range (bounds swapped
  when reversed, a missing bound taken from the default window)

Layouts are expressed in slot units; pixel sizes belong to the client.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Union

from metierflow.constants.constants import (
    DEFAULT_WINDOW_DAYS_AFTER,
    DEFAULT_WINDOW_DAYS_BEFORE,
    HEALTH_COLORS,
    PRIORITY_COLORS,
    SLOT_MINUTES,
    WORK_END_MINUTES,
    WORK_SLOT_COUNT,
    WORK_START_MINUTES,
    TaskStatus,
    TimelineGrouping,
    TimelineHealth,
    TimelineMode,
    TaskPriority,
)
from metierflow.schemas.entitySchemas import AppData, Task, TaskPhase
from metierflow.utils.dates import (
    ONE_DAY,
    DateLike,
    day_difference,
    intervals_overlap,
    parse_calendar_date,
    parse_day,
    parse_flexible_timestamp,
    today_start,
)
from metierflow.utils.health import evaluate_health, is_phase_overdue, phase_color


@dataclass(frozen=True)
class DaySlot:
    date: datetime
    is_today: bool = False
    kind: TimelineMode = TimelineMode.day


@dataclass(frozen=True)
class WorkSlot:
    index: int
    hour: int
    minute: int
    label: str
    kind: TimelineMode = TimelineMode.work_hours


TimelineSlot = Union[DaySlot, WorkSlot]


@dataclass(frozen=True)
class TimelineWindow:
    mode: TimelineMode
    start: datetime
    end: datetime
    slots: List[TimelineSlot]

    @property
    def total_slots(self) -> int:
        return len(self.slots)


@dataclass(frozen=True)
class SlotLayout:
    offset: float
    width: float


def _work_slots() -> List[WorkSlot]:
    slots = []
    for index in range(WORK_SLOT_COUNT):
        minutes = WORK_START_MINUTES + index * SLOT_MINUTES
        hour, minute = divmod(minutes, 60)
        slots.append(WorkSlot(index=index, hour=hour, minute=minute, label=f"{hour:02d}:{minute:02d}"))
    return slots


def resolve_window(
    filter_start: Optional[str] = None,
    filter_end: Optional[str] = None,
    today: Optional[DateLike] = None,
) -> TimelineWindow:
    """Work out the visible window and its slots for the active date filter."""
    now = today_start(today)
    start = parse_calendar_date(filter_start)
    end = parse_calendar_date(filter_end)

    if start is not None and end is not None and start == end:
        return TimelineWindow(mode=TimelineMode.work_hours, start=start, end=start, slots=_work_slots())

    if start is None:
        start = now - timedelta(days=DEFAULT_WINDOW_DAYS_BEFORE)
    if end is None:
        end = now + timedelta(days=DEFAULT_WINDOW_DAYS_AFTER)
    if start > end:
        start, end = end, start

    slots = []
    cursor = start
    while cursor <= end:
        slots.append(DaySlot(date=cursor, is_today=cursor == now))
        cursor += ONE_DAY
    return TimelineWindow(mode=TimelineMode.day, start=start, end=end, slots=slots)


def compute_slots(
    filter_start: Optional[str] = None,
    filter_end: Optional[str] = None,
    today: Optional[DateLike] = None,
) -> List[TimelineSlot]:
    return resolve_window(filter_start, filter_end, today).slots


def _clamp(value, low, high):
    return max(low, min(high, value))


def layout_phase(phase_start, phase_end, window: TimelineWindow) -> Optional[SlotLayout]:
    """
    Position and width of a phase bar in slot units.

    Returns None when either timestamp cannot be parsed. The result is not
    clamped to the window; see ``clamp_layout``.
    """
    if window.mode == TimelineMode.work_hours:
        start = parse_flexible_timestamp(phase_start)
        end = parse_flexible_timestamp(phase_end)
        if start is None or end is None:
            return None

        day_start = window.start
        day_end = day_start + timedelta(hours=23, minutes=59, seconds=59, microseconds=999000)
        start = _clamp(start, day_start, day_end)
        end = _clamp(end, day_start, day_end)

        start_minutes = _clamp(start.hour * 60 + start.minute, WORK_START_MINUTES, WORK_END_MINUTES)
        end_minutes = _clamp(end.hour * 60 + end.minute, WORK_START_MINUTES, WORK_END_MINUTES)

        offset = (start_minutes - WORK_START_MINUTES) / SLOT_MINUTES
        # At least half a slot wide.
        width = max(0.5, (end_minutes - start_minutes) / SLOT_MINUTES)
        return SlotLayout(offset=offset, width=width)

    start = parse_day(phase_start)
    end = parse_day(phase_end)
    if start is None or end is None:
        return None
    offset = day_difference(start, window.start)
    width = max(1, day_difference(end, start) + 1)
    return SlotLayout(offset=float(offset), width=float(width))


def clamp_layout(layout: Optional[SlotLayout], total_slots: int) -> Optional[SlotLayout]:
    """Clip a bar to ``[0, total_slots]``; None when it falls entirely outside."""
    if layout is None:
        return None
    left = max(0.0, layout.offset)
    right = min(float(total_slots), layout.offset + layout.width)
    if right <= 0 or left >= total_slots:
        return None
    return SlotLayout(offset=left, width=max(0.5, right - left))


# ------------------------------
# Timeline view-model
# ------------------------------

@dataclass
class TimelineFilter:
    user_id: Optional[str] = None
    team_id: Optional[str] = None
    status: Optional[TaskStatus] = None
    start: Optional[str] = None
    end: Optional[str] = None
    grouping: TimelineGrouping = TimelineGrouping.project


@dataclass
class TimelineBar:
    phase_id: str
    lane: int
    offset: float
    width: float
    team_name: str
    user_name: str
    status: TaskStatus
    overdue: bool
    color: str
    depends_on: Optional[str] = None


@dataclass
class TimelineRow:
    task_id: str
    title: str
    project_codename: str
    project_name: str
    priority: TaskPriority
    priority_color: str
    health: TimelineHealth
    health_color: str
    bars: List[TimelineBar] = field(default_factory=list)


@dataclass
class PersonGroup:
    user_id: str
    user_name: str
    department_name: str
    rows: List[TimelineRow] = field(default_factory=list)


@dataclass
class TimelineView:
    mode: TimelineMode
    start: datetime
    end: datetime
    total_slots: int
    slots: List[TimelineSlot]
    rows: List[TimelineRow] = field(default_factory=list)
    groups: List[PersonGroup] = field(default_factory=list)


def _phase_in_window(phase: TaskPhase, window: TimelineWindow) -> bool:
    if window.mode == TimelineMode.work_hours:
        start = parse_flexible_timestamp(phase.start_date)
        end = parse_flexible_timestamp(phase.end_date)
        work_start = window.start + timedelta(minutes=WORK_START_MINUTES)
        work_end = window.start + timedelta(minutes=WORK_END_MINUTES)
        if start is None or end is None:
            return False
        return intervals_overlap(start, end, work_start, work_end)

    start = parse_day(phase.start_date)
    end = parse_day(phase.end_date)
    if start is None or end is None:
        return False
    return intervals_overlap(start, end, window.start, window.end)


def filter_timeline_tasks(
    tasks: List[Task],
    timeline_filter: TimelineFilter,
    window: TimelineWindow,
) -> List[Task]:
    """Keep tasks matching every set filter; each filter matches on any phase."""
    result = list(tasks)
    if timeline_filter.user_id:
        result = [t for t in result if any(p.user_id == timeline_filter.user_id for p in t.phases)]
    if timeline_filter.team_id:
        result = [t for t in result if any(p.team_id == timeline_filter.team_id for p in t.phases)]
    if timeline_filter.status:
        result = [t for t in result if any(p.status == timeline_filter.status for p in t.phases)]
    if timeline_filter.start or timeline_filter.end:
        result = [t for t in result if any(_phase_in_window(p, window) for p in t.phases)]
    return result


def _bars_for(phases, data: AppData, window: TimelineWindow, now: datetime) -> List[TimelineBar]:
    bars = []
    for lane, phase in enumerate(phases):
        layout = clamp_layout(layout_phase(phase.start_date, phase.end_date, window), window.total_slots)
        if layout is None:
            continue
        department = data.find_department(phase.team_id)
        user = data.find_user(phase.user_id)
        bars.append(TimelineBar(
            phase_id=phase.id,
            lane=lane,
            offset=layout.offset,
            width=layout.width,
            team_name=department.name if department else "",
            user_name=user.name if user else "",
            status=phase.status,
            overdue=is_phase_overdue(phase, now),
            color=phase_color(phase, now),
            depends_on=phase.depends_on,
        ))
    return bars


def _row_for(task: Task, phases, data: AppData, window: TimelineWindow, now: datetime) -> TimelineRow:
    project = data.find_project(task.project_id)
    health = evaluate_health(task, now)
    return TimelineRow(
        task_id=task.id,
        title=task.title,
        project_codename=project.codename if project else "",
        project_name=project.name if project else "",
        priority=task.priority,
        priority_color=PRIORITY_COLORS[task.priority],
        health=health,
        health_color=HEALTH_COLORS[health],
        bars=_bars_for(phases, data, window, now),
    )


def build_timeline(
    data: AppData,
    timeline_filter: Optional[TimelineFilter] = None,
    today: Optional[DateLike] = None,
) -> TimelineView:
    """Assemble the Gantt view-model for the current filters."""
    timeline_filter = timeline_filter or TimelineFilter()
    now = today_start(today)
    window = resolve_window(timeline_filter.start, timeline_filter.end, now)
    tasks = filter_timeline_tasks(data.tasks, timeline_filter, window)

    view = TimelineView(
        mode=window.mode,
        start=window.start,
        end=window.end,
        total_slots=window.total_slots,
        slots=window.slots,
    )

    if timeline_filter.grouping == TimelineGrouping.person:
        for user in data.users:
            if not user.is_active:
                continue
            rows = []
            for task in tasks:
                own = [p for p in task.phases if p.user_id == user.id]
                if own:
                    rows.append(_row_for(task, own, data, window, now))
            if rows:
                department = data.find_department(user.department_id)
                view.groups.append(PersonGroup(
                    user_id=user.id,
                    user_name=user.name,
                    department_name=department.name if department else "",
                    rows=rows,
                ))
        return view

    view.rows = [_row_for(task, task.phases, data, window, now) for task in tasks]
    return view
