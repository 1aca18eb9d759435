"""Schedule health and delay for tasks, recomputed against today on every call."""

from typing import Optional

from metierflow.constants.constants import AT_RISK_DAYS, OVERDUE_COLOR, STATUS_COLORS, TimelineHealth
from metierflow.schemas.entitySchemas import Task, TaskPhase
from metierflow.utils.dates import DateLike, day_difference, parse_day, today_start

_SEVERITY = {
    TimelineHealth.on_track: 0,
    TimelineHealth.at_risk: 1,
    TimelineHealth.delayed: 2,
}


def phase_health(phase: TaskPhase, today: Optional[DateLike] = None) -> TimelineHealth:
    """Health of a single phase; DONE phases and unparseable due dates are on track."""
    due = parse_day(phase.end_date)
    if phase.is_done or due is None:
        return TimelineHealth.on_track

    days_until_due = day_difference(due, today_start(today))
    if days_until_due < 0:
        return TimelineHealth.delayed
    if days_until_due <= AT_RISK_DAYS:
        return TimelineHealth.at_risk
    return TimelineHealth.on_track


def evaluate_health(task: Task, today: Optional[DateLike] = None) -> TimelineHealth:
    """
    Classify a task as on-track, at-risk or delayed.

    Only phases that are not DONE count. Every active phase is scanned and
    the worst classification wins: delayed over at-risk over on-track.
    """
    now = today_start(today)
    worst = TimelineHealth.on_track
    for phase in task.phases:
        health = phase_health(phase, now)
        if _SEVERITY[health] > _SEVERITY[worst]:
            worst = health
    return worst


def compute_delay_days(task: Task, today: Optional[DateLike] = None) -> int:
    """Largest number of days any non-DONE phase is past its due day, never negative."""
    now = today_start(today)
    max_delay = 0
    for phase in task.phases:
        if phase.is_done:
            continue
        due = parse_day(phase.end_date)
        if due is None:
            continue
        max_delay = max(max_delay, day_difference(now, due))
    return max_delay


def is_phase_overdue(phase: TaskPhase, today: Optional[DateLike] = None) -> bool:
    """True when a non-DONE phase's due day is before today."""
    if phase.is_done:
        return False
    due = parse_day(phase.end_date)
    if due is None:
        return False
    return today_start(today) > due


def phase_color(phase: TaskPhase, today: Optional[DateLike] = None) -> str:
    """Bar colour: overdue phases are always red, others follow their status."""
    if is_phase_overdue(phase, today):
        return OVERDUE_COLOR
    return STATUS_COLORS[phase.status]
