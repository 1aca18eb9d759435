from datetime import timedelta

import pytest

from metierflow.constants.constants import OVERDUE_COLOR, STATUS_COLORS, TaskStatus, TimelineHealth
from metierflow.schemas.entitySchemas import Task, TaskPhase
from metierflow.utils.dates import to_iso_date
from metierflow.utils.health import compute_delay_days, evaluate_health, is_phase_overdue, phase_color


def make_task(*phases):
    return Task(id="t", project_id="p", task_type_id="tt", title="T", phases=list(phases))


def make_phase(today, due_in_days, status=TaskStatus.STARTED, id="ph"):
    due = to_iso_date(today + timedelta(days=due_in_days))
    return TaskPhase(id=id, team_id="d1", user_id="u1", start_date=due, end_date=due, status=status)


def test_no_phases_is_on_track(today):
    assert evaluate_health(make_task(), today) == TimelineHealth.on_track
    assert compute_delay_days(make_task(), today) == 0


@pytest.mark.parametrize("other_due", [-30, 0, 1, 2, 10, 365])
def test_phase_due_yesterday_always_delays(today, other_due):
    task = make_task(make_phase(today, -1, id="a"), make_phase(today, other_due, id="b"))
    assert evaluate_health(task, today) == TimelineHealth.delayed


@pytest.mark.parametrize("due_in,expected", [
    (-1, TimelineHealth.delayed),
    (0, TimelineHealth.at_risk),
    (2, TimelineHealth.at_risk),
    (3, TimelineHealth.on_track),
])
def test_single_phase_health_bands(today, due_in, expected):
    assert evaluate_health(make_task(make_phase(today, due_in)), today) == expected


def test_done_phases_are_ignored(today):
    task = make_task(make_phase(today, -10, status=TaskStatus.DONE))
    assert evaluate_health(task, today) == TimelineHealth.on_track
    assert compute_delay_days(task, today) == 0


def test_started_tomorrow_with_done_yesterday_is_at_risk(today):
    task = make_task(
        make_phase(today, 1, status=TaskStatus.STARTED, id="a"),
        make_phase(today, -1, status=TaskStatus.DONE, id="b"),
    )
    assert evaluate_health(task, today) == TimelineHealth.at_risk
    assert compute_delay_days(task, today) == 0


def test_delay_is_largest_overrun_and_never_negative(today):
    task = make_task(
        make_phase(today, -5, id="a"),
        make_phase(today, -2, status=TaskStatus.BLOCKED, id="b"),
        make_phase(today, -20, status=TaskStatus.DONE, id="c"),
    )
    assert compute_delay_days(task, today) == 5
    assert compute_delay_days(make_task(make_phase(today, 7)), today) == 0


def test_unparseable_due_date_is_skipped(today):
    broken = TaskPhase(id="x", end_date="someday", status=TaskStatus.STARTED)
    assert evaluate_health(make_task(broken), today) == TimelineHealth.on_track
    assert compute_delay_days(make_task(broken), today) == 0
    assert is_phase_overdue(broken, today) is False


def test_overdue_phase_renders_red(today):
    late = make_phase(today, -1, status=TaskStatus.HOLD)
    assert is_phase_overdue(late, today) is True
    assert phase_color(late, today) == OVERDUE_COLOR
    on_time = make_phase(today, 0, status=TaskStatus.HOLD)
    assert phase_color(on_time, today) == STATUS_COLORS[TaskStatus.HOLD]


def test_seed_task_health(app_data, today):
    assert evaluate_health(app_data.find_task("t1"), today) == TimelineHealth.at_risk
    assert evaluate_health(app_data.find_task("t2"), today) == TimelineHealth.delayed
    assert compute_delay_days(app_data.find_task("t2"), today) == 5
    assert evaluate_health(app_data.find_task("t3"), today) == TimelineHealth.on_track
