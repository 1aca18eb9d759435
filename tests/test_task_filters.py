import pytest

from metierflow.constants.constants import HEALTH_COLORS, OVERDUE_COLOR, SortKey, TaskStatus, TimelineHealth
from metierflow.schemas.entitySchemas import Task
from metierflow.utils.task_filters import (
    TaskFilter,
    build_admin_rows,
    bulk_update_status,
    filter_tasks,
    process_tasks,
    quick_update_phase_status,
    sort_tasks,
)


def ids(tasks):
    return [t.id for t in tasks]


def test_no_filter_keeps_everything(app_data):
    assert ids(filter_tasks(app_data.tasks)) == ["t1", "t2", "t3", "t4"]
    assert ids(filter_tasks(app_data.tasks, TaskFilter())) == ["t1", "t2", "t3", "t4"]


@pytest.mark.parametrize("search", ["page", "PAGE", "Page"])
def test_search_is_case_insensitive(app_data, search):
    assert ids(filter_tasks(app_data.tasks, TaskFilter(search=search))) == ["t1", "t2"]


def test_project_and_team_compose_with_and(app_data):
    both = filter_tasks(app_data.tasks, TaskFilter(project_id="p1", team_id="d2"))
    assert ids(both) == ["t1"]
    assert all(t.project_id == "p1" and any(p.team_id == "d2" for p in t.phases) for t in both)

    project_only = ids(filter_tasks(app_data.tasks, TaskFilter(project_id="p1")))
    team_only = ids(filter_tasks(app_data.tasks, TaskFilter(team_id="d2")))
    assert set(ids(both)) <= set(project_only)
    assert set(ids(both)) <= set(team_only)


def test_status_matches_any_phase(app_data):
    assert ids(filter_tasks(app_data.tasks, TaskFilter(status=TaskStatus.BLOCKED))) == ["t2"]
    assert ids(filter_tasks(app_data.tasks, TaskFilter(status=TaskStatus.DONE))) == ["t1", "t4"]


@pytest.mark.parametrize("start,end,expected", [
    ("2026-10-15", "2026-10-16", ["t1"]),
    ("2026-10-16", "2026-10-15", ["t1"]),
    ("2026-10-12", None, ["t1", "t2"]),
    (None, "2026-11-10", ["t3"]),
    ("2026-10-14", "2026-10-14", ["t1", "t2"]),
])
def test_date_window(app_data, start, end, expected):
    assert ids(filter_tasks(app_data.tasks, TaskFilter(start=start, end=end))) == expected


def test_sort_by_start_end_and_delay(app_data, today):
    assert ids(sort_tasks(app_data.tasks, SortKey.start, today)) == ["t4", "t1", "t2", "t3"]
    assert ids(sort_tasks(app_data.tasks, SortKey.end, today)) == ["t4", "t2", "t1", "t3"]
    assert ids(sort_tasks(app_data.tasks, SortKey.delay, today)) == ["t2", "t1", "t3", "t4"]


def test_sort_is_stable_for_equal_starts():
    tasks = [
        Task(id=name, project_id="p", task_type_id="tt", title=name, phases=[
            {"id": f"{name}-ph", "startDate": "2026-10-01", "endDate": "2026-10-02"},
        ])
        for name in ["c", "a", "b"]
    ]
    assert ids(sort_tasks(tasks, SortKey.start)) == ["c", "a", "b"]


def test_tasks_without_phases_sort_first(app_data, today):
    empty = Task(id="t0", project_id="p1", task_type_id="tt1", title="Empty")
    assert ids(sort_tasks([*app_data.tasks, empty], SortKey.start, today))[0] == "t0"


def test_process_tasks_filters_then_sorts(app_data, today):
    result = process_tasks(app_data.tasks, TaskFilter(project_id="p1"), SortKey.delay, today)
    assert ids(result) == ["t2", "t1"]


def test_admin_rows(app_data, today):
    rows = build_admin_rows(app_data, TaskFilter(project_id="p1"), SortKey.delay, today)
    assert [row.task.id for row in rows] == ["t2", "t1"]

    pricing = rows[0]
    assert pricing.project_codename == "PHOENIX"
    assert pricing.task_type_name == "Landing Page"
    assert pricing.health == TimelineHealth.delayed
    assert pricing.health_color == HEALTH_COLORS[TimelineHealth.delayed]
    assert pricing.delay_days == 5
    assert pricing.phases[0].color == OVERDUE_COLOR
    assert (pricing.phases[0].team_name, pricing.phases[0].user_name) == ("Design", "Alice")


def test_bulk_update_skips_done_phases_and_leaves_input_alone(app_data):
    updated = bulk_update_status(app_data.tasks, ["t1", "t2"], TaskStatus.HOLD)
    t1 = next(t for t in updated if t.id == "t1")
    assert [p.status for p in t1.phases] == [TaskStatus.DONE, TaskStatus.HOLD]
    t2 = next(t for t in updated if t.id == "t2")
    assert [p.status for p in t2.phases] == [TaskStatus.HOLD]

    assert app_data.find_task("t1").phases[1].status == TaskStatus.STARTED
    assert next(t for t in updated if t.id == "t3") is app_data.find_task("t3")


def test_quick_update_targets_one_phase(app_data):
    updated = quick_update_phase_status(app_data.tasks, "t1", "ph1", TaskStatus.REVISION)
    t1 = next(t for t in updated if t.id == "t1")
    assert [p.status for p in t1.phases] == [TaskStatus.REVISION, TaskStatus.STARTED]
    assert app_data.find_task("t1").phases[0].status == TaskStatus.DONE
