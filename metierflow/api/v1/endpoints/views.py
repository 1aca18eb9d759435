"""Read-only derived views computed from the current workspace snapshot."""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from metierflow.constants.constants import QuickRange, SortKey, TaskStatus, TimelineGrouping
from metierflow.core.config import settings
from metierflow.core.dependencies import get_workspace
from metierflow.core.limiter import limiter
from metierflow.services.WorkspaceService import LoadResult, WorkspaceService
from metierflow.utils.dates import parse_calendar_date, quick_range
from metierflow.utils.health import compute_delay_days, evaluate_health
from metierflow.utils.task_filters import TaskFilter, build_admin_rows
from metierflow.utils.timeline import TimelineFilter, build_timeline
from metierflow.utils.wire import to_wire
from metierflow.utils.workload import (
    build_person_cards,
    workload_by_person,
    workload_by_project,
    workload_by_team,
)

router = APIRouter(
    prefix="/views",
    tags=["views"]
)


def _today(today: Optional[str]):
    if today is None:
        return None
    parsed = parse_calendar_date(today)
    if parsed is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid date '{today}', expected YYYY-MM-DD"
        )
    return parsed


def _envelope(result: LoadResult, payload) -> dict:
    return {
        "source": result.source,
        "warning": result.warning,
        "data": to_wire(payload),
    }


@router.get("/timeline")
@limiter.limit(settings.RATE_LIMIT)
async def get_timeline(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    team_id: Optional[str] = Query(None, alias="teamId"),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    start: Optional[str] = None,
    end: Optional[str] = None,
    grouping: TimelineGrouping = TimelineGrouping.project,
    today: Optional[str] = None,
    workspace: WorkspaceService = Depends(get_workspace),
):
    """Gantt view-model: window, slots and positioned phase bars."""
    result = await workspace.refresh()
    timeline_filter = TimelineFilter(
        user_id=user_id,
        team_id=team_id,
        status=status_filter,
        start=start,
        end=end,
        grouping=grouping,
    )
    return _envelope(result, build_timeline(result.data, timeline_filter, _today(today)))


@router.get("/admin")
@limiter.limit(settings.RATE_LIMIT)
async def get_admin_rows(
    request: Request,
    search: Optional[str] = None,
    project_id: Optional[str] = Query(None, alias="projectId"),
    team_id: Optional[str] = Query(None, alias="teamId"),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    start: Optional[str] = None,
    end: Optional[str] = None,
    sort: SortKey = SortKey.start,
    today: Optional[str] = None,
    workspace: WorkspaceService = Depends(get_workspace),
):
    """Filtered and sorted task table with health and delay per row."""
    result = await workspace.refresh()
    task_filter = TaskFilter(
        search=search,
        project_id=project_id,
        team_id=team_id,
        status=status_filter,
        start=start,
        end=end,
    )
    return _envelope(result, build_admin_rows(result.data, task_filter, sort, _today(today)))


@router.get("/tasks/{task_id}/health")
async def get_task_health(
    task_id: str,
    today: Optional[str] = None,
    workspace: WorkspaceService = Depends(get_workspace),
):
    result = await workspace.refresh()
    task = result.data.find_task(task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    now = _today(today)
    return _envelope(result, {
        "taskId": task.id,
        "health": evaluate_health(task, now),
        "delayDays": compute_delay_days(task, now),
    })


@router.get("/workload/people")
@limiter.limit(settings.RATE_LIMIT)
async def get_person_workload(request: Request, workspace: WorkspaceService = Depends(get_workspace)):
    result = await workspace.refresh()
    return _envelope(result, workload_by_person(result.data))


@router.get("/workload/teams")
@limiter.limit(settings.RATE_LIMIT)
async def get_team_workload(request: Request, workspace: WorkspaceService = Depends(get_workspace)):
    result = await workspace.refresh()
    return _envelope(result, workload_by_team(result.data))


@router.get("/workload/projects")
@limiter.limit(settings.RATE_LIMIT)
async def get_project_workload(request: Request, workspace: WorkspaceService = Depends(get_workspace)):
    result = await workspace.refresh()
    return _envelope(result, workload_by_project(result.data))


@router.get("/workload/cards")
@limiter.limit(settings.RATE_LIMIT)
async def get_person_cards(request: Request, workspace: WorkspaceService = Depends(get_workspace)):
    """Member cards grouped by department for the workload screen."""
    result = await workspace.refresh()
    return _envelope(result, build_person_cards(result.data))


@router.get("/quick-range/{preset}")
async def get_quick_range(preset: QuickRange, today: Optional[str] = None):
    start, end = quick_range(preset, _today(today))
    return {"start": start, "end": end}
