"""Workspace mutations: validate, persist, log activity, then reconcile with the store."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status

from metierflow.core.dependencies import get_workspace
from metierflow.schemas.entitySchemas import Department, Project, Task, TaskTemplate, TaskTypeConfig, User
from metierflow.schemas.workspaceSchemas import (
    BulkDeleteRequest,
    BulkStatusRequest,
    EstimatedHoursRequest,
    NewPhaseRequest,
    PhaseStatusRequest,
    ReassignTeamRequest,
)
from metierflow.services.WorkspaceService import MutationResult, WorkspaceService
from metierflow.store.errors import StoreError
from metierflow.utils.http_errors import to_http_exception
from metierflow.utils.templates import append_template_phase, instantiate_template, new_blank_phase, reassign_team
from metierflow.utils.validation import EntityValidationError
from metierflow.utils.wire import to_wire

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/workspace",
    tags=["workspace"]
)


async def _run(workspace: WorkspaceService, operation, *args) -> dict:
    """Refresh, run one service mutation and shape its result."""
    await workspace.refresh()
    try:
        result: MutationResult = await operation(*args)
    except (EntityValidationError, StoreError) as e:
        raise to_http_exception(e)
    if not result.persisted:
        logger.warning(f"⚠️ {operation.__name__} kept locally: {result.warning}")
    return to_wire(result)


@router.get("")
async def get_workspace_snapshot(workspace: WorkspaceService = Depends(get_workspace)):
    """Full snapshot with the source it came from (store, cache or seed)."""
    result = await workspace.refresh()
    return to_wire(result)


@router.get("/activity")
async def get_activity_log(limit: Optional[int] = None, workspace: WorkspaceService = Depends(get_workspace)):
    result = await workspace.refresh()
    entries = result.data.activity_log
    return to_wire(entries[:limit] if limit else entries)


# ------------------------------
# Tasks
# ------------------------------
@router.post("/tasks")
async def save_task(task: Task, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.save_task, task)


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.delete_task, task_id)


@router.post("/tasks/bulk-status")
async def bulk_update_status(body: BulkStatusRequest, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.bulk_update_status, body.task_ids, body.status)


@router.post("/tasks/bulk-delete")
async def bulk_delete(body: BulkDeleteRequest, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.bulk_delete, body.task_ids)


@router.patch("/tasks/{task_id}/phases/{phase_id}")
async def update_phase_status(
    task_id: str,
    phase_id: str,
    body: PhaseStatusRequest,
    workspace: WorkspaceService = Depends(get_workspace),
):
    return await _run(workspace, workspace.quick_update_phase_status, task_id, phase_id, body.status)


# ------------------------------
# Settings: departments, members, projects, task types
# ------------------------------
@router.post("/departments")
async def save_department(department: Department, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.save_department, department)


@router.delete("/departments/{department_id}")
async def delete_department(department_id: str, workspace: WorkspaceService = Depends(get_workspace)):
    """Refused with 400 while any task phase is assigned to the department."""
    return await _run(workspace, workspace.delete_department, department_id)


@router.post("/users")
async def save_user(user: User, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.save_user, user)


@router.post("/users/{user_id}/toggle-status")
async def toggle_user_status(user_id: str, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.toggle_user_status, user_id)


@router.post("/projects")
async def save_project(project: Project, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.save_project, project)


@router.post("/projects/{project_id}/toggle-status")
async def toggle_project_status(project_id: str, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.toggle_project_status, project_id)


@router.post("/task-types")
async def save_task_type(task_type: TaskTypeConfig, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.save_task_type, task_type)


@router.put("/task-types/{task_type_id}/hours/{department_id}")
async def set_estimated_hours(
    task_type_id: str,
    department_id: str,
    body: EstimatedHoursRequest,
    workspace: WorkspaceService = Depends(get_workspace),
):
    return await _run(workspace, workspace.set_estimated_hours, task_type_id, department_id, body.hours)


# ------------------------------
# Templates and phase helpers
# ------------------------------
@router.post("/templates")
async def save_template(template: TaskTemplate, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.save_template, template)


@router.delete("/templates/{template_id}")
async def delete_template(template_id: str, workspace: WorkspaceService = Depends(get_workspace)):
    return await _run(workspace, workspace.delete_template, template_id)


@router.post("/templates/{template_id}/phases")
async def add_template_phase(template_id: str, workspace: WorkspaceService = Depends(get_workspace)):
    """Append a blueprint step for the first department."""
    await workspace.refresh()
    template = workspace.data.find_template(template_id)
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    return await _run(workspace, workspace.save_template, append_template_phase(template, workspace.data))


@router.post("/templates/{template_id}/instantiate")
async def instantiate(template_id: str, workspace: WorkspaceService = Depends(get_workspace)):
    """Concrete phases for a new task built from the template; nothing is saved."""
    result = await workspace.refresh()
    template = result.data.find_template(template_id)
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    return {
        "taskTypeId": template.task_type_id,
        "phases": to_wire(instantiate_template(template, result.data)),
    }


@router.post("/phases/new")
async def create_blank_phase(body: NewPhaseRequest, workspace: WorkspaceService = Depends(get_workspace)):
    result = await workspace.refresh()
    return to_wire(new_blank_phase(body.phases, result.data))


@router.post("/phases/reassign")
async def reassign_phase_team(body: ReassignTeamRequest, workspace: WorkspaceService = Depends(get_workspace)):
    result = await workspace.refresh()
    return to_wire(reassign_team(body.phase, body.team_id, result.data))
