"""
Workspace state on top of an entity store.

Every mutation follows the same path: validate, persist, append an activity
log entry, then re-fetch everything from the store. When the store fails the
change is applied to the in-memory snapshot only and the caller gets a
``MutationResult`` with ``persisted=False`` instead of an exception.
"""

import logging
import random
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Iterable, List, Optional

from metierflow.constants.constants import (
    ACTIVITY_LOG_LIMIT,
    EntityType,
    LogAction,
    ProjectStatus,
    TaskStatus,
    UserStatus,
)
from metierflow.schemas.entitySchemas import (
    ActivityLogEntry,
    AppData,
    Department,
    Project,
    Task,
    TaskTemplate,
    TaskTypeConfig,
    User,
)
from metierflow.services.SnapshotCache import SnapshotCache
from metierflow.store.base import EntityStore
from metierflow.store.errors import EntityNotFoundError, StoreError
from metierflow.store.seed import seed_snapshot
from metierflow.utils import task_filters
from metierflow.utils.validation import EntityValidationError, ensure_department_unused, validate_entity

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


@dataclass
class LoadResult:
    data: AppData
    source: str  # store | cache | seed
    warning: Optional[str] = None


@dataclass
class MutationResult:
    persisted: bool = True
    warning: Optional[str] = None
    entity: Any = None


def new_entity_id(prefix: str, now: Optional[float] = None) -> str:
    return f"{prefix}_{int((now if now is not None else time.time()) * 1000)}"


def new_log_id(now: Optional[float] = None) -> str:
    suffix = "".join(random.choice(_BASE36) for _ in range(4))
    return f"{new_entity_id('log', now)}_{suffix}"


def _replace(items: Iterable, item) -> list:
    """Replace the element with ``item.id`` in place, or append it."""
    result = list(items)
    for index, existing in enumerate(result):
        if existing.id == item.id:
            result[index] = item
            return result
    result.append(item)
    return result


def _without(items: Iterable, ids: Iterable[str]) -> list:
    ids = set(ids)
    return [item for item in items if item.id not in ids]


def _newest_first(data: AppData) -> AppData:
    log = sorted(data.activity_log, key=lambda entry: entry.timestamp, reverse=True)
    return data.model_copy(update={"activity_log": log[:ACTIVITY_LOG_LIMIT]})


class WorkspaceService:
    """Owns the current ``AppData`` snapshot and every write to the store."""

    def __init__(self, store: EntityStore, cache: Optional[SnapshotCache] = None, user_id: Optional[str] = None):
        self.store = store
        self.cache = cache
        self.user_id = user_id
        self.data = AppData()
        self.source: Optional[str] = None

    # ------------------------------
    # Loading
    # ------------------------------
    async def load(self) -> LoadResult:
        """Fetch every collection; fall back to the cached snapshot, then to the seed data."""
        try:
            data = _newest_first(await self.store.load_snapshot())
        except StoreError as e:
            warning = f"Could not reach the {self.store.name} store: {str(e)}"
            logger.warning(f"⚠️ {warning}")
            cached = self.cache.read() if self.cache else None
            if cached is not None:
                result = LoadResult(data=cached, source="cache", warning=warning)
            else:
                result = LoadResult(data=seed_snapshot(), source="seed", warning=warning)
            self.data, self.source = result.data, result.source
            return result

        self.data, self.source = data, "store"
        if self.cache:
            self.cache.write(data)
        return LoadResult(data=data, source="store")

    async def refresh(self) -> LoadResult:
        """Like ``load``, but an unreachable store keeps the current local snapshot once one exists."""
        if self.source is None:
            return await self.load()
        try:
            data = _newest_first(await self.store.load_snapshot())
        except StoreError as e:
            warning = f"Could not reach the {self.store.name} store: {str(e)}"
            logger.warning(f"⚠️ {warning}, serving local state")
            return LoadResult(data=self.data, source=self.source, warning=warning)

        self.data, self.source = data, "store"
        if self.cache:
            self.cache.write(data)
        return LoadResult(data=data, source="store")

    async def _reconcile(self) -> None:
        try:
            self.data = _newest_first(await self.store.load_snapshot())
            self.source = "store"
        except StoreError as e:
            logger.warning(f"⚠️ Refresh after write failed, keeping local state: {str(e)}")
            return
        if self.cache:
            self.cache.write(self.data)

    async def _commit(
        self,
        writes: List[Callable],
        local: AppData,
        logs: Iterable[dict] = (),
        entity: Any = None,
    ) -> MutationResult:
        try:
            for write in writes:
                await write()
        except EntityNotFoundError:
            raise
        except StoreError as e:
            warning = f"Change kept locally, the store rejected it: {str(e)}"
            logger.error(f"❌ {warning}")
            self.data = local
            return MutationResult(persisted=False, warning=warning, entity=entity)

        self.data = local
        for entry in logs:
            await self.add_log(**entry)
        await self._reconcile()
        return MutationResult(persisted=True, entity=entity)

    def _upsert_writes(self, entity: str, existing, item) -> List[Callable]:
        if existing is not None:
            return [partial(self.store.update, entity, item.id, item)]
        return [partial(self.store.create, entity, item)]

    # ------------------------------
    # Activity log
    # ------------------------------
    async def add_log(
        self,
        entity_type: EntityType,
        entity_id: str,
        action: LogAction,
        field: Optional[str] = None,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
        now: Optional[float] = None,
    ) -> ActivityLogEntry:
        """Record one change; the store write is best effort, the local log always gets it."""
        moment = now if now is not None else time.time()
        entry = ActivityLogEntry(
            id=new_log_id(moment),
            timestamp=datetime.fromtimestamp(moment, tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            field=field,
            old_value=old_value,
            new_value=new_value,
            user_id=self.user_id,
        )
        try:
            await self.store.create("activityLog", entry)
        except StoreError as e:
            logger.error(f"❌ Failed to write activity log entry {entry.id}: {str(e)}")

        log = [entry, *self.data.activity_log][:ACTIVITY_LOG_LIMIT]
        self.data = self.data.model_copy(update={"activity_log": log})
        return entry

    # ------------------------------
    # Tasks
    # ------------------------------
    async def save_task(self, task: Task) -> MutationResult:
        if not task.id:
            task = task.model_copy(update={"id": new_entity_id("t")})
        validate_entity(task)

        existing = self.data.find_task(task.id)
        if existing is not None:
            log = dict(entity_type=EntityType.task, entity_id=task.id, action=LogAction.update,
                       field="task", old_value=existing.title, new_value=task.title)
        else:
            log = dict(entity_type=EntityType.task, entity_id=task.id, action=LogAction.create, new_value=task.title)

        local = self.data.model_copy(update={"tasks": _replace(self.data.tasks, task)})
        return await self._commit(self._upsert_writes("tasks", existing, task), local, [log], entity=task)

    async def delete_task(self, task_id: str) -> MutationResult:
        task = self.data.find_task(task_id)
        logs = []
        if task is not None:
            logs.append(dict(entity_type=EntityType.task, entity_id=task_id, action=LogAction.delete, old_value=task.title))
        local = self.data.model_copy(update={"tasks": _without(self.data.tasks, [task_id])})
        return await self._commit([partial(self.store.delete, "tasks", task_id)], local, logs)

    async def bulk_update_status(self, task_ids: Iterable[str], status: TaskStatus) -> MutationResult:
        """Move every non-DONE phase of the selected tasks to ``status``."""
        selected = {task_id for task_id in task_ids if self.data.find_task(task_id) is not None}
        tasks = task_filters.bulk_update_status(self.data.tasks, selected, status)
        changed = [t for t in tasks if t.id in selected]

        writes = [partial(self.store.update, "tasks", t.id, t) for t in changed]
        logs = [dict(entity_type=EntityType.task, entity_id=t.id, action=LogAction.update,
                     field="status", new_value=TaskStatus(status).value) for t in changed]
        local = self.data.model_copy(update={"tasks": tasks})
        return await self._commit(writes, local, logs, entity=changed)

    async def bulk_delete(self, task_ids: Iterable[str]) -> MutationResult:
        selected = set(task_ids)
        doomed = [t for t in self.data.tasks if t.id in selected]
        writes = [partial(self.store.delete, "tasks", t.id) for t in doomed]
        logs = [dict(entity_type=EntityType.task, entity_id=t.id, action=LogAction.delete, old_value=t.title)
                for t in doomed]
        local = self.data.model_copy(update={"tasks": _without(self.data.tasks, [t.id for t in doomed])})
        return await self._commit(writes, local, logs)

    async def quick_update_phase_status(self, task_id: str, phase_id: str, status: TaskStatus) -> MutationResult:
        task = self.data.find_task(task_id)
        if task is None:
            raise EntityNotFoundError("tasks", task_id)
        phase = next((p for p in task.phases if p.id == phase_id), None)
        if phase is None:
            raise EntityNotFoundError("phases", phase_id)

        tasks = task_filters.quick_update_phase_status(self.data.tasks, task_id, phase_id, status)
        updated = next(t for t in tasks if t.id == task_id)
        log = dict(entity_type=EntityType.task, entity_id=task_id, action=LogAction.update,
                   field=f"phase:{phase_id}", old_value=phase.status.value, new_value=TaskStatus(status).value)
        local = self.data.model_copy(update={"tasks": tasks})
        return await self._commit([partial(self.store.update, "tasks", task_id, updated)], local, [log], entity=updated)

    # ------------------------------
    # Departments
    # ------------------------------
    async def save_department(self, department: Department) -> MutationResult:
        if not department.id:
            department = department.model_copy(update={"id": new_entity_id("d")})
        validate_entity(department)

        existing = self.data.find_department(department.id)
        action = LogAction.update if existing else LogAction.create
        log = dict(entity_type=EntityType.department, entity_id=department.id, action=action,
                   old_value=existing.name if existing else None, new_value=department.name)
        local = self.data.model_copy(update={"departments": _replace(self.data.departments, department)})
        return await self._commit(self._upsert_writes("departments", existing, department), local, [log], entity=department)

    async def delete_department(self, department_id: str) -> MutationResult:
        """Remove a department that no phase references and drop its hour estimates."""
        ensure_department_unused(self.data, department_id)
        department = self.data.find_department(department_id)

        task_types = []
        writes = [partial(self.store.delete, "departments", department_id)]
        for task_type in self.data.task_types:
            if department_id in task_type.estimated_hours:
                hours = {k: v for k, v in task_type.estimated_hours.items() if k != department_id}
                task_type = task_type.model_copy(update={"estimated_hours": hours})
                writes.append(partial(self.store.update, "taskTypes", task_type.id, task_type))
            task_types.append(task_type)

        logs = []
        if department is not None:
            logs.append(dict(entity_type=EntityType.department, entity_id=department_id,
                             action=LogAction.delete, old_value=department.name))
        local = self.data.model_copy(update={
            "departments": _without(self.data.departments, [department_id]),
            "task_types": task_types,
        })
        return await self._commit(writes, local, logs)

    # ------------------------------
    # Members
    # ------------------------------
    async def save_user(self, user: User) -> MutationResult:
        if not user.id:
            user = user.model_copy(update={"id": new_entity_id("u")})
        validate_entity(user)

        existing = self.data.find_user(user.id)
        log = dict(entity_type=EntityType.user, entity_id=user.id,
                   action=LogAction.update if existing else LogAction.create, new_value=user.name)
        local = self.data.model_copy(update={"users": _replace(self.data.users, user)})
        return await self._commit(self._upsert_writes("users", existing, user), local, [log], entity=user)

    async def toggle_user_status(self, user_id: str) -> MutationResult:
        user = self.data.find_user(user_id)
        if user is None:
            raise EntityNotFoundError("users", user_id)
        status = UserStatus.inactive if user.is_active else UserStatus.active
        updated = user.model_copy(update={"status": status})
        log = dict(entity_type=EntityType.user, entity_id=user_id, action=LogAction.update,
                   field="status", old_value=user.status.value, new_value=status.value)
        local = self.data.model_copy(update={"users": _replace(self.data.users, updated)})
        return await self._commit([partial(self.store.update, "users", user_id, updated)], local, [log], entity=updated)

    # ------------------------------
    # Projects
    # ------------------------------
    async def save_project(self, project: Project) -> MutationResult:
        updates = {"codename": project.codename.strip().upper(), "owner": project.owner or None}
        if not project.id:
            updates["id"] = new_entity_id("p")
        project = project.model_copy(update=updates)
        validate_entity(project)

        existing = self.data.find_project(project.id)
        log = dict(entity_type=EntityType.project, entity_id=project.id,
                   action=LogAction.update if existing else LogAction.create,
                   new_value=f"{project.codename}: {project.name}")
        local = self.data.model_copy(update={"projects": _replace(self.data.projects, project)})
        return await self._commit(self._upsert_writes("projects", existing, project), local, [log], entity=project)

    async def toggle_project_status(self, project_id: str) -> MutationResult:
        project = self.data.find_project(project_id)
        if project is None:
            raise EntityNotFoundError("projects", project_id)
        status = ProjectStatus.closed if project.status == ProjectStatus.active else ProjectStatus.active
        updated = project.model_copy(update={"status": status})
        log = dict(entity_type=EntityType.project, entity_id=project_id, action=LogAction.update,
                   field="status", old_value=project.status.value, new_value=status.value)
        local = self.data.model_copy(update={"projects": _replace(self.data.projects, updated)})
        return await self._commit([partial(self.store.update, "projects", project_id, updated)], local, [log], entity=updated)

    # ------------------------------
    # Task types
    # ------------------------------
    async def save_task_type(self, task_type: TaskTypeConfig) -> MutationResult:
        if not task_type.id:
            task_type = task_type.model_copy(update={"id": new_entity_id("tt")})
        validate_entity(task_type)

        existing = self.data.find_task_type(task_type.id)
        log = dict(entity_type=EntityType.task_type, entity_id=task_type.id,
                   action=LogAction.update if existing else LogAction.create, new_value=task_type.name)
        local = self.data.model_copy(update={"task_types": _replace(self.data.task_types, task_type)})
        return await self._commit(self._upsert_writes("taskTypes", existing, task_type), local, [log], entity=task_type)

    async def set_estimated_hours(self, task_type_id: str, department_id: str, hours: int) -> MutationResult:
        if hours < 0:
            raise EntityValidationError("Estimated hours cannot be negative.")
        task_type = self.data.find_task_type(task_type_id)
        if task_type is None:
            raise EntityNotFoundError("taskTypes", task_type_id)
        updated = task_type.model_copy(update={"estimated_hours": {**task_type.estimated_hours, department_id: hours}})
        local = self.data.model_copy(update={"task_types": _replace(self.data.task_types, updated)})
        return await self._commit([partial(self.store.update, "taskTypes", task_type_id, updated)], local, entity=updated)

    # ------------------------------
    # Templates
    # ------------------------------
    async def save_template(self, template: TaskTemplate) -> MutationResult:
        if not template.id:
            template = template.model_copy(update={"id": new_entity_id("tpl")})
        if not template.task_type_id and self.data.task_types:
            template = template.model_copy(update={"task_type_id": self.data.task_types[0].id})
        validate_entity(template)

        existing = self.data.find_template(template.id)
        log = dict(entity_type=EntityType.task_template, entity_id=template.id,
                   action=LogAction.update if existing else LogAction.create, new_value=template.name)
        local = self.data.model_copy(update={"task_templates": _replace(self.data.task_templates, template)})
        return await self._commit(self._upsert_writes("taskTemplates", existing, template), local, [log], entity=template)

    async def delete_template(self, template_id: str) -> MutationResult:
        template = self.data.find_template(template_id)
        logs = []
        if template is not None:
            logs.append(dict(entity_type=EntityType.task_template, entity_id=template_id,
                             action=LogAction.delete, old_value=template.name))
        local = self.data.model_copy(update={"task_templates": _without(self.data.task_templates, [template_id])})
        return await self._commit([partial(self.store.delete, "taskTemplates", template_id)], local, logs)
