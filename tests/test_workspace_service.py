import pytest

from metierflow.constants.constants import (
    ACTIVITY_LOG_LIMIT,
    EntityType,
    LogAction,
    ProjectStatus,
    TaskStatus,
    UserStatus,
)
from metierflow.schemas.entitySchemas import ActivityLogEntry, Department, Project, Task, TaskPhase
from metierflow.services.SnapshotCache import SnapshotCache
from metierflow.services.WorkspaceService import WorkspaceService
from metierflow.store.base import EntityStore
from metierflow.store.errors import EntityNotFoundError, StoreError
from metierflow.store.memory import MemoryEntityStore
from metierflow.utils.validation import EntityValidationError

from conftest import run


class UnreachableStore(EntityStore):
    name = "unreachable"

    async def get_all(self, entity):
        raise StoreError("connection refused")

    async def create(self, entity, record):
        raise StoreError("connection refused")

    async def update(self, entity, entity_id, record):
        raise StoreError("connection refused")

    async def delete(self, entity, entity_id):
        raise StoreError("connection refused")

    async def replace_all(self, entity, records):
        raise StoreError("connection refused")


class ReadOnlyStore(MemoryEntityStore):
    """Reads work, every write fails."""

    async def create(self, entity, record):
        raise StoreError("quota exceeded")

    async def update(self, entity, entity_id, record):
        raise StoreError("quota exceeded")

    async def delete(self, entity, entity_id):
        raise StoreError("quota exceeded")


def new_task(id="t9", title="Contact Form"):
    return Task(
        id=id, project_id="p1", task_type_id="tt1", title=title,
        phases=[TaskPhase(id=f"{id}-ph", team_id="d2", user_id="u3",
                          start_date="2026-10-20T09:30:00", end_date="2026-10-21T18:30:00")],
    )


@pytest.fixture()
def cache(tmp_path):
    return SnapshotCache(str(tmp_path / "snapshot.json"))


@pytest.fixture()
def workspace(memory_store, cache):
    service = WorkspaceService(memory_store, cache=cache, user_id="u1")
    run(service.load())
    return service


# --- loading -----------------------------------------------------------------

def test_load_from_store_refreshes_cache(memory_store, cache):
    result = run(WorkspaceService(memory_store, cache=cache).load())
    assert result.source == "store"
    assert result.warning is None
    assert cache.read().find_task("t1").title == "Homepage Revamp"


def test_load_falls_back_to_cache(workspace, cache):
    result = run(WorkspaceService(UnreachableStore(), cache=cache).load())
    assert result.source == "cache"
    assert "connection refused" in result.warning
    assert [t.id for t in result.data.tasks] == ["t1", "t2", "t3", "t4"]


def test_load_falls_back_to_seed_without_cache(tmp_path):
    service = WorkspaceService(UnreachableStore(), cache=SnapshotCache(str(tmp_path / "missing.json")))
    result = run(service.load())
    assert result.source == "seed"
    assert [p.codename for p in result.data.projects] == ["PHOENIX", "FALCON", "AURORA"]
    assert service.data is result.data


@pytest.mark.parametrize("content", [b"\xff\xfe\x00garbage", b'{"projects": [', b"[1, 2, 3]"])
def test_unreadable_cache_falls_back_to_seed(tmp_path, content):
    path = tmp_path / "snapshot.json"
    path.write_bytes(content)
    cache = SnapshotCache(str(path))
    assert cache.read() is None

    result = run(WorkspaceService(UnreachableStore(), cache=cache).load())
    assert result.source == "seed"
    assert "connection refused" in result.warning


def test_refresh_keeps_local_state_when_store_goes_away(workspace):
    run(workspace.save_task(new_task()))
    workspace.store = UnreachableStore()
    result = run(workspace.refresh())
    assert result.warning
    assert workspace.data.find_task("t9") is not None


# --- tasks -------------------------------------------------------------------

def test_save_new_task_persists_and_logs(workspace, memory_store):
    result = run(workspace.save_task(new_task()))
    assert result.persisted is True
    assert result.warning is None

    stored = run(memory_store.get_all("tasks"))
    assert stored[-1].id == "t9"

    entry = workspace.data.activity_log[0]
    assert (entry.entity_type, entry.entity_id, entry.action) == (EntityType.task, "t9", LogAction.create)
    assert entry.new_value == "Contact Form"
    assert entry.user_id == "u1"
    assert entry.id.startswith("log_")
    assert len(entry.id.split("_")[2]) == 4


def test_save_existing_task_logs_old_and_new_title(workspace):
    renamed = workspace.data.find_task("t1").model_copy(update={"title": "Homepage v2"})
    run(workspace.save_task(renamed))
    entry = workspace.data.activity_log[0]
    assert entry.action == LogAction.update
    assert (entry.field, entry.old_value, entry.new_value) == ("task", "Homepage Revamp", "Homepage v2")
    assert workspace.data.find_task("t1").title == "Homepage v2"
    assert [t.id for t in workspace.data.tasks] == ["t1", "t2", "t3", "t4"]


def test_new_task_without_id_gets_one(workspace):
    result = run(workspace.save_task(new_task(id="")))
    assert result.entity.id.startswith("t_")
    assert workspace.data.find_task(result.entity.id) is not None


def test_invalid_task_writes_nothing(workspace, memory_store):
    with pytest.raises(EntityValidationError):
        run(workspace.save_task(new_task().model_copy(update={"phases": []})))
    assert len(run(memory_store.get_all("tasks"))) == 4
    assert run(memory_store.get_all("activityLog")) == []


def test_store_failure_keeps_change_locally(memory_store, cache):
    store = ReadOnlyStore()
    run(store.seed(run(memory_store.load_snapshot())))
    service = WorkspaceService(store, cache=cache)
    run(service.load())

    result = run(service.save_task(new_task()))
    assert result.persisted is False
    assert "quota exceeded" in result.warning
    assert service.data.find_task("t9") is not None
    assert run(store.get_all("tasks"))[-1].id == "t4"


def test_delete_task(workspace, memory_store):
    result = run(workspace.delete_task("t2"))
    assert result.persisted is True
    assert workspace.data.find_task("t2") is None
    entry = workspace.data.activity_log[0]
    assert (entry.action, entry.old_value) == (LogAction.delete, "Pricing Page")


def test_delete_missing_task_is_not_found(workspace):
    with pytest.raises(EntityNotFoundError):
        run(workspace.delete_task("nope"))


def test_bulk_update_status(workspace, memory_store):
    result = run(workspace.bulk_update_status(["t1", "t2", "missing"], TaskStatus.HOLD))
    assert result.persisted is True
    stored = {t.id: t for t in run(memory_store.get_all("tasks"))}
    assert [p.status for p in stored["t1"].phases] == [TaskStatus.DONE, TaskStatus.HOLD]
    assert [p.status for p in stored["t2"].phases] == [TaskStatus.HOLD]
    assert [p.status for p in stored["t3"].phases] == [TaskStatus.NOT_STARTED]
    assert len(workspace.data.activity_log) == 2


def test_bulk_delete(workspace):
    run(workspace.bulk_delete(["t1", "t3"]))
    assert [t.id for t in workspace.data.tasks] == ["t2", "t4"]
    assert {e.entity_id for e in workspace.data.activity_log} == {"t1", "t3"}


def test_quick_update_phase_status_ignores_dependencies(workspace):
    # ph2 depends on ph1; moving ph1 back out of DONE does not block ph2.
    run(workspace.quick_update_phase_status("t1", "ph1", TaskStatus.REVISION))
    task = workspace.data.find_task("t1")
    assert [p.status for p in task.phases] == [TaskStatus.REVISION, TaskStatus.STARTED]
    entry = workspace.data.activity_log[0]
    assert (entry.field, entry.old_value, entry.new_value) == ("phase:ph1", "DONE", "REVISION")


def test_quick_update_unknown_phase(workspace):
    with pytest.raises(EntityNotFoundError):
        run(workspace.quick_update_phase_status("t1", "nope", TaskStatus.DONE))


# --- settings ----------------------------------------------------------------

def test_department_in_use_is_refused(workspace, memory_store):
    with pytest.raises(EntityValidationError):
        run(workspace.delete_department("d1"))
    assert len(run(memory_store.get_all("departments"))) == 3


def test_delete_department_strips_hour_estimates(workspace, memory_store):
    run(workspace.save_department(Department(id="d4", name="QA")))
    run(workspace.set_estimated_hours("tt1", "d4", 6))
    assert workspace.data.find_task_type("tt1").estimated_hours["d4"] == 6

    result = run(workspace.delete_department("d4"))
    assert result.persisted is True
    assert workspace.data.find_department("d4") is None
    stored = {tt.id: tt for tt in run(memory_store.get_all("taskTypes"))}
    assert stored["tt1"].estimated_hours == {"d1": 20, "d2": 10}


def test_negative_hours_are_rejected(workspace):
    with pytest.raises(EntityValidationError):
        run(workspace.set_estimated_hours("tt1", "d1", -1))


def test_toggle_user_status(workspace):
    run(workspace.toggle_user_status("u4"))
    assert workspace.data.find_user("u4").status == UserStatus.active
    entry = workspace.data.activity_log[0]
    assert (entry.field, entry.old_value, entry.new_value) == ("status", "inactive", "active")


def test_save_project_uppercases_codename(workspace):
    result = run(workspace.save_project(Project(id="", codename=" nova ", name="Nova Launch")))
    project = workspace.data.find_project(result.entity.id)
    assert project.codename == "NOVA"
    assert project.status == ProjectStatus.active
    assert workspace.data.activity_log[0].new_value == "NOVA: Nova Launch"


def test_toggle_project_status(workspace):
    run(workspace.toggle_project_status("p1"))
    assert workspace.data.find_project("p1").status == ProjectStatus.closed
    run(workspace.toggle_project_status("p1"))
    assert workspace.data.find_project("p1").status == ProjectStatus.active


def test_templates(workspace):
    template = workspace.data.find_template("tpl1").model_copy(update={"name": "Landing v2"})
    run(workspace.save_template(template))
    assert workspace.data.find_template("tpl1").name == "Landing v2"
    run(workspace.delete_template("tpl1"))
    assert workspace.data.task_templates == []


# --- activity log ------------------------------------------------------------

def test_activity_log_is_capped_newest_first(workspace):
    old = [
        ActivityLogEntry(id=f"log_{i}", timestamp=f"2020-01-01T00:00:{i % 60:02d}.000Z",
                         entity_type=EntityType.task, entity_id="t1", action=LogAction.update)
        for i in range(ACTIVITY_LOG_LIMIT)
    ]
    workspace.data = workspace.data.model_copy(update={"activity_log": old})
    entry = run(workspace.add_log(EntityType.project, "p1", LogAction.update, field="status"))
    assert len(workspace.data.activity_log) == ACTIVITY_LOG_LIMIT
    assert workspace.data.activity_log[0] is entry


def test_log_write_failure_is_not_fatal(memory_store, cache):
    service = WorkspaceService(UnreachableStore(), cache=cache)
    run(service.load())
    entry = run(service.add_log(EntityType.user, "u1", LogAction.update))
    assert service.data.activity_log[0] is entry


def test_reload_orders_log_newest_first(workspace):
    run(workspace.add_log(EntityType.task, "t1", LogAction.update, now=1_700_000_000.0))
    run(workspace.add_log(EntityType.task, "t2", LogAction.update, now=1_700_000_100.0))
    run(workspace.load())
    assert [e.entity_id for e in workspace.data.activity_log] == ["t2", "t1"]
