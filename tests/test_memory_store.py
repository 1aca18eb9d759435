import pytest

from metierflow.schemas.entitySchemas import Department
from metierflow.store.errors import EntityNotFoundError, StoreError, UnknownEntityError
from metierflow.store.memory import MemoryEntityStore
from metierflow.store.seed import seed_snapshot

from conftest import run


def test_get_all_returns_records_in_order(memory_store):
    departments = run(memory_store.get_all("departments"))
    assert [d.id for d in departments] == ["d1", "d2", "d3"]


def test_create_accepts_camel_case_dicts(memory_store):
    created = run(memory_store.create("users", {"id": "u7", "name": "Eve", "departmentId": "d3"}))
    assert created.department_id == "d3"
    users = run(memory_store.get_all("users"))
    assert users[-1].id == "u7"


def test_update_replaces_wholesale_and_keeps_path_id(memory_store):
    updated = run(memory_store.update("departments", "d2", {"id": "other", "name": "Web"}))
    assert updated == Department(id="d2", name="Web")
    assert [d.name for d in run(memory_store.get_all("departments"))] == ["Design", "Web", "Backend"]


def test_update_and_delete_missing_ids(memory_store):
    with pytest.raises(EntityNotFoundError):
        run(memory_store.update("departments", "nope", {"id": "nope", "name": "X"}))
    with pytest.raises(EntityNotFoundError):
        run(memory_store.delete("tasks", "nope"))


def test_delete_removes_record(memory_store):
    run(memory_store.delete("tasks", "t2"))
    assert [t.id for t in run(memory_store.get_all("tasks"))] == ["t1", "t3", "t4"]


def test_unknown_entity_name(memory_store):
    with pytest.raises(UnknownEntityError):
        run(memory_store.get_all("invoices"))
    with pytest.raises(UnknownEntityError):
        run(memory_store.replace_all("invoices", []))


def test_invalid_record_is_a_store_error(memory_store):
    with pytest.raises(StoreError):
        run(memory_store.create("tasks", {"id": "t9", "title": "No project"}))


def test_returned_records_are_copies(memory_store):
    tasks = run(memory_store.get_all("tasks"))
    tasks[0].title = "Changed"
    assert run(memory_store.get_all("tasks"))[0].title == "Homepage Revamp"


def test_snapshot_and_seed():
    store = MemoryEntityStore()
    assert run(store.is_empty()) is True
    run(store.seed(seed_snapshot()))
    snapshot = run(store.load_snapshot())
    assert [p.codename for p in snapshot.projects] == ["PHOENIX", "FALCON", "AURORA"]
    assert len(snapshot.users) == 6
    assert snapshot.find_task("t1").phases[1].depends_on == "ph1"
    assert snapshot.find_template("tpl1").default_phases[3].depends_on_prev is True
    assert run(store.is_empty()) is False
