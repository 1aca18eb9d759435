"""Pytest fixtures for Metier WorkFlow"""
import os
import tempfile

# Settings are read once at import time; point them at throwaway locations first.
os.environ["STORE_BACKEND"] = "memory"
os.environ["SNAPSHOT_CACHE_PATH"] = os.path.join(tempfile.mkdtemp(), "snapshot.json")
os.environ["SEED_ON_STARTUP"] = "true"

import asyncio
from datetime import datetime

import pytest

from metierflow.schemas.entitySchemas import AppData
from metierflow.store.memory import MemoryEntityStore


TODAY = datetime(2026, 10, 19)  # a Monday


def phase(id, team, user, start, end, status="NOT_STARTED", order=1, depends_on=None):
    return {
        "id": id, "teamId": team, "userId": user, "startDate": start, "endDate": end,
        "status": status, "order": order, "dependsOn": depends_on,
    }


def task(id, project, task_type, title, phases, priority="medium"):
    return {
        "id": id, "projectId": project, "taskTypeId": task_type, "title": title,
        "phases": phases, "priority": priority,
    }


SAMPLE_DATA = {
    "projects": [
        {"id": "p1", "codename": "PHOENIX", "name": "Website Redesign", "status": "active"},
        {"id": "p2", "codename": "FALCON", "name": "Mobile App", "status": "active"},
        {"id": "p3", "codename": "OLD", "name": "Archived Site", "status": "closed"},
    ],
    "departments": [
        {"id": "d1", "name": "Design"},
        {"id": "d2", "name": "Frontend"},
        {"id": "d3", "name": "Backend"},
    ],
    "users": [
        {"id": "u1", "name": "Alice", "departmentId": "d1", "role": "admin", "status": "active",
         "skills": ["Figma", "UI", "Branding", "Motion"], "capacity": 1},
        {"id": "u2", "name": "Bob", "departmentId": "d1", "role": "user", "status": "active"},
        {"id": "u3", "name": "Carol", "departmentId": "d2", "role": "user", "status": "active"},
        {"id": "u4", "name": "Dave", "departmentId": "d2", "role": "user", "status": "inactive"},
    ],
    "taskTypes": [
        {"id": "tt1", "name": "Landing Page", "estimatedHours": {"d1": 20, "d2": 10}},
        {"id": "tt2", "name": "API", "estimatedHours": {"d3": 40}},
    ],
    "tasks": [
        task("t1", "p1", "tt1", "Homepage Revamp", [
            phase("ph1", "d1", "u1", "2026-10-01", "2026-10-05", "DONE", 1),
            phase("ph2", "d2", "u3", "2026-10-06", "2026-10-20", "STARTED", 2, "ph1"),
        ], priority="high"),
        task("t2", "p1", "tt1", "Pricing Page", [
            phase("ph3", "d1", "u1", "2026-10-10", "2026-10-14", "BLOCKED", 1),
        ]),
        task("t3", "p2", "tt2", "Auth API", [
            phase("ph4", "d3", "u9", "2026-11-01", "2026-11-10", "NOT_STARTED", 1),
        ], priority="urgent"),
        task("t4", "p3", "tt1", "Old Landing", [
            phase("ph5", "d1", "u2", "2026-09-01", "2026-09-02", "DONE", 1),
        ]),
    ],
    "activityLog": [],
    "taskTemplates": [
        {"id": "tpl1", "name": "Landing", "taskTypeId": "tt1", "defaultPhases": [
            {"teamId": "d1", "order": 1, "dependsOnPrev": False},
            {"teamId": "d2", "order": 2, "dependsOnPrev": True},
        ]},
    ],
}


def run(coro):
    return asyncio.run(coro)


@pytest.fixture()
def today():
    return TODAY


@pytest.fixture()
def app_data() -> AppData:
    return AppData.model_validate(SAMPLE_DATA)


@pytest.fixture()
def memory_store(app_data) -> MemoryEntityStore:
    store = MemoryEntityStore()
    run(store.seed(app_data))
    return store
