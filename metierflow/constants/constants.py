"""Constants for task statuses, priorities, roles, activity log kinds, timeline modes and workload bands."""

from enum import Enum


class TaskStatus(str, Enum):
    """Enumeration of phase statuses."""

    NOT_STARTED = "NOT_STARTED"
    STARTED = "STARTED"
    BLOCKED = "BLOCKED"
    HOLD = "HOLD"
    REVISION = "REVISION"
    DONE = "DONE"


class TaskPriority(str, Enum):
    """Enumeration of task priorities."""

    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class ProjectStatus(str, Enum):
    active = "active"
    closed = "closed"


class UserStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class UserRole(str, Enum):
    admin = "admin"
    user = "user"


class TimelineHealth(str, Enum):
    """Derived schedule health of a task."""

    on_track = "on-track"
    at_risk = "at-risk"
    delayed = "delayed"


class EntityType(str, Enum):
    """Entity kinds recorded in the activity log."""

    task = "task"
    project = "project"
    user = "user"
    department = "department"
    task_type = "taskType"
    task_template = "taskTemplate"


class LogAction(str, Enum):
    create = "create"
    update = "update"
    delete = "delete"


class SortKey(str, Enum):
    """Sort keys offered by the admin task table."""

    start = "start"
    end = "end"
    delay = "delay"


class TimelineMode(str, Enum):
    day = "day"
    work_hours = "work_hours"


class TimelineGrouping(str, Enum):
    project = "project"
    person = "person"


class WorkloadLevel(str, Enum):
    """Heat bands for pending hours."""

    idle = "idle"
    light = "light"
    moderate = "moderate"
    heavy = "heavy"
    overloaded = "overloaded"


class QuickRange(str, Enum):
    today = "today"
    this_week = "this_week"
    next_week = "next_week"
    this_month = "this_month"


# ------------------------------
# Scheduling
# ------------------------------
WORK_START_MINUTES = 9 * 60 + 30
WORK_END_MINUTES = 18 * 60 + 30
SLOT_MINUTES = 30
WORK_SLOT_COUNT = (WORK_END_MINUTES - WORK_START_MINUTES) // SLOT_MINUTES
DEFAULT_PHASE_START_TIME = "09:30"
DEFAULT_PHASE_END_TIME = "18:30"

DEFAULT_WINDOW_DAYS_BEFORE = 7
DEFAULT_WINDOW_DAYS_AFTER = 21

AT_RISK_DAYS = 2

# ------------------------------
# Workload
# ------------------------------
STANDARD_MONTHLY_HOURS = 176
PERSON_CARD_TASK_PREVIEW = 2
PERSON_CARD_SKILL_PREVIEW = 3

# Upper bounds (exclusive) of each heat band; anything above the last is overloaded.
WORKLOAD_BANDS = [
    (WorkloadLevel.light, 20),
    (WorkloadLevel.moderate, 40),
    (WorkloadLevel.heavy, 60),
]

# ------------------------------
# Activity log
# ------------------------------
ACTIVITY_LOG_LIMIT = 500

# ------------------------------
# Colour tables (Tailwind classes used by the web client)
# ------------------------------
STATUS_COLORS = {
    TaskStatus.NOT_STARTED: "bg-gray-100 text-gray-600 border-gray-200",
    TaskStatus.STARTED: "bg-blue-100 text-blue-600 border-blue-200",
    TaskStatus.BLOCKED: "bg-red-100 text-red-600 border-red-200",
    TaskStatus.HOLD: "bg-orange-100 text-orange-600 border-orange-200",
    TaskStatus.REVISION: "bg-purple-100 text-purple-600 border-purple-200",
    TaskStatus.DONE: "bg-green-100 text-green-600 border-green-200",
}

OVERDUE_COLOR = "bg-red-100 text-red-700 border-red-300 ring-1 ring-red-200"

PRIORITY_COLORS = {
    TaskPriority.low: "bg-slate-100 text-slate-600 border-slate-200",
    TaskPriority.medium: "bg-blue-50 text-blue-600 border-blue-200",
    TaskPriority.high: "bg-orange-50 text-orange-600 border-orange-200",
    TaskPriority.urgent: "bg-red-50 text-red-600 border-red-200",
}

HEALTH_COLORS = {
    TimelineHealth.on_track: "bg-green-100 text-green-600",
    TimelineHealth.at_risk: "bg-orange-100 text-orange-600",
    TimelineHealth.delayed: "bg-red-100 text-red-600",
}

WORKLOAD_COLORS = {
    WorkloadLevel.idle: "bg-green-50 text-green-700 border-green-200",
    WorkloadLevel.light: "bg-emerald-50 text-emerald-700 border-emerald-200",
    WorkloadLevel.moderate: "bg-yellow-50 text-yellow-700 border-yellow-200",
    WorkloadLevel.heavy: "bg-orange-50 text-orange-700 border-orange-200",
    WorkloadLevel.overloaded: "bg-red-50 text-red-700 border-red-200",
}
