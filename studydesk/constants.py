"""
Constants for store keys, task status and backup naming.
"""
from __future__ import annotations

# Local store keys (also the field names of a backup bundle)
KEY_TASKS = "tasks"
KEY_COMPLETED_TASKS = "completedTasks"
KEY_USER_NAME = "userName"
KEY_SEMESTER_START = "semesterStartDate"
KEY_SEMESTER_END = "semesterEndDate"
KEY_TASK_FILTER = "taskFilter"

# Settings kept in the store but not part of a bundle
KEY_POMODORO_WORK = "pomodoroWorkDuration"
KEY_POMODORO_BREAK = "pomodoroBreakDuration"

# Bundle fields in write order, with the value used when the store has none
BUNDLE_DEFAULTS = {
    KEY_TASKS: [],
    KEY_COMPLETED_TASKS: [],
    KEY_USER_NAME: "",
    KEY_SEMESTER_START: "",
    KEY_SEMESTER_END: "",
    KEY_TASK_FILTER: "all",
}
BUNDLE_FIELDS = tuple(BUNDLE_DEFAULTS)
BUNDLE_VERSION = "1.0.0"

# Task status
STATUS_NOT_STARTED = "not-started"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETE = "complete"

# Task type
TASK_TYPE_ACADEMIC = "academic"
TASK_TYPE_PERSONAL = "personal"
TASK_TYPES = (TASK_TYPE_ACADEMIC, TASK_TYPE_PERSONAL)

# Task filter preference
FILTER_ALL = "all"
TASK_FILTERS = (FILTER_ALL, TASK_TYPE_ACADEMIC, TASK_TYPE_PERSONAL)

# Backup files
AUTO_BACKUP_NAME = "auto-backup.json"
SNAPSHOT_PREFIX = "backup-"
SNAPSHOT_SUFFIX = ".json"
EXPORT_NAME_TEMPLATE = "productivity-backup-{date}.json"
DEFAULT_SNAPSHOT_INTERVAL_MINUTES = 5

# Semester defaults (YYYY-MM-DD)
DEFAULT_SEMESTER_START = "2025-08-25"
DEFAULT_SEMESTER_END = "2025-12-11"

# Pomodoro defaults (minutes)
DEFAULT_WORK_MINUTES = 50
DEFAULT_BREAK_MINUTES = 10
MAX_POMODORO_MINUTES = 180
