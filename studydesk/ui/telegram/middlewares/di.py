from __future__ import annotations

from pathlib import Path
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from studydesk.domain.backup.manager import BackupManager
from studydesk.domain.pomodoro.timer import PomodoroTimer
from studydesk.domain.settings.service import SettingsService
from studydesk.domain.tasks.service import TaskService
from studydesk.infra.clock.system_clock import SystemClock


class DIMiddleware(BaseMiddleware):
    """
    Inject dependencies to handlers via `data` dict.

    Handlers can request args by name, e.g.
      async def handler(message: Message, task_service: TaskService, clock: SystemClock): ...
    """

    def __init__(
        self,
        task_service: TaskService,
        settings_service: SettingsService,
        backup_manager: BackupManager,
        pomodoro: PomodoroTimer,
        clock: SystemClock,
        export_dir: Path,
    ) -> None:
        self._tasks = task_service
        self._settings = settings_service
        self._backups = backup_manager
        self._pomodoro = pomodoro
        self._clock = clock
        self._export_dir = export_dir

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        # keep names stable across the project
        data["task_service"] = self._tasks
        data["settings_service"] = self._settings
        data["backup_manager"] = self._backups
        data["pomodoro"] = self._pomodoro
        data["clock"] = self._clock
        data["export_dir"] = self._export_dir

        return await handler(event, data)
