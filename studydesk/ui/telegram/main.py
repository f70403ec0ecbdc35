from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import ExceptionTypeFilter
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import ErrorEvent

from studydesk.config import Settings, load_settings
from studydesk.domain.backup.manager import BackupManager
from studydesk.domain.backup.ports import PersistenceGateway
from studydesk.domain.pomodoro.timer import PomodoroTimer
from studydesk.domain.settings.service import SettingsService
from studydesk.domain.tasks.service import TaskService
from studydesk.infra.backup.downloads_gateway import DownloadsGateway
from studydesk.infra.backup.filesystem_gateway import FilesystemGateway
from studydesk.infra.clock.system_clock import SystemClock
from studydesk.infra.db.connection import Database
from studydesk.infra.ids.uuid_gen import UuidGenerator
from studydesk.infra.scheduler.loop import RepeatingTask
from studydesk.infra.shell.desktop_shell import DesktopShell
from studydesk.infra.store.local_store import LocalStore
from studydesk.ui.telegram.handlers.backups import router as backups_router
from studydesk.ui.telegram.handlers.cancel import router as cancel_router
from studydesk.ui.telegram.handlers.pomodoro import router as pomodoro_router
from studydesk.ui.telegram.handlers.settings import router as settings_router
from studydesk.ui.telegram.handlers.start import router as start_router
from studydesk.ui.telegram.handlers.stats import router as stats_router
from studydesk.ui.telegram.handlers.tasks import router as tasks_router
from studydesk.ui.telegram.middlewares.auth import OwnerOnlyMiddleware
from studydesk.ui.telegram.middlewares.di import DIMiddleware
from studydesk.ui.telegram.notifier import TelegramNotifier

logger = logging.getLogger(__name__)


def _absolute(path: Path) -> Path:
    # relative paths from .env are taken from the working directory
    return path if path.is_absolute() else Path.cwd() / path


def build_gateway(settings: Settings) -> PersistenceGateway:
    if settings.backup_mode == "downloads":
        return DownloadsGateway(_absolute(settings.export_dir))
    return FilesystemGateway(_absolute(settings.backup_dir))


async def main() -> None:
    """
    Entry point for the Telegram bot.

    Only run ONE instance at a time: two pollers on the same token end in
    TelegramConflictError ("terminated by other getUpdates request").
    """
    settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - [PID:%(process)d] - %(message)s'
    )
    logger.info("Bot starting - PID: %s", os.getpid())

    # --- storage ---
    db_path = _absolute(settings.db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    export_dir = _absolute(settings.export_dir)
    export_dir.mkdir(parents=True, exist_ok=True)
    logger.info("DB_PATH: %s, backup mode: %s", db_path, settings.backup_mode)

    db = Database(str(db_path))
    store = LocalStore(db)
    await store.init()

    clock = SystemClock(settings.timezone)
    ids = UuidGenerator()

    # --- bot/dispatcher ---
    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = Dispatcher(storage=MemoryStorage())

    # --- services ---
    backup_manager = BackupManager(
        store=store,
        gateway=build_gateway(settings),
        clock=clock,
        snapshot_interval_seconds=settings.snapshot_interval_minutes * 60,
    )
    task_service = TaskService(
        store=store,
        clock=clock,
        ids=ids,
        on_mutation=backup_manager.request_auto_backup,
        shell=DesktopShell(),
    )
    settings_service = SettingsService(store=store, on_mutation=backup_manager.request_auto_backup)
    work_minutes, break_minutes = settings_service.pomodoro_durations()
    pomodoro = PomodoroTimer(
        notifier=TelegramNotifier(bot, settings.owner_telegram_id),
        work_minutes=work_minutes,
        break_minutes=break_minutes,
    )

    # --- middlewares ---
    dp.message.middleware(OwnerOnlyMiddleware(settings.owner_telegram_id))
    dp.callback_query.middleware(OwnerOnlyMiddleware(settings.owner_telegram_id))

    di = DIMiddleware(task_service, settings_service, backup_manager, pomodoro, clock, export_dir)
    dp.message.middleware(di)
    dp.callback_query.middleware(di)

    # --- routers ---
    dp.include_router(cancel_router)
    dp.include_router(start_router)
    dp.include_router(tasks_router)
    dp.include_router(backups_router)
    dp.include_router(stats_router)
    dp.include_router(settings_router)
    dp.include_router(pomodoro_router)

    @dp.error(ExceptionTypeFilter(TelegramBadRequest))
    async def handle_old_callback_query(event: ErrorEvent) -> None:
        """Ignore TelegramBadRequest for old/invalid callback queries (e.g. after bot restart)."""
        msg = str(event.exception).lower()
        if "query is too old" in msg or "query id is invalid" in msg or "response timeout expired" in msg:
            logger.debug("Ignoring old/invalid callback query: %s", event.exception)
            return
        raise event.exception

    # --- background ---
    backup_manager.start_snapshot_timer()
    pomodoro_loop = RepeatingTask(pomodoro.tick, 1, name="pomodoro", run_immediately=False)
    pomodoro_loop.start()

    logger.info("Starting polling")
    try:
        await dp.start_polling(bot)
    finally:
        await pomodoro_loop.aclose()
        await backup_manager.aclose()
        await bot.session.close()
        logger.info("Bot shutdown complete - PID: %s", os.getpid())


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
