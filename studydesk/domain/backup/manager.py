"""
Layered backups for the local store.

Layer 1: auto-backup after every mutation (one slot, always overwritten)
Layer 2: timestamped snapshots on a repeating timer (append-only)
Layer 3: export/import to a user-chosen file
Layer 4: recovery feed (list, load, delete, restore)

Background layers (1, 2) log failures and wait for the next trigger.
User-initiated layers (3, 4) return an Outcome for the UI to show.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from studydesk.constants import (
    AUTO_BACKUP_NAME,
    BUNDLE_FIELDS,
    DEFAULT_SNAPSHOT_INTERVAL_MINUTES,
    EXPORT_NAME_TEMPLATE,
    SNAPSHOT_PREFIX,
    SNAPSHOT_SUFFIX,
)
from studydesk.domain.backup.bundle import build_bundle, restorable_fields, validate_bundle
from studydesk.domain.backup.models import SnapshotInfo
from studydesk.domain.backup.ports import PersistenceGateway
from studydesk.domain.common.errors import ValidationError
from studydesk.domain.common.outcome import Outcome
from studydesk.domain.common.ports import Clock, FilePicker, KeyValueStore
from studydesk.infra.scheduler.loop import RepeatingTask

logger = logging.getLogger(__name__)

_MAX_NAME_ATTEMPTS = 100


def snapshot_name(at: datetime, attempt: int = 0) -> str:
    """Sortable snapshot file name for a UTC instant, e.g. backup-2025-10-19T08-30-00-000000Z.json."""
    stamp = at.astimezone(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    suffix = f"-{attempt}" if attempt else ""
    return f"{SNAPSHOT_PREFIX}{stamp}{suffix}{SNAPSHOT_SUFFIX}"


def _check_managed_name(name: str) -> Optional[Outcome]:
    if not name or "/" in name or "\\" in name or name.startswith(".") or not name.endswith(SNAPSHOT_SUFFIX):
        return Outcome.fail("validation", f"Invalid backup name: {name!r}")
    return None


class BackupManager:
    def __init__(
        self,
        store: KeyValueStore,
        gateway: PersistenceGateway,
        clock: Clock,
        picker: Optional[FilePicker] = None,
        snapshot_interval_seconds: float = DEFAULT_SNAPSHOT_INTERVAL_MINUTES * 60,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._clock = clock
        self._picker = picker
        self._timer = RepeatingTask(self._snapshot_tick, snapshot_interval_seconds, name="backup-snapshots")
        self._pending: set[asyncio.Task] = set()
        self._auto_task: Optional[asyncio.Task] = None
        self._auto_again = False
        self.last_snapshot_at: Optional[datetime] = None

    # ----- capture / restore -----

    def get_all_data(self) -> Dict[str, Any]:
        values = {key: self._store.get(key) for key in BUNDLE_FIELDS}
        return build_bundle(values, timestamp=self._clock.now().astimezone(timezone.utc).isoformat())

    async def restore_all_data(self, bundle: Any) -> bool:
        """
        Write a bundle back into the store.

        Fields missing (or empty) in the bundle keep their current value.
        Returns False for a malformed bundle or a failed write; in both cases
        the store is unchanged.
        """
        try:
            validate_bundle(bundle)
        except ValidationError as e:
            logger.warning("Rejected backup bundle: %s", e)
            return False

        fields = restorable_fields(bundle)
        if not fields:
            return True
        try:
            await self._store.set_many(fields)
        except Exception as e:
            logger.error(f"Restore failed, store left unchanged: {e}", exc_info=True)
            return False

        logger.info("Restored %s from backup dated %s", ", ".join(fields), bundle.get("timestamp"))
        self.request_auto_backup()
        return True

    # ----- layer 1: auto-backup -----

    async def save_auto_backup(self) -> Outcome:
        try:
            outcome = await self._gateway.write_snapshot(AUTO_BACKUP_NAME, self.get_all_data())
        except Exception as e:
            logger.error(f"Auto-backup crashed: {e}", exc_info=True)
            return Outcome.fail("io", str(e))
        if outcome.failed:
            logger.warning("Auto-backup failed (%s): %s", outcome.error_kind, outcome.error)
        return outcome

    def request_auto_backup(self) -> None:
        """
        Fire-and-forget save_auto_backup(); the caller never waits for the I/O.

        At most one auto-backup runs at a time. A request made while one is
        in flight makes it run once more, so the slot ends up holding the
        latest state.
        """
        if self._auto_task is not None and not self._auto_task.done():
            self._auto_again = True
            return
        try:
            task = asyncio.get_running_loop().create_task(self._run_auto_backups(), name="auto-backup")
        except RuntimeError:
            logger.warning("Auto-backup skipped: no running event loop")
            return
        self._auto_task = task
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_auto_backups(self) -> None:
        while True:
            self._auto_again = False
            await self.save_auto_backup()
            if not self._auto_again:
                return

    async def drain(self) -> None:
        """Wait for in-flight auto-backups."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ----- layer 2: snapshots -----

    def start_snapshot_timer(self) -> None:
        """Take a snapshot now and every interval after. Restarts if already running."""
        self._timer.start()

    def stop_snapshot_timer(self) -> None:
        self._timer.stop()

    @property
    def snapshot_timer_running(self) -> bool:
        return self._timer.is_running

    async def aclose(self) -> None:
        await self._timer.aclose()
        await self.drain()

    async def _snapshot_tick(self) -> None:
        await self.save_snapshot()

    async def save_snapshot(self) -> Outcome:
        bundle = self.get_all_data()
        now = self._clock.now()
        for attempt in range(_MAX_NAME_ATTEMPTS):
            outcome = await self._gateway.write_snapshot(snapshot_name(now, attempt), bundle, exclusive=True)
            if outcome.error_kind != "conflict":
                break
        if outcome.success:
            self.last_snapshot_at = now
            logger.info("Snapshot saved: %s", outcome.value)
        else:
            logger.warning("Snapshot failed (%s): %s", outcome.error_kind, outcome.error)
        return outcome

    # ----- layer 3: export / import -----

    async def export_backup(self, picker: Optional[FilePicker] = None) -> Outcome:
        picker = picker or self._picker
        if picker is None:
            return Outcome.fail("unsupported", "No file picker available.")
        default_name = EXPORT_NAME_TEMPLATE.format(date=self._clock.now().date().isoformat())
        path = await picker.save_file_dialog(default_name)
        if not path:
            return Outcome.cancel()
        outcome = await self._gateway.export_to(path, self.get_all_data())
        if outcome.success:
            logger.info("Backup exported to %s", outcome.value)
        else:
            logger.warning("Export failed (%s): %s", outcome.error_kind, outcome.error)
        return outcome

    async def import_backup(self, picker: Optional[FilePicker] = None) -> Outcome:
        """Read and validate a user-chosen file. Returns the bundle; restoring it is a separate step."""
        picker = picker or self._picker
        if picker is None:
            return Outcome.fail("unsupported", "No file picker available.")
        paths = await picker.open_file_dialog()
        if not paths:
            return Outcome.cancel()
        outcome = await self._gateway.import_from(paths[0])
        if not outcome.success:
            logger.warning("Import failed (%s): %s", outcome.error_kind, outcome.error)
            return outcome
        return self._validated(outcome.value)

    # ----- layer 4: recovery -----

    async def list_backups(self) -> Outcome:
        """Timestamped snapshots, newest first. The auto-backup slot is not a historical entry."""
        outcome = await self._gateway.list_snapshots()
        if not outcome.success:
            return outcome
        return Outcome.ok([info for info in outcome.value if info.name != AUTO_BACKUP_NAME])

    async def auto_backup_info(self) -> Optional[SnapshotInfo]:
        outcome = await self._gateway.list_snapshots()
        if not outcome.success:
            return None
        return next((info for info in outcome.value if info.name == AUTO_BACKUP_NAME), None)

    async def load_backup(self, name: str) -> Outcome:
        rejected = _check_managed_name(name)
        if rejected:
            return rejected
        outcome = await self._gateway.read_snapshot(name)
        if not outcome.success:
            return outcome
        return self._validated(outcome.value)

    async def delete_backup(self, name: str) -> Outcome:
        rejected = _check_managed_name(name)
        if rejected:
            return rejected
        if name == AUTO_BACKUP_NAME:
            return Outcome.fail("validation", "The auto-backup cannot be deleted.")
        outcome = await self._gateway.delete_snapshot(name)
        if outcome.success:
            logger.info("Backup deleted: %s", name)
        return outcome

    async def restore_backup(self, name: str) -> Outcome:
        loaded = await self.load_backup(name)
        if not loaded.success:
            return loaded
        if not await self.restore_all_data(loaded.value):
            return Outcome.fail("io", "Could not write the restored data.")
        return Outcome.ok(loaded.value)

    def _validated(self, bundle: Any) -> Outcome:
        try:
            return Outcome.ok(validate_bundle(bundle))
        except ValidationError as e:
            return Outcome.fail("validation", str(e))
