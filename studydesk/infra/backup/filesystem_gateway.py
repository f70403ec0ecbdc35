from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from studydesk.constants import SNAPSHOT_SUFFIX
from studydesk.domain.backup.models import SnapshotInfo
from studydesk.domain.backup.ports import PersistenceGateway
from studydesk.domain.common.outcome import Outcome
from studydesk.infra.backup.json_files import read_bundle_file, write_bundle_file


class FilesystemGateway(PersistenceGateway):
    """Backups as JSON files in one managed directory (desktop mode)."""

    def __init__(self, backup_dir: Path) -> None:
        self._dir = Path(backup_dir)

    def _managed_path(self, name: str) -> Path:
        if not name or Path(name).name != name or name in (".", ".."):
            raise ValueError(f"Invalid backup name: {name!r}")
        return self._dir / name

    async def write_snapshot(self, name: str, bundle: Dict[str, Any], exclusive: bool = False) -> Outcome:
        try:
            path = self._managed_path(name)
        except ValueError as e:
            return Outcome.fail("validation", str(e))
        return await write_bundle_file(path, bundle, exclusive=exclusive)

    async def read_snapshot(self, name: str) -> Outcome:
        try:
            path = self._managed_path(name)
        except ValueError as e:
            return Outcome.fail("validation", str(e))
        return await read_bundle_file(path)

    async def list_snapshots(self) -> Outcome:
        try:
            infos = await asyncio.to_thread(self._scan)
        except OSError as e:
            return Outcome.fail("io", f"Could not list backups: {e.strerror or e}")
        return Outcome.ok(infos)

    def _scan(self) -> list[SnapshotInfo]:
        if not self._dir.is_dir():
            return []
        infos = []
        for p in self._dir.iterdir():
            if not p.is_file() or p.name.startswith(".") or p.suffix != SNAPSHOT_SUFFIX:
                continue
            st = p.stat()
            infos.append(
                SnapshotInfo(
                    name=p.name,
                    size=st.st_size,
                    modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
                )
            )
        infos.sort(key=lambda i: (i.modified_at, i.name), reverse=True)
        return infos

    async def delete_snapshot(self, name: str) -> Outcome:
        try:
            path = self._managed_path(name)
        except ValueError as e:
            return Outcome.fail("validation", str(e))
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return Outcome.fail("io", f"Backup file not found: {name}")
        except OSError as e:
            return Outcome.fail("io", f"Could not delete {name}: {e.strerror or e}")
        return Outcome.ok(str(path))

    async def export_to(self, path: str, bundle: Dict[str, Any]) -> Outcome:
        return await write_bundle_file(Path(path).expanduser(), bundle)

    async def import_from(self, path: str) -> Outcome:
        return await read_bundle_file(Path(path).expanduser())
