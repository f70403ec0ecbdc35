from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from studydesk.domain.backup.ports import PersistenceGateway
from studydesk.domain.common.outcome import Outcome
from studydesk.infra.backup.json_files import read_bundle_file, write_bundle_file

_UNSUPPORTED = "Managed backups are only available in filesystem mode."


class DownloadsGateway(PersistenceGateway):
    """
    Fallback without a managed backup directory.

    Exports are "downloaded": written into the downloads directory under the
    file name the user chose. Imports read whatever file was picked. Auto-backup,
    snapshots and the recovery list are unavailable.
    """

    def __init__(self, downloads_dir: Path) -> None:
        self._dir = Path(downloads_dir)

    async def write_snapshot(self, name: str, bundle: Dict[str, Any], exclusive: bool = False) -> Outcome:
        return Outcome.fail("unsupported", _UNSUPPORTED)

    async def read_snapshot(self, name: str) -> Outcome:
        return Outcome.fail("unsupported", _UNSUPPORTED)

    async def list_snapshots(self) -> Outcome:
        return Outcome.fail("unsupported", _UNSUPPORTED)

    async def delete_snapshot(self, name: str) -> Outcome:
        return Outcome.fail("unsupported", _UNSUPPORTED)

    async def export_to(self, path: str, bundle: Dict[str, Any]) -> Outcome:
        name = Path(path).name
        if not name:
            return Outcome.fail("validation", "Export needs a file name.")
        return await write_bundle_file(self._dir / name, bundle)

    async def import_from(self, path: str) -> Outcome:
        return await read_bundle_file(Path(path).expanduser())
