from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from studydesk.domain.common.ports import FilePicker


class PresetFilePicker(FilePicker):
    """
    Non-interactive picker for front ends without native dialogs.

    open_file_dialog returns the preset paths (None when there are none, i.e.
    nothing was chosen); save_file_dialog places the suggested name in
    `save_dir`.
    """

    def __init__(self, open_paths: Sequence[str] = (), save_dir: Optional[Path] = None) -> None:
        self._open_paths = list(open_paths)
        self._save_dir = save_dir

    async def open_file_dialog(self) -> Optional[list[str]]:
        return list(self._open_paths) or None

    async def save_file_dialog(self, default_name: str) -> Optional[str]:
        if self._save_dir is None:
            return None
        return str(Path(self._save_dir) / default_name)
