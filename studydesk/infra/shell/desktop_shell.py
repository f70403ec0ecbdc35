from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Sequence

from studydesk.domain.common.ports import Shell, ShellResult

logger = logging.getLogger(__name__)


def _is_url(target: str) -> bool:
    return target.startswith(("http://", "https://"))


class DesktopShell(Shell):
    """Opens files/links with the platform's default handler."""

    def __init__(self, platform: str = sys.platform) -> None:
        self._platform = platform

    async def open_path(self, path: str) -> ShellResult:
        if not _is_url(path) and not Path(path).exists():
            return ShellResult(False, f"File not found: {path}")
        if self._platform == "win32":
            return await self._startfile(path)
        opener = "open" if self._platform == "darwin" else "xdg-open"
        return await self._run([opener, path])

    async def show_in_folder(self, path: str) -> ShellResult:
        target = Path(path)
        if not target.exists():
            return ShellResult(False, f"File not found: {path}")
        if self._platform == "darwin":
            return await self._run(["open", "-R", str(target)])
        if self._platform == "win32":
            # explorer exits with 1 even on success
            result = await self._run(["explorer", f"/select,{target}"])
            return ShellResult(True) if result.error is None or result.error.startswith("exit") else result
        return await self._run(["xdg-open", str(target.parent)])

    async def _startfile(self, path: str) -> ShellResult:
        try:
            await asyncio.to_thread(os.startfile, path)  # type: ignore[attr-defined]
        except OSError as e:
            return ShellResult(False, str(e))
        return ShellResult(True)

    async def _run(self, argv: Sequence[str]) -> ShellResult:
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await proc.communicate()
        except OSError as e:
            logger.warning("Shell action %s failed: %s", argv[0], e)
            return ShellResult(False, str(e))
        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip() or f"exit status {proc.returncode}"
            return ShellResult(False, message)
        return ShellResult(True)
