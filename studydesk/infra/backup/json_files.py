"""Atomic JSON file helpers shared by the backup gateways."""
from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from studydesk.domain.common.outcome import Outcome


def write_json_atomic(path: Path, data: Any, exclusive: bool = False) -> None:
    """
    Write pretty-printed JSON via a temp file in the same directory.

    Readers see either the old file or the complete new one. With
    exclusive=True an existing file is never replaced (FileExistsError).
    """
    text = json.dumps(data, indent=2, ensure_ascii=False)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if not exclusive:
            os.replace(tmp, path)
            return
        try:
            os.link(tmp, path)
        except FileExistsError:
            raise
        except OSError:
            # no hard links on this filesystem
            if path.exists():
                raise FileExistsError(str(path))
            os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.unlink(tmp)


def read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


async def write_bundle_file(path: Path, bundle: Dict[str, Any], exclusive: bool = False) -> Outcome:
    try:
        await asyncio.to_thread(write_json_atomic, path, bundle, exclusive)
    except FileExistsError:
        return Outcome.fail("conflict", f"{path.name} already exists.")
    except OSError as e:
        return Outcome.fail("io", f"Could not write {path}: {e.strerror or e}")
    return Outcome.ok(str(path))


async def read_bundle_file(path: Path) -> Outcome:
    try:
        data = await asyncio.to_thread(read_json, path)
    except FileNotFoundError:
        return Outcome.fail("io", f"Backup file not found: {path.name}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return Outcome.fail("parse", f"{path.name} is not valid JSON.")
    except OSError as e:
        return Outcome.fail("io", f"Could not read {path}: {e.strerror or e}")
    if not isinstance(data, dict):
        return Outcome.fail("parse", f"{path.name} is not a backup file.")
    return Outcome.ok(data)
