"""
Tests for the file-based backup gateways, using a temporary directory.
"""
from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

from studydesk.infra.backup.downloads_gateway import DownloadsGateway
from studydesk.infra.backup.filesystem_gateway import FilesystemGateway
from studydesk.infra.backup.json_files import write_json_atomic

BUNDLE = {"tasks": [], "userName": "Sam", "version": "1.0.0"}


def test_write_read_list_delete():
    async def _run(tmp: Path):
        gateway = FilesystemGateway(tmp / "backups")
        assert (await gateway.list_snapshots()).value == []

        written = await gateway.write_snapshot("backup-a.json", BUNDLE)
        assert written.success
        assert (tmp / "backups" / "backup-a.json").is_file()

        read = await gateway.read_snapshot("backup-a.json")
        assert read.success and read.value == BUNDLE

        listed = await gateway.list_snapshots()
        assert [i.name for i in listed.value] == ["backup-a.json"]
        assert listed.value[0].size > 0

        assert (await gateway.delete_snapshot("backup-a.json")).success
        missing = await gateway.delete_snapshot("backup-a.json")
        assert missing.failed and missing.error_kind == "io"

    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(_run(Path(tmp)))


def test_written_file_is_pretty_json():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "b.json"
        write_json_atomic(path, BUNDLE)
        text = path.read_text(encoding="utf-8")
        assert json.loads(text) == BUNDLE
        assert "\n  " in text
        # no temp files left behind
        assert os.listdir(tmp) == ["b.json"]


def test_exclusive_write_never_replaces():
    async def _run(tmp: Path):
        gateway = FilesystemGateway(tmp)
        assert (await gateway.write_snapshot("backup-x.json", BUNDLE, exclusive=True)).success
        again = await gateway.write_snapshot("backup-x.json", {"userName": "other"}, exclusive=True)
        assert again.failed and again.error_kind == "conflict"
        assert json.loads((tmp / "backup-x.json").read_text())["userName"] == "Sam"

        # the auto-backup slot is overwritten in place
        assert (await gateway.write_snapshot("auto-backup.json", BUNDLE)).success
        assert (await gateway.write_snapshot("auto-backup.json", {"userName": "new"})).success
        assert json.loads((tmp / "auto-backup.json").read_text())["userName"] == "new"

    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(_run(Path(tmp)))


def test_failed_write_keeps_previous_file():
    async def _run(tmp: Path):
        gateway = FilesystemGateway(tmp)
        await gateway.write_snapshot("auto-backup.json", BUNDLE)
        with patch("studydesk.infra.backup.json_files.os.replace", side_effect=OSError(28, "No space left")):
            failed = await gateway.write_snapshot("auto-backup.json", {"userName": "lost"})
        assert failed.failed and failed.error_kind == "io"
        assert json.loads((tmp / "auto-backup.json").read_text()) == BUNDLE
        assert sorted(os.listdir(tmp)) == ["auto-backup.json"]

    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(_run(Path(tmp)))


def test_read_errors_are_classified():
    async def _run(tmp: Path):
        gateway = FilesystemGateway(tmp)
        (tmp / "broken.json").write_text("{not json", encoding="utf-8")
        (tmp / "list.json").write_text("[1, 2]", encoding="utf-8")

        missing = await gateway.read_snapshot("nope.json")
        assert missing.failed and missing.error_kind == "io"
        broken = await gateway.read_snapshot("broken.json")
        assert broken.failed and broken.error_kind == "parse"
        not_object = await gateway.read_snapshot("list.json")
        assert not_object.failed and not_object.error_kind == "parse"

    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(_run(Path(tmp)))


def test_managed_names_cannot_escape_directory():
    async def _run(tmp: Path):
        gateway = FilesystemGateway(tmp / "backups")
        for name in ("../escape.json", "sub/dir.json", "", ".."):
            outcome = await gateway.write_snapshot(name, BUNDLE)
            assert outcome.failed and outcome.error_kind == "validation", name
        assert not (tmp / "escape.json").exists()

    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(_run(Path(tmp)))


def test_listing_skips_hidden_and_foreign_files_newest_first():
    async def _run(tmp: Path):
        gateway = FilesystemGateway(tmp)
        await gateway.write_snapshot("backup-old.json", BUNDLE)
        await gateway.write_snapshot("backup-new.json", BUNDLE)
        os.utime(tmp / "backup-old.json", (1_000_000, 1_000_000))
        (tmp / ".partial.json").write_text("{}")
        (tmp / "notes.txt").write_text("x")

        listed = await gateway.list_snapshots()
        assert [i.name for i in listed.value] == ["backup-new.json", "backup-old.json"]

    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(_run(Path(tmp)))


def test_export_and_import_arbitrary_paths():
    async def _run(tmp: Path):
        gateway = FilesystemGateway(tmp / "backups")
        target = tmp / "elsewhere" / "mine.json"
        assert (await gateway.export_to(str(target), BUNDLE)).success
        imported = await gateway.import_from(str(target))
        assert imported.success and imported.value == BUNDLE

    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(_run(Path(tmp)))


def test_downloads_gateway_has_no_managed_backups():
    async def _run(tmp: Path):
        gateway = DownloadsGateway(tmp)
        for outcome in (
            await gateway.write_snapshot("auto-backup.json", BUNDLE),
            await gateway.read_snapshot("auto-backup.json"),
            await gateway.list_snapshots(),
            await gateway.delete_snapshot("backup-a.json"),
        ):
            assert outcome.failed and outcome.error_kind == "unsupported"

        exported = await gateway.export_to("/somewhere/else/productivity-backup-2025-10-15.json", BUNDLE)
        assert exported.success
        assert (tmp / "productivity-backup-2025-10-15.json").is_file()
        imported = await gateway.import_from(exported.value)
        assert imported.value == BUNDLE

    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(_run(Path(tmp)))
