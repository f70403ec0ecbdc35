"""
Tests for BackupManager: restore semantics, auto-backup, snapshot timer, export/import, recovery.

Gateway, store and file picker are in-memory fakes (tests/fakes.py).
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from studydesk.domain.backup.manager import BackupManager, snapshot_name

from fakes import FixedClock, MemoryGateway, MemoryStore, ScriptedPicker, task_record

NOW = datetime(2025, 10, 15, 8, 30, tzinfo=timezone.utc)


def _full_store() -> MemoryStore:
    return MemoryStore({
        "tasks": [task_record("t1"), task_record("t2", dueDate="2025-10-20")],
        "completedTasks": [task_record("c1", status="complete", completedAt="2025-10-14T10:00:00+00:00")],
        "userName": "Sam",
        "semesterStartDate": "2025-08-25",
        "semesterEndDate": "2025-12-11",
        "taskFilter": "academic",
    })


def _manager(store=None, gateway=None, picker=None, interval=300.0):
    store = store or _full_store()
    gateway = gateway or MemoryGateway()
    manager = BackupManager(store, gateway, FixedClock(NOW), picker=picker, snapshot_interval_seconds=interval)
    return manager, store, gateway


# ----- restore_all_data -----


def test_restore_of_current_data_is_a_no_op():
    async def _run():
        manager, store, _ = _manager()
        before = dict(store.values)
        assert await manager.restore_all_data(manager.get_all_data()) is True
        await manager.drain()
        assert store.values == before

    asyncio.run(_run())


def test_bundle_shape_and_version():
    manager, _, _ = _manager()
    bundle = manager.get_all_data()
    assert set(bundle) == {
        "tasks", "completedTasks", "userName", "semesterStartDate",
        "semesterEndDate", "taskFilter", "timestamp", "version",
    }
    assert bundle["version"] == "1.0.0"
    assert bundle["timestamp"] == NOW.isoformat()


def test_restore_leaves_missing_fields_untouched():
    async def _run():
        manager, store, _ = _manager()
        new_tasks = [task_record("n1", title="From backup")]
        assert await manager.restore_all_data({"tasks": new_tasks, "version": "1.0.0"}) is True
        await manager.drain()

        assert [t["id"] for t in store.values["tasks"]] == ["n1"]
        assert store.values["userName"] == "Sam"
        assert [t["id"] for t in store.values["completedTasks"]] == ["c1"]
        assert store.values["taskFilter"] == "academic"

    asyncio.run(_run())


def test_restore_skips_empty_values():
    async def _run():
        manager, store, _ = _manager()
        assert await manager.restore_all_data({"userName": "", "tasks": [], "taskFilter": "personal"}) is True
        await manager.drain()
        assert store.values["userName"] == "Sam"
        assert len(store.values["tasks"]) == 2
        assert store.values["taskFilter"] == "personal"

    asyncio.run(_run())


def test_invalid_bundle_is_rejected_and_store_unchanged():
    async def _run():
        invalid = [
            None,
            [],
            "not a bundle",
            {},
            {"timestamp": "2025-10-15"},
            {"tasks": "oops"},
            {"tasks": [{"title": "no id"}]},
            {"tasks": [{"id": "a", "title": "A"}, {"id": "a", "title": "again"}]},
            {"userName": 42},
            {"tasks": [], "version": "2.0.0"},
        ]
        for bundle in invalid:
            manager, store, gateway = _manager()
            before = dict(store.values)
            assert await manager.restore_all_data(bundle) is False, bundle
            await manager.drain()
            assert store.values == before
            assert store.writes == 0
            assert gateway.snapshots == {}

    asyncio.run(_run())


def test_bundle_with_unreadable_values_is_rejected():
    """Values that the task list or dashboard could not read back never reach the store."""
    async def _run():
        invalid = [
            {"tasks": [{"id": "x", "title": "X", "customPriority": "high"}]},
            {"tasks": [{"id": "x", "title": "X", "customPriority": [1]}]},
            {"tasks": [{"id": "x", "title": "X", "attachments": "/notes.pdf"}]},
            {"tasks": [{"id": "x", "title": "X", "attachments": ["/a.pdf", 3]}]},
            {"tasks": [{"id": "x", "title": "X", "dueDate": 20251020}]},
            {"tasks": [{"id": "x", "title": "X", "time": {"h": 9}}]},
            {"completedTasks": [{"id": "x", "title": "X", "createdAt": 1}]},
            {"semesterStartDate": "soon"},
            {"semesterEndDate": "2025-13-40"},
            {"taskFilter": "work"},
        ]
        for bundle in invalid:
            manager, store, gateway = _manager()
            before = dict(store.values)
            assert await manager.restore_all_data(bundle) is False, bundle
            await manager.drain()
            assert store.values == before
            assert store.writes == 0
            assert gateway.snapshots == {}

    asyncio.run(_run())


def test_bundle_with_numeric_string_priority_is_accepted():
    async def _run():
        manager, store, _ = _manager()
        bundle = {
            "tasks": [{"id": "x", "title": "X", "customPriority": "3", "attachments": ["/a.pdf"]}],
            "semesterStartDate": "2026-01-12",
            "taskFilter": "personal",
        }
        assert await manager.restore_all_data(bundle) is True
        await manager.drain()
        assert store.values["tasks"][0]["customPriority"] == "3"
        assert store.values["semesterStartDate"] == "2026-01-12"

    asyncio.run(_run())


def test_restore_normalizes_legacy_task_type():
    async def _run():
        manager, store, _ = _manager()
        await manager.restore_all_data({"tasks": [{"id": 7, "title": "Legacy"}]})
        await manager.drain()
        assert store.values["tasks"][0]["taskType"] == "academic"

    asyncio.run(_run())


def test_failed_store_write_reports_failure():
    async def _run():
        manager, store, gateway = _manager()
        store.fail_writes = True
        before = dict(store.values)
        assert await manager.restore_all_data({"userName": "Alex"}) is False
        await manager.drain()
        assert store.values == before
        assert gateway.snapshots == {}

    asyncio.run(_run())


# ----- layer 1: auto-backup -----


def test_successful_restore_requests_auto_backup():
    async def _run():
        manager, _, gateway = _manager()
        await manager.restore_all_data({"userName": "Alex"})
        await manager.drain()
        assert gateway.snapshots["auto-backup.json"]["userName"] == "Alex"

    asyncio.run(_run())


def test_auto_backup_overwrites_single_slot():
    async def _run():
        manager, store, gateway = _manager()
        await manager.save_auto_backup()
        store.values["userName"] = "Alex"
        await manager.save_auto_backup()
        assert list(gateway.snapshots) == ["auto-backup.json"]
        assert gateway.snapshots["auto-backup.json"]["userName"] == "Alex"

    asyncio.run(_run())


def test_auto_backup_failure_is_logged_not_raised():
    async def _run():
        manager, _, gateway = _manager()
        gateway.fail_with = "io"
        outcome = await manager.save_auto_backup()
        assert outcome.failed and outcome.error_kind == "io"

        manager.request_auto_backup()
        await manager.drain()

    asyncio.run(_run())


def test_auto_backup_crash_is_contained():
    async def _run():
        manager, _, gateway = _manager()

        async def explode(*args, **kwargs):
            raise RuntimeError("serializer bug")

        gateway.write_snapshot = explode
        outcome = await manager.save_auto_backup()
        assert outcome.failed
        manager.request_auto_backup()
        await manager.drain()

    asyncio.run(_run())


def test_quick_mutations_leave_latest_state_in_auto_backup():
    async def _run():
        manager, store, gateway = _manager()
        written = []
        write_snapshot = gateway.write_snapshot

        async def slow_write(name, bundle, exclusive=False):
            await asyncio.sleep(0.01)
            written.append(bundle["userName"])
            return await write_snapshot(name, bundle, exclusive)

        gateway.write_snapshot = slow_write

        store.values["userName"] = "A"
        manager.request_auto_backup()
        await asyncio.sleep(0)  # first backup has captured "A" and is writing
        store.values["userName"] = "B"
        manager.request_auto_backup()
        store.values["userName"] = "C"
        manager.request_auto_backup()
        await manager.drain()

        assert written == ["A", "C"]
        assert gateway.snapshots["auto-backup.json"]["userName"] == "C"

        # once idle, the next request starts a fresh backup
        store.values["userName"] = "D"
        manager.request_auto_backup()
        await manager.drain()
        assert gateway.snapshots["auto-backup.json"]["userName"] == "D"

    asyncio.run(_run())


def test_request_without_event_loop_is_skipped():
    manager, _, gateway = _manager()
    manager.request_auto_backup()
    assert gateway.snapshots == {}


# ----- layer 2: snapshots -----


def test_snapshot_names_sort_and_do_not_collide():
    async def _run():
        manager, _, gateway = _manager()
        first = await manager.save_snapshot()
        second = await manager.save_snapshot()
        assert first.success and second.success
        assert first.value != second.value
        assert first.value == snapshot_name(NOW)
        assert manager.last_snapshot_at == NOW

    asyncio.run(_run())


def test_snapshot_name_format():
    assert snapshot_name(NOW) == "backup-2025-10-15T08-30-00-000000Z.json"
    assert snapshot_name(NOW, 2) == "backup-2025-10-15T08-30-00-000000Z-2.json"


def test_starting_timer_twice_keeps_one_timer():
    async def _run():
        manager, _, gateway = _manager(interval=0.01)
        manager.start_snapshot_timer()
        manager.start_snapshot_timer()
        await asyncio.sleep(0.005)

        running = [t for t in asyncio.all_tasks() if t.get_name() == "backup-snapshots" and not t.done()]
        assert len(running) == 1

        await asyncio.sleep(0.05)
        manager.stop_snapshot_timer()
        assert manager.snapshot_timer_running is False
        await asyncio.sleep(0.005)
        count = len(gateway.snapshots)
        assert count >= 1

        await asyncio.sleep(0.05)
        assert len(gateway.snapshots) == count

    asyncio.run(_run())


def test_aclose_stops_timer_and_drains():
    async def _run():
        manager, _, gateway = _manager(interval=60)
        manager.start_snapshot_timer()
        manager.request_auto_backup()
        await manager.aclose()
        assert manager.snapshot_timer_running is False
        assert "auto-backup.json" in gateway.snapshots

    asyncio.run(_run())


# ----- layer 3: export / import -----


def test_export_writes_to_chosen_path():
    async def _run():
        picker = ScriptedPicker(save_result="/home/sam/backup.json")
        manager, _, gateway = _manager(picker=picker)
        outcome = await manager.export_backup()
        assert outcome.success
        assert picker.save_requests == ["productivity-backup-2025-10-15.json"]
        assert gateway.exports["/home/sam/backup.json"]["userName"] == "Sam"

    asyncio.run(_run())


def test_export_cancel_writes_nothing():
    async def _run():
        manager, _, gateway = _manager(picker=ScriptedPicker(save_result=None))
        outcome = await manager.export_backup()
        assert outcome.canceled
        assert gateway.exports == {}

    asyncio.run(_run())


def test_export_failure_is_reported():
    async def _run():
        manager, store, gateway = _manager(picker=ScriptedPicker(save_result="/readonly/b.json"))
        before = dict(store.values)
        gateway.fail_with = "io"
        outcome = await manager.export_backup()
        assert outcome.failed and outcome.error_kind == "io"
        assert store.values == before

    asyncio.run(_run())


def test_export_without_picker_is_unsupported():
    async def _run():
        manager, _, _ = _manager()
        outcome = await manager.export_backup()
        assert outcome.failed and outcome.error_kind == "unsupported"

    asyncio.run(_run())


def test_import_returns_validated_bundle_without_restoring():
    async def _run():
        picker = ScriptedPicker(open_result=["/tmp/in.json"])
        manager, store, gateway = _manager(picker=picker)
        gateway.files["/tmp/in.json"] = {"userName": "Alex", "version": "1.0.0"}

        outcome = await manager.import_backup()
        assert outcome.success
        assert outcome.value["userName"] == "Alex"
        assert store.values["userName"] == "Sam"

    asyncio.run(_run())


def test_import_cancel_and_invalid_file():
    async def _run():
        picker = ScriptedPicker(open_result=None)
        manager, _, gateway = _manager(picker=picker)
        assert (await manager.import_backup()).canceled

        picker.open_result = ["/tmp/bad.json"]
        gateway.files["/tmp/bad.json"] = {"tasks": "nope"}
        outcome = await manager.import_backup()
        assert outcome.failed and outcome.error_kind == "validation"

        picker.open_result = ["/tmp/missing.json"]
        outcome = await manager.import_backup()
        assert outcome.failed and outcome.error_kind == "io"

    asyncio.run(_run())


# ----- layer 4: recovery -----


def test_list_excludes_auto_backup_slot():
    async def _run():
        manager, _, _ = _manager()
        await manager.save_auto_backup()
        await manager.save_snapshot()
        listed = await manager.list_backups()
        assert listed.success
        assert [i.name for i in listed.value] == [snapshot_name(NOW)]
        assert (await manager.auto_backup_info()).name == "auto-backup.json"

    asyncio.run(_run())


def test_delete_rules():
    async def _run():
        manager, _, gateway = _manager()
        await manager.save_auto_backup()
        name = (await manager.save_snapshot()).value

        refused = await manager.delete_backup("auto-backup.json")
        assert refused.failed and refused.error_kind == "validation"
        assert "auto-backup.json" in gateway.snapshots

        bad = await manager.delete_backup("../etc/passwd")
        assert bad.failed and bad.error_kind == "validation"

        assert (await manager.delete_backup(name)).success
        assert name not in gateway.snapshots

    asyncio.run(_run())


def test_restore_backup_by_name():
    async def _run():
        manager, store, _ = _manager()
        name = (await manager.save_snapshot()).value
        store.values["userName"] = "Changed"

        outcome = await manager.restore_backup(name)
        await manager.drain()
        assert outcome.success
        assert store.values["userName"] == "Sam"

        missing = await manager.restore_backup("backup-1999-01-01T00-00-00-000000Z.json")
        assert missing.failed and missing.error_kind == "io"

    asyncio.run(_run())


def test_listing_failure_is_an_outcome():
    async def _run():
        manager, _, gateway = _manager()
        gateway.fail_with = "unsupported"
        listed = await manager.list_backups()
        assert listed.failed and listed.error_kind == "unsupported"
        assert await manager.auto_backup_info() is None

    asyncio.run(_run())
