from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from studydesk.constants import KEY_COMPLETED_TASKS, KEY_TASKS
from studydesk.domain.tasks.models import normalize_records
from studydesk.infra.db.connection import Database
from studydesk.infra.db.schema_version import Migration

logger = logging.getLogger(__name__)


async def _create_kv(db: Database) -> None:
    await db.executescript(
        """
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )


async def _default_task_type(db: Database) -> None:
    now_iso = datetime.now(timezone.utc).isoformat()
    statements = []
    for key in (KEY_TASKS, KEY_COMPLETED_TASKS):
        row = await db.fetchone("SELECT value FROM kv WHERE key = ?;", (key,))
        if not row:
            continue
        try:
            records = json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning("Skipping taskType migration for %s: stored value is not JSON", key)
            continue
        if not isinstance(records, list):
            continue
        kept = [r for r in records if isinstance(r, dict)]
        dropped = [r for r in records if not isinstance(r, dict)]
        if dropped:
            logger.warning("Dropping %d non-object %s record(s): %r", len(dropped), key, dropped)
        records, changed = normalize_records(kept)
        if changed:
            logger.info("Migrated %d %s record(s) to taskType 'academic'", changed, key)
        if changed or dropped:
            statements.append(
                ("UPDATE kv SET value = ?, updated_at = ? WHERE key = ?;", (json.dumps(records), now_iso, key))
            )
    if statements:
        await db.run_batch(statements)


STORE_MIGRATIONS = [
    Migration(1, "create_kv", _create_kv),
    Migration(2, "default_task_type", _default_task_type),
]
