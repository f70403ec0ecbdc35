from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from studydesk.infra.db.connection import Database

logger = logging.getLogger(__name__)

MigrationFn = Callable[[Database], Awaitable[None]]


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    apply: MigrationFn


async def apply_migrations(db: Database, migrations: Sequence[Migration], now_iso: str) -> list[int]:
    """Apply pending migrations in version order. Returns the versions applied by this call."""
    await db.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL);"
    )

    applied: list[int] = []
    for m in sorted(migrations, key=lambda m: m.version):
        row = await db.fetchone("SELECT version FROM schema_migrations WHERE version = ?;", (m.version,))
        if row:
            continue

        logger.info("Applying migration %s_%s", m.version, m.name)
        await m.apply(db)

        await db.execute(
            "INSERT INTO schema_migrations(version, applied_at) VALUES (?, ?);",
            (m.version, now_iso),
        )
        applied.append(m.version)
    return applied
