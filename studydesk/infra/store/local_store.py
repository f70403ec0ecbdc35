# -*- coding: utf-8 -*-
"""Key-value store for live application state (tasks, history, settings)."""
from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from studydesk.domain.common.ports import KeyValueStore
from studydesk.infra.db.connection import Database
from studydesk.infra.db.schema_version import apply_migrations
from studydesk.infra.store.migrations import STORE_MIGRATIONS

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]


class LocalStore(KeyValueStore):
    """
    In-process cache of named JSON values, written through to the `kv` table.

    The cache is the current truth: reads never touch SQLite. Writes serialize
    every value before opening a transaction and update the cache only after
    the commit, so a failed write leaves both sides as they were.

    Views subscribe to the slices they render; `set_many` notifies each
    changed key once.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._cache: Dict[str, Any] = {}
        self._listeners: Dict[str, list[Listener]] = {}

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    async def init(self) -> None:
        await apply_migrations(self._db, STORE_MIGRATIONS, now_iso=self._now_iso())
        await self.reload()

    async def reload(self) -> None:
        rows = await self._db.fetchall("SELECT key, value FROM kv;")
        cache: Dict[str, Any] = {}
        for row in rows:
            try:
                cache[row["key"]] = json.loads(row["value"])
            except json.JSONDecodeError:
                logger.warning("Ignoring unreadable store value for key=%s", row["key"])
        self._cache = cache

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._cache:
            return copy.deepcopy(default)
        return copy.deepcopy(self._cache[key])

    def has(self, key: str) -> bool:
        return key in self._cache

    async def set(self, key: str, value: Any) -> None:
        await self.set_many({key: value})

    async def set_many(self, values: Mapping[str, Any]) -> None:
        if not values:
            return
        encoded = {key: json.dumps(value, ensure_ascii=False) for key, value in values.items()}
        now_iso = self._now_iso()
        await self._db.run_batch(
            (
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at;
                """,
                (key, raw, now_iso),
            )
            for key, raw in encoded.items()
        )
        for key, raw in encoded.items():
            self._cache[key] = json.loads(raw)
        for key in encoded:
            self._publish(key)

    def subscribe(self, key: str, listener: Listener) -> Callable[[], None]:
        """Register interest in one key. Returns a function that unsubscribes."""
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _publish(self, key: str) -> None:
        value: Optional[Any] = self.get(key)
        for listener in list(self._listeners.get(key, ())):
            try:
                listener(key, value)
            except Exception:
                # keep notifying the remaining listeners
                logger.error("Store listener failed for key=%s", key, exc_info=True)
