from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from studydesk.domain.common.outcome import Outcome


class PersistenceGateway(ABC):
    """
    Durable storage for backup bundles.

    Every method returns an Outcome instead of raising for expected failures:
    - read_snapshot/import_from: Outcome.ok(bundle dict)
    - list_snapshots: Outcome.ok(list[SnapshotInfo]), newest first
    - writes/deletes: Outcome.ok(path written/deleted)
    """

    @abstractmethod
    async def write_snapshot(self, name: str, bundle: Dict[str, Any], exclusive: bool = False) -> Outcome: ...

    @abstractmethod
    async def read_snapshot(self, name: str) -> Outcome: ...

    @abstractmethod
    async def list_snapshots(self) -> Outcome: ...

    @abstractmethod
    async def delete_snapshot(self, name: str) -> Outcome: ...

    @abstractmethod
    async def export_to(self, path: str, bundle: Dict[str, Any]) -> Outcome: ...

    @abstractmethod
    async def import_from(self, path: str) -> Outcome: ...
