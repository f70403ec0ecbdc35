from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SnapshotInfo:
    name: str
    size: int  # bytes
    modified_at: datetime  # UTC
