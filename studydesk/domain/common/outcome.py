from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional

OutcomeStatus = Literal["ok", "canceled", "failed"]
ErrorKind = Literal["io", "parse", "validation", "conflict", "unsupported"]


@dataclass(frozen=True)
class Outcome:
    """
    Tagged result of a backup/persistence operation.

    Expected failures (missing file, bad JSON, cancelled dialog) travel as
    values instead of exceptions so background callers can log them and
    foreground callers can show `error` to the user.
    """
    status: OutcomeStatus
    value: Any = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, value: Any = None) -> "Outcome":
        return cls(status="ok", value=value)

    @classmethod
    def cancel(cls) -> "Outcome":
        return cls(status="canceled")

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> "Outcome":
        return cls(status="failed", error=error, error_kind=kind)

    @property
    def success(self) -> bool:
        return self.status == "ok"

    @property
    def canceled(self) -> bool:
        return self.status == "canceled"

    @property
    def failed(self) -> bool:
        return self.status == "failed"
