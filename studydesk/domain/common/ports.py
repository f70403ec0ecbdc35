from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime: ...


class IdGenerator(ABC):
    @abstractmethod
    def new_id(self) -> str: ...


class FilePicker(ABC):
    """Native file dialogs. None means the user dismissed the dialog."""

    @abstractmethod
    async def open_file_dialog(self) -> Optional[list[str]]: ...

    @abstractmethod
    async def save_file_dialog(self, default_name: str) -> Optional[str]: ...


@dataclass(frozen=True)
class ShellResult:
    success: bool
    error: Optional[str] = None


class Shell(ABC):
    @abstractmethod
    async def open_path(self, path: str) -> ShellResult: ...

    @abstractmethod
    async def show_in_folder(self, path: str) -> ShellResult: ...


class Notifier(ABC):
    @abstractmethod
    async def notify(self, title: str, body: str) -> None: ...


class KeyValueStore(ABC):
    """Live application state: named JSON values with per-key change listeners."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any: ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> None: ...

    @abstractmethod
    async def set_many(self, values: Mapping[str, Any]) -> None: ...

    @abstractmethod
    def subscribe(self, key: str, listener: Callable[[str, Any], None]) -> Callable[[], None]: ...
