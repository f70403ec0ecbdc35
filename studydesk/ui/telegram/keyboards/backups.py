from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from studydesk.domain.backup.models import SnapshotInfo


def backups_kb(snapshots: Sequence[SnapshotInfo], limit: int = 10) -> InlineKeyboardMarkup:
    """
    Per snapshot: restore (bk:rs:<name>) and delete (bk:del:<name>).
    Snapshot names are short enough for the 64 byte callback_data limit.
    """
    kb = InlineKeyboardBuilder()
    for info in snapshots[:limit]:
        label = info.modified_at.strftime("%m-%d %H:%M")
        kb.button(text=f"↩️ {label}", callback_data=f"bk:rs:{info.name}")
        kb.button(text="🗑️", callback_data=f"bk:del:{info.name}")
    kb.button(text="📸 Snapshot now", callback_data="bk:snap")
    kb.button(text="📤 Export", callback_data="bk:export")
    kb.button(text="📥 Import", callback_data="bk:import")
    kb.adjust(*([2] * min(len(snapshots), limit)), 1, 2)
    return kb.as_markup()
