from __future__ import annotations

from html import escape
from typing import Optional, Sequence

from studydesk.domain.backup.models import SnapshotInfo
from studydesk.domain.common.outcome import Outcome

IMPORT_PROMPT = "Send the backup .json file as a document. /cancel to abort."
IMPORT_NOT_A_FILE = "Please send a .json document, or /cancel."
RESTORED = "✅ Data restored."
RESTORE_FAILED = "Restore failed. Your current data was not changed."
SNAPSHOT_SAVED = "Snapshot saved: {name}"
DELETED = "Backup deleted."


def human_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def render_backup_list(snapshots: Sequence[SnapshotInfo], auto: Optional[SnapshotInfo], limit: int = 10) -> str:
    lines = ["<b>Backups</b>", ""]
    if auto is not None:
        lines.append(f"Auto-backup: {auto.modified_at:%Y-%m-%d %H:%M} UTC ({human_size(auto.size)})")
    else:
        lines.append("Auto-backup: none yet")
    lines.append("")
    if not snapshots:
        lines.append("No snapshots yet.")
        return "\n".join(lines)
    lines.append(f"Snapshots ({len(snapshots)}), newest first:")
    for info in snapshots[:limit]:
        lines.append(f"• <code>{escape(info.name)}</code> {human_size(info.size)}")
    return "\n".join(lines)


def render_outcome_error(outcome: Outcome, action: str) -> str:
    if outcome.canceled:
        return f"{action} cancelled."
    if outcome.error_kind == "unsupported":
        return f"{action} is not available in this mode."
    return f"{action} failed: {escape(outcome.error or 'unknown error')}"
