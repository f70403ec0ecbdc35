from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from studydesk.constants import DEFAULT_SNAPSHOT_INTERVAL_MINUTES

BACKUP_MODES = ("filesystem", "downloads")


@dataclass(frozen=True)
class Settings:
    bot_token: str
    owner_telegram_id: int
    timezone: str
    db_path: Path
    backup_dir: Path
    export_dir: Path
    backup_mode: str
    snapshot_interval_minutes: int
    log_level: str


def load_settings() -> Settings:
    load_dotenv()

    bot_token = os.getenv("BOT_TOKEN", "").strip()
    owner_raw = os.getenv("OWNER_TELEGRAM_ID", "0").strip()
    tz = os.getenv("TZ", "Europe/Helsinki").strip()
    db_raw = os.getenv("DB_PATH", "data/studydesk.db").strip()
    backup_raw = os.getenv("BACKUP_DIR", "data/backups").strip()
    export_raw = os.getenv("EXPORT_DIR", "data/exports").strip()
    mode = os.getenv("BACKUP_MODE", "filesystem").strip().lower()
    interval_raw = os.getenv("SNAPSHOT_INTERVAL_MINUTES", str(DEFAULT_SNAPSHOT_INTERVAL_MINUTES)).strip()
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    if not bot_token:
        raise RuntimeError("BOT_TOKEN missing in .env")
    try:
        owner_id = int(owner_raw)
    except ValueError:
        owner_id = 0
    if owner_id <= 0:
        raise RuntimeError("OWNER_TELEGRAM_ID missing/invalid in .env")
    if mode not in BACKUP_MODES:
        raise RuntimeError(f"BACKUP_MODE must be one of {', '.join(BACKUP_MODES)}")
    try:
        interval = int(interval_raw)
    except ValueError:
        interval = 0
    if interval <= 0:
        raise RuntimeError("SNAPSHOT_INTERVAL_MINUTES must be a positive integer")

    # paths stay relative here; main.py anchors them to the working directory
    return Settings(
        bot_token=bot_token,
        owner_telegram_id=owner_id,
        timezone=tz,
        db_path=Path(db_raw),
        backup_dir=Path(backup_raw),
        export_dir=Path(export_raw),
        backup_mode=mode,
        snapshot_interval_minutes=interval,
        log_level=log_level,
    )
