"""StudyDesk: local-first task tracker with layered backups."""

__version__ = "1.0.0"
