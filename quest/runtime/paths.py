import os
import sys
from pathlib import Path


APP_NAME = "StudyQuest"
HOME_ENV = "STUDYQUEST_HOME"


def _platform_root() -> Path:
    if sys.platform.startswith("win"):
        return Path(os.getenv("APPDATA") or Path.home() / "AppData" / "Roaming")
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    return Path(os.getenv("XDG_DATA_HOME") or Path.home() / ".local" / "share")


def app_data_dir() -> Path:
    """Per-user state directory; STUDYQUEST_HOME wins over the platform default."""
    override = os.getenv(HOME_ENV)
    candidate = Path(override).expanduser() if override else _platform_root() / APP_NAME
    try:
        candidate.mkdir(parents=True, exist_ok=True)
    except OSError:
        candidate = Path.cwd() / ".studyquest"
        candidate.mkdir(parents=True, exist_ok=True)
    return candidate


def app_data_path(*parts: str) -> Path:
    return app_data_dir().joinpath(*parts)


def sync_settings_path() -> Path:
    return app_data_path("sync_settings.json")


def pending_stats_path() -> Path:
    return app_data_path("pending_stats.json")
