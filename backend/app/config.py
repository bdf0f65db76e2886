import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    api_key: str
    db_path: Path
    leaderboard_limit: int = 100


def load_settings() -> Settings:
    root_dir = Path(__file__).resolve().parents[2]
    db_default = root_dir / "backend" / "data" / "stats.db"
    db_path = Path(os.getenv("STUDYQUEST_DB_PATH", str(db_default))).expanduser()
    api_key = os.getenv("STUDYQUEST_API_KEY", "").strip()
    limit = int(os.getenv("STUDYQUEST_LEADERBOARD_LIMIT", "100") or 100)
    return Settings(api_key=api_key, db_path=db_path, leaderboard_limit=max(1, limit))
