import hashlib
import sqlite3
from pathlib import Path
from typing import Any, Optional

STATS_FIELDS = ("experience", "level", "coins", "total_completed")


def ensure_db(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(path) as conn:
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS user_stats (
                user_id TEXT PRIMARY KEY,
                experience INTEGER NOT NULL DEFAULT 0,
                level INTEGER NOT NULL DEFAULT 1,
                coins INTEGER NOT NULL DEFAULT 0,
                total_completed INTEGER NOT NULL DEFAULT 0,
                client_version TEXT,
                api_key_hash TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_stats_rank ON user_stats(level, experience, total_completed);"
        )


def upsert_stats(
    db_path: Path,
    api_key: str,
    client_version: str,
    user_id: str,
    stats: dict[str, int],
) -> None:
    api_key_hash = hashlib.sha256(api_key.encode("utf-8")).hexdigest()
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            INSERT INTO user_stats (
                user_id, experience, level, coins, total_completed, client_version, api_key_hash
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                experience = excluded.experience,
                level = excluded.level,
                coins = excluded.coins,
                total_completed = excluded.total_completed,
                client_version = excluded.client_version,
                api_key_hash = excluded.api_key_hash,
                updated_at = CURRENT_TIMESTAMP
            """,
            (
                user_id,
                int(stats["experience"]),
                int(stats["level"]),
                int(stats["coins"]),
                int(stats["total_completed"]),
                client_version,
                api_key_hash,
            ),
        )
        conn.commit()


def read_stats(db_path: Path, user_id: str) -> Optional[dict[str, Any]]:
    if not db_path.exists():
        return None
    with sqlite3.connect(f"file:{db_path}?mode=ro", uri=True) as conn:
        row = conn.execute(
            "SELECT experience, level, coins, total_completed FROM user_stats WHERE user_id = ?",
            (user_id,),
        ).fetchone()
    if row is None:
        return None
    return dict(zip(STATS_FIELDS, (int(v) for v in row)))


def read_all_stats(db_path: Path) -> list[dict[str, Any]]:
    if not db_path.exists():
        return []
    with sqlite3.connect(f"file:{db_path}?mode=ro", uri=True) as conn:
        rows = conn.execute(
            "SELECT user_id, experience, level, coins, total_completed FROM user_stats"
        ).fetchall()
    records: list[dict[str, Any]] = []
    for user_id, *values in rows:
        record = {"user_id": str(user_id)}
        record.update(zip(STATS_FIELDS, (int(v) for v in values)))
        records.append(record)
    return records
