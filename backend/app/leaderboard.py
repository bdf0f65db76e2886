from pathlib import Path
from typing import Any

from backend.app.db import read_all_stats


def leaderboard_sort_key(row: dict[str, Any]) -> tuple:
    return (
        -int(row.get("level", 1)),
        -int(row.get("experience", 0)),
        -int(row.get("total_completed", 0)),
        str(row.get("user_id", "")),
    )


def rank_rows(rows: list[dict[str, Any]], limit: int = 100, min_completed: int = 0) -> list[dict[str, Any]]:
    board = [dict(r) for r in rows if int(r.get("total_completed", 0)) >= max(0, int(min_completed))]
    board.sort(key=leaderboard_sort_key)
    if limit > 0:
        board = board[:limit]
    for idx, row in enumerate(board, start=1):
        row["rank"] = idx
    return board


def build_leaderboard(
    db_path: Path,
    limit: int = 100,
    min_completed: int = 0,
) -> list[dict[str, Any]]:
    return rank_rows(read_all_stats(db_path), limit=limit, min_completed=min_completed)
