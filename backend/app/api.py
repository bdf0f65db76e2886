import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException

from backend.app.config import Settings, load_settings
from backend.app.db import ensure_db, read_stats, upsert_stats
from backend.app.leaderboard import build_leaderboard
from quest.errors import InvalidArgument
from quest.runtime.models import ProgressionState

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("api_key", "user_id", "stats")
MAX_USER_ID_LEN = 64


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    ensure_db(settings.db_path)
    app = FastAPI(title="StudyQuest Stats API", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, bool]:
        return {"ok": True}

    @app.post("/v1/stats")
    def upload_stats(body: dict[str, Any]) -> dict[str, Any]:
        missing = [field for field in REQUIRED_FIELDS if field not in body]
        if missing:
            raise HTTPException(status_code=400, detail=f"missing_fields:{','.join(missing)}")

        api_key = str(body.get("api_key", ""))
        if not settings.api_key or api_key != settings.api_key:
            raise HTTPException(status_code=401, detail="invalid_api_key")

        user_id = str(body.get("user_id") or "").strip()
        if not user_id or len(user_id) > MAX_USER_ID_LEN:
            raise HTTPException(status_code=400, detail="invalid_user_id")
        if not isinstance(body["stats"], dict):
            raise HTTPException(status_code=400, detail="stats_must_be_object")
        try:
            state = ProgressionState.from_dict(body["stats"])
        except InvalidArgument as exc:
            raise HTTPException(status_code=400, detail=f"invalid_stats:{exc}") from exc

        upsert_stats(
            db_path=settings.db_path,
            api_key=api_key,
            client_version=str(body.get("client_version", "unknown")),
            user_id=user_id,
            stats=state.to_dict(),
        )
        logger.info("stats stored for %s: level=%d", user_id, state.level)
        return {"ok": True}

    # Reads are public like the leaderboard, which serves the same fields.
    # Only writes need the api key.
    @app.get("/v1/stats/{user_id}")
    def download_stats(user_id: str) -> dict[str, Any]:
        stats = read_stats(settings.db_path, user_id.strip())
        if stats is None:
            raise HTTPException(status_code=404, detail="user_not_found")
        return {"ok": True, "user_id": user_id, "stats": stats}

    @app.get("/v1/leaderboard")
    def leaderboard(limit: int = settings.leaderboard_limit, min_completed: int = 0) -> dict[str, Any]:
        safe_limit = max(1, min(500, int(limit)))
        safe_min_completed = max(0, int(min_completed))
        rows = build_leaderboard(settings.db_path, limit=safe_limit, min_completed=safe_min_completed)
        return {
            "ok": True,
            "rows": rows,
            "count": len(rows),
            "limit": safe_limit,
            "min_completed": safe_min_completed,
        }

    return app
