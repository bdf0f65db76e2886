from __future__ import annotations

import json
import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol
from urllib import error, parse, request

from quest.errors import InvalidArgument
from quest.runtime.models import ProgressionState
from quest.runtime.paths import pending_stats_path, sync_settings_path
from quest.runtime.sync_settings import load_sync_config
from quest.settings import DEFAULT_CONFIG, SyncConfig

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class StatsSync(Protocol):
    def upload_stats(self, user_id: str, state: ProgressionState) -> bool: ...

    def download_stats(self, user_id: str) -> Optional[ProgressionState]: ...


class StatsClient:
    """HTTP client for the stats backend.

    Uploads go through an on-disk queue keyed by user id, so only the latest
    snapshot per user is kept. Failed sends stay queued and are retried on the
    next flush; nothing here raises on network trouble.
    """

    def __init__(
        self,
        endpoint_url: str,
        api_key: str,
        client_version: str = DEFAULT_CONFIG.sync.client_version,
        queue_path: Optional[Path] = None,
        flush_interval_sec: float = DEFAULT_CONFIG.sync.flush_interval_sec,
        timeout_sec: float = DEFAULT_CONFIG.sync.timeout_sec,
    ) -> None:
        self.endpoint_url = endpoint_url.strip().rstrip("/")
        self.api_key = api_key.strip()
        self.client_version = client_version
        self.flush_interval_sec = max(0.0, flush_interval_sec)
        self.timeout_sec = max(0.5, timeout_sec)
        self.enabled = bool(self.endpoint_url and self.api_key)
        self.queue_path = Path(queue_path) if queue_path is not None else pending_stats_path()
        self.queue_path.parent.mkdir(parents=True, exist_ok=True)
        self.pending: dict[str, dict[str, Any]] = self._load_queue()
        self.last_flush_ts: float = 0.0
        self.last_error: str = ""
        self.last_success_ts: float = 0.0

    @classmethod
    def from_app_settings(cls, config: SyncConfig = DEFAULT_CONFIG.sync) -> "StatsClient":
        resolved = load_sync_config(
            sync_settings_path(),
            config,
            env_url=os.getenv("STUDYQUEST_SYNC_URL", ""),
            env_key=os.getenv("STUDYQUEST_API_KEY", ""),
        )
        return cls(
            resolved.endpoint_url,
            resolved.api_key,
            client_version=resolved.client_version,
            flush_interval_sec=resolved.flush_interval_sec,
            timeout_sec=resolved.timeout_sec,
        )

    @staticmethod
    def is_valid_endpoint(url: str) -> bool:
        parsed = parse.urlparse((url or "").strip())
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    def queue_size(self) -> int:
        return len(self.pending)

    def upload_stats(self, user_id: str, state: ProgressionState) -> bool:
        """Queue the user's stats and try to send everything pending.

        Returns True when the queue was drained.
        """
        user_id = (user_id or "").strip()
        if not user_id:
            raise InvalidArgument("user_id must be non-empty")
        self.pending[user_id] = {"stats": state.to_dict(), "queued_at": _utc_now_iso()}
        self._save_queue()
        self.flush(force=True)
        return not self.pending

    def flush(self, force: bool = False) -> None:
        if not self.enabled or not self.pending:
            return
        now = time.time()
        if not force and (now - self.last_flush_ts) < self.flush_interval_sec:
            return
        self.last_flush_ts = now
        for user_id in list(self.pending):
            body = {
                "api_key": self.api_key,
                "client_version": self.client_version,
                "sent_at": _utc_now_iso(),
                "user_id": user_id,
                "stats": self.pending[user_id]["stats"],
            }
            data = self._request("POST", f"{self.endpoint_url}/v1/stats", body)
            if data is None:
                logger.warning("stats upload for %s failed: %s", user_id, self.last_error)
                break
            del self.pending[user_id]
        self._save_queue()

    def download_stats(self, user_id: str) -> Optional[ProgressionState]:
        if not self.enabled:
            self.last_error = "disabled"
            return None
        quoted = parse.quote(user_id.strip(), safe="")
        data = self._request("GET", f"{self.endpoint_url}/v1/stats/{quoted}")
        if data is None or not isinstance(data.get("stats"), dict):
            return None
        try:
            return ProgressionState.from_dict(data["stats"])
        except InvalidArgument:
            self.last_error = "invalid_server_response"
            return None

    def check_connection(self) -> tuple[bool, str]:
        if not self.enabled:
            self.last_error = "disabled"
            return False, "sync disabled (no endpoint or api key)"
        if not self.is_valid_endpoint(self.endpoint_url):
            self.last_error = "invalid_url"
            return False, "invalid endpoint url"
        if self._request("GET", f"{self.endpoint_url}/health") is None:
            return False, "stats server unreachable"
        return True, "connected"

    def _request(self, method: str, url: str, body: Optional[dict[str, Any]] = None) -> Optional[dict[str, Any]]:
        payload = json.dumps(body, ensure_ascii=False).encode("utf-8") if body is not None else None
        headers = {"Content-Type": "application/json"} if payload is not None else {}
        req = request.Request(url, data=payload, headers=headers, method=method)
        try:
            with request.urlopen(req, timeout=self.timeout_sec) as resp:
                raw = resp.read().decode("utf-8") or "{}"
                data = json.loads(raw)
        except error.HTTPError as exc:
            self.last_error = f"http_{exc.code}"
            return None
        except (error.URLError, TimeoutError, OSError, json.JSONDecodeError):
            self.last_error = "connection_error"
            return None
        if not isinstance(data, dict) or data.get("ok") is not True:
            self.last_error = "invalid_server_response"
            return None
        self.last_error = ""
        self.last_success_ts = time.time()
        return data

    def _load_queue(self) -> dict[str, dict[str, Any]]:
        if not self.queue_path.exists():
            return {}
        try:
            payload = json.loads(self.queue_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return {}
        pending = payload.get("pending") if isinstance(payload, dict) else None
        if isinstance(pending, dict):
            return {str(k): v for k, v in pending.items() if isinstance(v, dict)}
        return {}

    def _save_queue(self) -> None:
        if not self.pending:
            try:
                self.queue_path.unlink(missing_ok=True)
            except OSError:
                pass
            return
        tmp = self.queue_path.with_suffix(".tmp")
        tmp.write_text(json.dumps({"pending": self.pending}, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.queue_path)
