from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path

from quest.settings import SyncConfig

logger = logging.getLogger(__name__)

PERSISTED_FIELDS = ("endpoint_url", "api_key")


def load_sync_config(
    settings_path: Path,
    base: SyncConfig,
    env_url: str = "",
    env_key: str = "",
) -> SyncConfig:
    """Layer the settings file and then the environment over `base`.

    A missing file is written out with the resolved values so the user has
    something to edit. A corrupt file is ignored, not overwritten.
    """
    overrides = {"endpoint_url": (env_url or "").strip(), "api_key": (env_key or "").strip()}

    if not settings_path.exists():
        resolved = replace(base, **{k: v for k, v in overrides.items() if v})
        save_sync_config(settings_path, resolved)
        return resolved

    try:
        stored = json.loads(settings_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("ignoring unreadable sync settings %s: %s", settings_path, exc)
        stored = {}
    if not isinstance(stored, dict):
        stored = {}

    values = {}
    for name in PERSISTED_FIELDS:
        from_file = str(stored.get(name, "") or "").strip()
        values[name] = overrides[name] or from_file or getattr(base, name)
    return replace(base, **values)


def save_sync_config(settings_path: Path, config: SyncConfig) -> None:
    payload = {name: str(getattr(config, name)).strip() for name in PERSISTED_FIELDS}
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    settings_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
