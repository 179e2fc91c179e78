from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from importlib.resources import files as resource_files
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .paths import ENV_BACKUP_DIR, AppPaths
from .record import PersistMode
from .utils.logging import ENV_LOG_LEVEL

logger = logging.getLogger(__name__)

ENV_PERSIST_MODE = "HORIZON_PERSIST_MODE"
ENV_REVISIONS = "HORIZON_REVISIONS"


@dataclass
class Settings:
    backup_dir: Path = field(default_factory=lambda: AppPaths().backup_dir)
    persist_mode: PersistMode = PersistMode.PRESERVE
    revisions_path: Optional[Path] = None
    log_level: str = "INFO"

    @staticmethod
    def _load_yaml(path: Path) -> dict:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def _deep_merge(cls, base: dict, overlay: dict) -> dict:
        merged = dict(base)
        for k, v in (overlay or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                merged[k] = cls._deep_merge(base[k], v)
            else:
                merged[k] = v
        return merged

    @staticmethod
    def _env_overrides() -> Dict[str, Any]:
        env = {}
        for key, var in (
            ("backup_dir", ENV_BACKUP_DIR),
            ("persist_mode", ENV_PERSIST_MODE),
            ("revisions_path", ENV_REVISIONS),
            ("log_level", ENV_LOG_LEVEL),
        ):
            value = os.getenv(var)
            if value:
                env[key] = value
        return env

    @classmethod
    def _from_dict(cls, data: dict) -> "Settings":
        backup_dir = data.get("backup_dir") or None
        revisions_path = data.get("revisions_path") or None
        try:
            mode = PersistMode(str(data.get("persist_mode") or PersistMode.PRESERVE.value).lower())
        except ValueError as e:
            raise ValueError(f"Unknown persist_mode: {data.get('persist_mode')!r}") from e
        settings = cls(
            persist_mode=mode,
            revisions_path=Path(revisions_path).expanduser() if revisions_path else None,
            log_level=str(data.get("log_level") or "INFO").upper(),
        )
        if backup_dir:
            settings.backup_dir = Path(backup_dir).expanduser()
        return settings

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "Settings":
        """Load settings from built-in defaults, an optional user file, then the environment.

        Without an explicit ``user_path`` the platform config directory's
        settings.yaml is used when it exists.
        """
        text = resource_files("horizonsave.data").joinpath("default_settings.yaml").read_text(encoding="utf-8")
        default_data = yaml.safe_load(text) or {}

        user_data = {}
        if user_path is None:
            candidate = AppPaths().settings_file
            if candidate.exists():
                user_path = candidate
        if user_path is not None:
            if user_path.exists():
                user_data = cls._load_yaml(user_path)
                logger.info("Loaded user settings from %s", user_path)
            else:
                logger.warning("User settings file not found: %s", user_path)

        merged = cls._deep_merge(cls._deep_merge(default_data, user_data), cls._env_overrides())
        settings = cls._from_dict(merged)
        logger.debug("Settings merged: %s", settings)
        return settings

    def save(self, path: Path) -> None:
        data = {
            "backup_dir": str(self.backup_dir),
            "persist_mode": self.persist_mode.value,
            "revisions_path": str(self.revisions_path) if self.revisions_path else "",
            "log_level": self.log_level,
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)
        logger.info("Saved settings to %s", path)
