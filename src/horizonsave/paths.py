from __future__ import annotations

import logging
import os
from pathlib import Path

from platformdirs import PlatformDirs

LOGGER = logging.getLogger("horizonsave.paths")
LOGGER.addHandler(logging.NullHandler())

APP_NAME = "HorizonSave"

# Environment variable overrides (useful for tests and power users)
ENV_CONFIG_DIR = "HORIZON_CONFIG_DIR"
ENV_BACKUP_DIR = "HORIZON_BACKUP_DIR"


class AppPaths:
    """Platform-appropriate directories for the tool.

    - config_dir: user settings (settings.yaml, revision table overrides)
    - backup_dir: destination root for save backups
    """

    def __init__(self, app_name: str = APP_NAME) -> None:
        self._dirs = PlatformDirs(appname=app_name, appauthor=False)
        self._config_dir = self._compute_dir(ENV_CONFIG_DIR, Path(self._dirs.user_config_dir))
        self._backup_dir = self._compute_dir(ENV_BACKUP_DIR, Path(self._dirs.user_data_dir) / "backups")

    @staticmethod
    def _compute_dir(env_var: str, default: Path) -> Path:
        override = os.getenv(env_var)
        if override:
            return Path(override).expanduser().resolve()
        return Path(default).expanduser().resolve()

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir

    @property
    def settings_file(self) -> Path:
        return self._config_dir / "settings.yaml"

    def ensure_dirs(self) -> None:
        for d in (self.config_dir, self.backup_dir):
            d.mkdir(parents=True, exist_ok=True)
            LOGGER.debug("Ensured directory %s", d)
