from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from pollguard.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_GUILD_CONFIGS_DIR = "configs"
DEFAULT_POLL_ICON_PATH = "assets/poll_delete.png"
DEFAULT_LOG_LEVEL = "DEBUG"


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes the
    few process-wide settings Pollguard needs: where the per-guild policy files
    live, which icon the audit log embeds carry and how chatty the console is.
    Per-guild policy is not stored here; see :mod:`pollguard.configuration.guild_config`.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)

                # Release the lock
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (which will be an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        Callers should not mutate it; use get(...) or the properties instead.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def guild_configs_dir(self) -> Path:
        """Directory holding one ``<guild_id>.yml`` policy file per guild."""
        value = self._data.get("guild_configs_dir") or DEFAULT_GUILD_CONFIGS_DIR
        return Path(str(value))

    @property
    def poll_icon_path(self) -> Path:
        """Image attached to every removal log as the embed author icon."""
        audit_log = self._data.get("audit_log", {})
        value = None
        if isinstance(audit_log, dict):
            value = audit_log.get("icon_path")
        return Path(str(value or DEFAULT_POLL_ICON_PATH))

    @property
    def log_level(self) -> str:
        """Console log level name, ``DEBUG`` unless configured otherwise."""
        logging_config = self._data.get("logging", {})
        if isinstance(logging_config, dict):
            value = logging_config.get("level")
            if value:
                return str(value).upper()
        return DEFAULT_LOG_LEVEL


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
