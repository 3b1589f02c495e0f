from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from mutecord.configuration.bot_settings import (
    AnnouncementSettings,
    ConfigurationError,
    MessageSettings,
    SpamPreventionSettings,
)
from mutecord.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    each section through a typed helper. Values stay fixed until
    :meth:`reload` is called.
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
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found; using defaults.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s must contain a mapping at top level.", self.config_path)
            return {}
        return data

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file, replace the cache, and return the loaded mapping.

        An empty dict is cached when the file is missing or malformed.
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the cached configuration mapping. Callers must not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def announcement_channel(self) -> str:
        """Preferred channel name for announcements (``general`` when unset)."""
        value = self._data.get("announcement_channel", "general")
        return str(value or "").strip()

    @property
    def announcements(self) -> AnnouncementSettings:
        return AnnouncementSettings(self._data.get("announcements"))

    @property
    def spam_prevention(self) -> SpamPreventionSettings:
        return SpamPreventionSettings(self._data.get("spam_prevention"))

    @property
    def messages(self) -> MessageSettings:
        return MessageSettings(self._data.get("messages"))

    def validate(self) -> None:
        """Check every value the bot depends on at startup.

        Raises
        ------
        ConfigurationError
            On a blank announcement channel, a cooldown outside 100ms-30s, a
            per-minute cap below one, an empty default template pool, or a
            template pool that is not a list of strings.
        """
        if not self.announcement_channel:
            raise ConfigurationError("announcement_channel must not be blank")
        self.spam_prevention.validate()
        self.messages.validate()
        logger.info("[APP CONFIGURATION] Configuration %s validated", self.config_path)


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
