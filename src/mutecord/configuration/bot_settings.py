"""Typed accessors for the announcement, spam prevention and message sections of the config."""

from __future__ import annotations

import re
from typing import Any, Dict, List

from mutecord.datatypes.voice_datatypes import VoiceAction


class ConfigurationError(ValueError):
    """Raised when the configuration cannot be used to start the bot."""


DEFAULT_TEMPLATES: Dict[VoiceAction, List[str]] = {
    VoiceAction.MUTED: [
        "🤫 **{user}** has gone silent!",
        "🎤❌ **{user}** dropped the mic!",
        "🔇 **{user}** is now in stealth mode!",
    ],
    VoiceAction.UNMUTED: [
        "🎤 **{user}** is back on the mic!",
        "🔊 **{user}** has returned to the conversation!",
        "💬 **{user}** is ready to speak again!",
    ],
    VoiceAction.DEAFENED: [
        "👂❌ **{user}** has entered their own world!",
        "🔇 **{user}** is now in the zone!",
        "🎧 **{user}** tuned out the world!",
    ],
    VoiceAction.UNDEAFENED: [
        "👂 **{user}** is back among the living!",
        "🔊 **{user}** rejoined reality!",
        "🎧❌ **{user}** plugged into the matrix!",
    ],
}

# YAML key holding the default pool for each action
TEMPLATE_KEYS: Dict[VoiceAction, str] = {
    VoiceAction.MUTED: "mute_templates",
    VoiceAction.UNMUTED: "unmute_templates",
    VoiceAction.DEAFENED: "deafen_templates",
    VoiceAction.UNDEAFENED: "undeafen_templates",
}

MIN_COOLDOWN_SECONDS = 0.1
MAX_COOLDOWN_SECONDS = 30.0

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m)?\s*$", re.IGNORECASE)
# Divisors keep "100ms" exactly equal to 0.1
_UNIT_DIVISORS = {"ms": 1000.0, "s": 1.0}


def parse_duration(value: Any) -> float:
    """Convert ``3``, ``2.5``, ``"500ms"``, ``"3s"`` or ``"1m"`` into seconds.

    Raises
    ------
    ConfigurationError
        If the value is not a number or a recognised duration string.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _DURATION_PATTERN.match(value)
        if match:
            unit = (match.group(2) or "s").lower()
            number = float(match.group(1))
            if unit == "m":
                return number * 60.0
            return number / _UNIT_DIVISORS[unit]
    raise ConfigurationError(f"Invalid duration: {value!r}")


def _section(data: Dict[str, Any] | None) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


class AnnouncementSettings:
    """Which actions are announced and how users are named."""

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = _section(data)

    @property
    def mute(self) -> bool:
        return bool(self.data.get("mute", True))

    @property
    def deafen(self) -> bool:
        return bool(self.data.get("deafen", True))

    @property
    def include_bots(self) -> bool:
        return bool(self.data.get("include_bots", False))

    @property
    def use_nicknames(self) -> bool:
        return bool(self.data.get("use_nicknames", True))

    def is_enabled(self, action: VoiceAction) -> bool:
        """Return whether the category ``action`` belongs to is announced."""
        return self.mute if action.is_mute_action else self.deafen


class SpamPreventionSettings:
    """Cooldown, per-window cap and sweep cadence for the spam gate."""

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = _section(data)

    @property
    def cooldown(self) -> float:
        """Minimum spacing between admitted actions of one user, in seconds."""
        return parse_duration(self.data.get("cooldown", 3.0))

    @property
    def max_announcements_per_minute(self) -> int:
        value = self.data.get("max_announcements_per_minute", 20)
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid max_announcements_per_minute: {value!r}") from exc

    @property
    def enable_rate_limit(self) -> bool:
        return bool(self.data.get("enable_rate_limit", True))

    @property
    def rate_window(self) -> float:
        """Period of the global rate counter reset, in seconds."""
        return parse_duration(self.data.get("rate_window", 60.0))

    @property
    def cooldown_cleanup_interval(self) -> float:
        """Period of the stale cooldown sweep, in seconds."""
        return parse_duration(self.data.get("cooldown_cleanup_interval", 300.0))

    def validate(self) -> None:
        cooldown = self.cooldown
        if not MIN_COOLDOWN_SECONDS <= cooldown <= MAX_COOLDOWN_SECONDS:
            raise ConfigurationError("Cooldown must be between 100ms and 30 seconds")
        if self.max_announcements_per_minute < 1:
            raise ConfigurationError("max_announcements_per_minute must be at least 1")
        if self.rate_window <= 0 or self.cooldown_cleanup_interval <= 0:
            raise ConfigurationError("Sweep intervals must be positive")


def _template_pool(value: Any, where: str) -> List[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(template, str) for template in value):
        raise ConfigurationError(f"{where} must be a list of strings")
    return list(value)


class MessageSettings:
    """Default template pools per action and per-user override pools."""

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = _section(data)

    def templates_for(self, action: VoiceAction) -> List[str]:
        """Return the configured pool for ``action``, or the built-in one when unset."""
        value = self.data.get(TEMPLATE_KEYS[action])
        if value is None:
            return list(DEFAULT_TEMPLATES[action])
        return _template_pool(value, f"messages.{TEMPLATE_KEYS[action]}")

    @property
    def action_templates(self) -> Dict[VoiceAction, List[str]]:
        return {action: self.templates_for(action) for action in VoiceAction}

    @property
    def custom_user_messages(self) -> Dict[str, List[str]]:
        """Map of user id (as text) to that user's override templates."""
        raw = self.data.get("custom_user_messages") or {}
        if not isinstance(raw, dict):
            raise ConfigurationError("messages.custom_user_messages must map user ids to template lists")
        return {
            str(user_id).strip(): _template_pool(templates or [], f"messages.custom_user_messages.{user_id}")
            for user_id, templates in raw.items()
        }

    def validate(self) -> None:
        for action in VoiceAction:
            if not self.templates_for(action):
                raise ConfigurationError(f"messages.{TEMPLATE_KEYS[action]} must not be empty")
        # Raises on a malformed override map
        self.custom_user_messages
