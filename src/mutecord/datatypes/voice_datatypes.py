"""
Voice action types and the value objects that flow through the announcement pipeline.

A raw :class:`VoiceStateUpdate` from the gateway is classified into at most one
:class:`VoiceAction`; an admitted action becomes a :class:`VoiceStateChange`,
and dispatching it yields an :class:`AnnouncementResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from mutecord.datatypes.discord_datatypes import GuildID, UserID


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VoiceAction(Enum):
    """Announceable voice state transitions.

    Each member carries a human description, its default emoji and whether it
    belongs to the mute category (the other category is deafen).
    """

    MUTED = ("User muted their microphone", "🔇", True)
    UNMUTED = ("User unmuted their microphone", "🎤", True)
    DEAFENED = ("User deafened themselves", "👂❌", False)
    UNDEAFENED = ("User undeafened themselves", "👂", False)

    def __init__(self, description: str, emoji: str, is_mute_action: bool) -> None:
        self.description = description
        self.emoji = emoji
        self.is_mute_action = is_mute_action

    @property
    def is_deafen_action(self) -> bool:
        return not self.is_mute_action

    @property
    def label(self) -> str:
        """Lowercase action name used in templates and metrics keys."""
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> Optional["VoiceAction"]:
        """Case-insensitive lookup by member name, None when unknown."""
        return cls.__members__.get(name.strip().upper())

    def __str__(self) -> str:
        return self.label


@dataclass(slots=True)
class UserPresence:
    """Last known self-mute/self-deafen flags for one user."""

    user_id: UserID
    muted: bool = False
    deafened: bool = False


@dataclass(frozen=True, slots=True)
class VoiceStateUpdate:
    """Parsed presence update delivered by the gateway adapter.

    Attributes:
        guild_id: Guild the voice state belongs to.
        user_id: Member whose state changed.
        display_name: Server nickname (falls back to the global name upstream).
        username: Canonical account name.
        is_bot: Whether the member is a bot account.
        previous_muted / previous_deafened: Flags reported before the change.
        new_muted / new_deafened: Flags reported after the change.
        voice_channel_name: Current voice channel, if any.
    """

    guild_id: GuildID
    user_id: UserID
    display_name: str
    username: str
    is_bot: bool
    previous_muted: bool
    previous_deafened: bool
    new_muted: bool
    new_deafened: bool
    voice_channel_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class VoiceStateChange:
    """A single classified transition for one user, consumed once by the pipeline."""

    user_id: UserID
    display_name: str
    username: str
    guild_id: GuildID
    action: VoiceAction
    voice_channel_name: Optional[str] = None
    is_bot: bool = False
    timestamp: datetime = field(default_factory=utc_now)

    @classmethod
    def from_update(cls, update: VoiceStateUpdate, action: VoiceAction) -> "VoiceStateChange":
        return cls(
            user_id=update.user_id,
            display_name=update.display_name,
            username=update.username,
            guild_id=update.guild_id,
            action=action,
            voice_channel_name=update.voice_channel_name,
            is_bot=update.is_bot,
        )

    def name_for(self, use_nicknames: bool) -> str:
        """Return the name to show for ``{user}``."""
        if use_nicknames and self.display_name:
            return self.display_name
        return self.username or self.display_name

    @property
    def is_mute_action(self) -> bool:
        return self.action.is_mute_action

    @property
    def is_deafen_action(self) -> bool:
        return self.action.is_deafen_action


class FailureReason(Enum):
    """Why an announcement was not made."""

    ACTION_DISABLED = "Action disabled in configuration"
    ACTOR_EXCLUDED = "Bot actions excluded"
    NO_TEMPLATE_AVAILABLE = "No message template available"
    NO_CHANNEL_AVAILABLE = "No available channels"
    SEND_FAILED = "Send error"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class AnnouncementSuccess:
    """The message was accepted for delivery to ``channel_name``."""

    message: str
    channel_name: str
    timestamp: datetime = field(default_factory=utc_now)

    is_success = True
    is_failure = False


@dataclass(frozen=True, slots=True)
class AnnouncementFailure:
    """No message was accepted; ``reason`` says which stage stopped it."""

    reason: FailureReason
    detail: str = ""
    timestamp: datetime = field(default_factory=utc_now)

    is_success = False
    is_failure = True

    @property
    def message(self) -> str:
        if self.detail:
            return f"{self.reason.value}: {self.detail}"
        return self.reason.value


AnnouncementResult = Union[AnnouncementSuccess, AnnouncementFailure]
