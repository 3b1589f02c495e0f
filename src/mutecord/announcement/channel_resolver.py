"""Find the text channel announcements go to, with a deterministic fallback chain."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

import discord

from mutecord.util import discord_utils
from mutecord.util.logger import get_logger

logger = get_logger("channel_resolver")

COMMON_CHANNEL_NAMES = frozenset({"general", "chat", "main", "lobby", "announcements"})

PermissionCheck = Callable[[discord.TextChannel, discord.Guild], bool]


class ChannelResolver:
    """Resolve an announcement channel for a guild.

    Resolution order, first match wins, always walking channels in the order
    the guild lists them:

    1. a permitted channel whose name equals the configured name (case-insensitive);
    2. a permitted channel with a common general-purpose name;
    3. any permitted channel;
    4. None.
    """

    def __init__(
        self,
        announcement_channel: str,
        can_announce: PermissionCheck = discord_utils.bot_can_announce,
    ) -> None:
        self.announcement_channel = announcement_channel
        self._can_announce = can_announce

    def resolve(
        self,
        guild: discord.Guild,
        channels: Sequence[discord.TextChannel],
        configured_name: str,
    ) -> Optional[discord.TextChannel]:
        wanted = configured_name.casefold()
        for channel in channels:
            if channel.name.casefold() == wanted and self._can_announce(channel, guild):
                return channel

        logger.warning("Announcement channel '%s' not found in guild '%s'", configured_name, getattr(guild, "name", guild))
        return self._fallback(guild, channels)

    def _fallback(
        self,
        guild: discord.Guild,
        channels: Sequence[discord.TextChannel],
    ) -> Optional[discord.TextChannel]:
        permitted = [channel for channel in channels if self._can_announce(channel, guild)]
        for channel in permitted:
            if channel.name.casefold() in COMMON_CHANNEL_NAMES:
                return channel
        return permitted[0] if permitted else None

    def find_announcement_channel(self, guild: discord.Guild) -> Optional[discord.TextChannel]:
        """Resolve against the guild's text channels and the configured name."""
        return self.resolve(guild, list(guild.text_channels), self.announcement_channel)

    def find_fallback_channel(self, guild: discord.Guild) -> Optional[discord.TextChannel]:
        logger.debug("Searching for fallback channel in guild '%s'", guild.name)
        return self._fallback(guild, list(guild.text_channels))

    def valid_channels(self, guild: discord.Guild) -> List[discord.TextChannel]:
        """Every text channel the bot may announce in, in guild order."""
        return [channel for channel in guild.text_channels if self._can_announce(channel, guild)]

    def validate_channel_access(self, guild: discord.Guild) -> bool:
        return self.find_announcement_channel(guild) is not None
