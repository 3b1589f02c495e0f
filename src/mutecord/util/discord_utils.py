"""
discord_utils.py
================

Stateless Discord helpers shared by the announcement pipeline and the cogs:
permission checks for announcement channels and author filtering.
"""

from typing import Union

import discord

from mutecord.util.logger import get_logger

logger = get_logger("discord_utils")


def bot_can_announce(channel: discord.TextChannel, guild: discord.Guild) -> bool:
    """
    Determine if the bot may post announcements in ``channel``.

    The bot needs to see the channel, send messages and embed links. A guild
    whose bot member is not cached yet has unknown permissions, so no channel
    qualifies until it is.

    Args:
        channel (discord.TextChannel): Channel to check.
        guild (discord.Guild): Guild used to resolve the bot's member object.

    Returns:
        bool: True if every required permission is granted.
    """
    me = getattr(guild, "me", None)
    if me is None:
        logger.debug(
            "Bot member not cached for guild %s; #%s is not permitted",
            getattr(guild, "name", "?"),
            getattr(channel, "name", "?"),
        )
        return False

    try:
        permissions = channel.permissions_for(me)
    except Exception as exc:
        logger.debug("Permission lookup failed for #%s: %s", getattr(channel, "name", "?"), exc)
        return False

    return bool(permissions.view_channel and permissions.send_messages and permissions.embed_links)


def is_ignored_author(author: Union[discord.User, discord.Member]) -> bool:
    """
    Check if a message author should be ignored by the text command listener.

    Args:
        author (discord.User | discord.Member): The author to check.

    Returns:
        bool: True for bot accounts.
    """
    return bool(getattr(author, "bot", False))
