"""Voice listener Cog for Mutecord.

Turns py-cord ``on_voice_state_update`` events into :class:`VoiceStateUpdate`
values and hands them to the voice state service.
"""

from __future__ import annotations

from typing import Optional

import discord
from discord.ext import commands

from mutecord.datatypes.discord_datatypes import GuildID, UserID
from mutecord.datatypes.voice_datatypes import VoiceStateUpdate
from mutecord.runtime import AnnouncerRuntime
from mutecord.util.logger import get_logger

logger = get_logger("voice_listener_cog")


def build_update(
    member: discord.Member,
    before: discord.VoiceState,
    after: discord.VoiceState,
) -> Optional[VoiceStateUpdate]:
    """Map a py-cord voice event onto a presence update.

    Returns None when the member is no longer in a voice channel, since there
    is no current presence to compare against.
    """
    if after is None or after.channel is None:
        return None

    return VoiceStateUpdate(
        guild_id=GuildID.from_guild(member.guild),
        user_id=UserID.from_user(member),
        display_name=member.display_name,
        username=member.name,
        is_bot=bool(member.bot),
        previous_muted=bool(before.self_mute) if before is not None else False,
        previous_deafened=bool(before.self_deaf) if before is not None else False,
        new_muted=bool(after.self_mute),
        new_deafened=bool(after.self_deaf),
        voice_channel_name=after.channel.name,
    )


class VoiceListenerCog(commands.Cog):
    """Cog forwarding voice state changes into the announcement pipeline."""

    def __init__(self, discord_bot_instance: discord.Bot, runtime: AnnouncerRuntime) -> None:
        self.bot = discord_bot_instance
        self.runtime = runtime
        logger.info("[VOICE LISTENER] Voice listener cog loaded")

    @commands.Cog.listener(name="on_voice_state_update")
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        try:
            update = build_update(member, before, after)
            await self.runtime.voice_service.handle_update(update, member.guild)
        except Exception as exc:
            logger.exception("Error handling voice state update: %s", exc)
            self.runtime.metrics.increment_errors()


def setup(discord_bot_instance: discord.Bot, runtime: AnnouncerRuntime) -> None:
    """Register the VoiceListenerCog with the bot."""
    discord_bot_instance.add_cog(VoiceListenerCog(discord_bot_instance, runtime))
