"""Command listener Cog for Mutecord.

Answers the ``!``-prefixed text commands in the channel they were sent in.
"""

from __future__ import annotations

import discord
from discord.ext import commands

from mutecord.bot.command_handler import COMMAND_PREFIX
from mutecord.runtime import AnnouncerRuntime
from mutecord.util import discord_utils
from mutecord.util.logger import get_logger

logger = get_logger("command_listener_cog")

ERROR_REPLY = "An error occurred processing your command."


class CommandListenerCog(commands.Cog):
    """Cog responsible for the text command interface."""

    def __init__(self, discord_bot_instance: discord.Bot, runtime: AnnouncerRuntime) -> None:
        self.bot = discord_bot_instance
        self.runtime = runtime
        logger.info("[COMMAND LISTENER] Command listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message) -> None:
        if discord_utils.is_ignored_author(message.author):
            return

        content = (message.content or "").strip()
        if not content.startswith(COMMAND_PREFIX):
            return

        try:
            reply = await self.runtime.commands.process(content, message, self.bot)
        except Exception as exc:
            logger.exception("Error processing command '%s': %s", content, exc)
            self.runtime.metrics.increment_errors()
            try:
                await message.channel.send(ERROR_REPLY)
            except discord.HTTPException as send_exc:
                logger.error("Failed to send error reply: %s", send_exc)
            return

        if reply is None:
            return

        try:
            await message.channel.send(reply)
        except discord.HTTPException as exc:
            logger.error("Failed to send command response: %s", exc)
            self.runtime.metrics.increment_errors()
            return

        self.runtime.metrics.increment_commands_processed()


def setup(discord_bot_instance: discord.Bot, runtime: AnnouncerRuntime) -> None:
    """Register the CommandListenerCog with the bot."""
    discord_bot_instance.add_cog(CommandListenerCog(discord_bot_instance, runtime))
