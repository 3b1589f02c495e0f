"""Event listener Cog for Mutecord.

Handles the bot lifecycle (on_ready) and slash command error reporting.
"""

from __future__ import annotations

import discord
from discord.ext import commands

from mutecord.runtime import AnnouncerRuntime
from mutecord.util.logger import get_logger

logger = get_logger("events_listener_cog")

PRESENCE_TEXT = "for mute/deafen changes"


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle and command error handlers."""

    def __init__(self, discord_bot_instance: discord.Bot, runtime: AnnouncerRuntime) -> None:
        """
        Initialize the events listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        runtime:
            Announcer components whose sweeps start once the bot is ready.
        """
        self.bot = discord_bot_instance
        self.runtime = runtime
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self) -> None:
        """
        Handle bot startup.

        This method:
        1. Logs the identity, guild count and template stats
        2. Sets the "listening" presence
        3. Starts the spam gate maintenance sweeps
        """
        if self.bot.user:
            await self._update_presence()
            logger.info("Bot connected as %s (ID: %s)", self.bot.user, self.bot.user.id)
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        logger.info("Connected to %d guilds", len(self.bot.guilds))
        logger.info("Template stats: %s", self.runtime.renderer.get_template_stats())
        logger.info("--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--")

        self.runtime.start()

    async def _update_presence(self) -> None:
        if not self.bot.user:
            return

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(
                type=discord.ActivityType.listening,
                name=PRESENCE_TEXT,
            ),
        )

    @commands.Cog.listener(name="on_application_command_error")
    async def on_application_command_error(
        self,
        application_context: discord.ApplicationContext,
        error: discord.DiscordException,
    ) -> None:
        logger.error("Slash command '%s' failed: %s", getattr(application_context.command, "name", "?"), error)
        self.runtime.metrics.increment_errors()
        try:
            await application_context.respond(content=f"❌ Error: {error}", ephemeral=True)
        except discord.HTTPException as exc:
            logger.error("Failed to report command error: %s", exc)


def setup(discord_bot_instance: discord.Bot, runtime: AnnouncerRuntime) -> None:
    """
    Register the EventsListenerCog with the bot.

    Parameters
    ----------
    discord_bot_instance:
        The Discord bot instance to add this cog to.
    runtime:
        Shared announcer runtime.
    """
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, runtime))
