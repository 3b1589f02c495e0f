"""
Debug commands cog for the mute/deafen announcer.
"""

import discord
from discord.ext import commands

from mutecord.bot.command_handler import format_latency
from mutecord.runtime import AnnouncerRuntime
from mutecord.util.logger import get_logger

logger = get_logger("debug_commands")


class DebugCog(commands.Cog):
    """Cog for debug commands."""

    debug = discord.SlashCommandGroup("debug", "Debug commands for bot administration")

    def __init__(self, bot: discord.Bot, runtime: AnnouncerRuntime):
        self.bot = bot
        self.runtime = runtime

    @debug.command(name="test", description="Test command to verify the bot is responsive")
    async def test(self, application_context: discord.ApplicationContext) -> None:
        """Test command to verify the bot is responsive."""
        try:
            embed = discord.Embed(
                title="✅ Bot Test Successful",
                description="The bot is responsive and working correctly.",
                color=discord.Color.green(),
            )
            embed.add_field(name="Guild", value=application_context.guild.name, inline=False)
            embed.add_field(name="User", value=application_context.user.mention, inline=False)
            embed.add_field(name="Latency", value=format_latency(self.bot.latency), inline=False)
            await application_context.respond(embed=embed, ephemeral=True)
            logger.debug(f"Test command executed by {application_context.user} in {application_context.guild.name}")
        except Exception as e:
            logger.error(f"Error in test command: {e}")
            await application_context.respond(content=f"❌ Error: {e}", ephemeral=True)

    @debug.command(name="reset_metrics", description="Reset every announcement metric to zero")
    async def reset_metrics(self, application_context: discord.ApplicationContext) -> None:
        """Zero all counters and report the totals that were discarded."""
        try:
            before = self.runtime.metrics.snapshot()
            self.runtime.metrics.reset()
            embed = discord.Embed(
                title="✅ Metrics Reset",
                description="All bot metrics have been reset to zero.",
                color=discord.Color.green(),
            )
            embed.add_field(name="Voice Changes Cleared", value=str(before.total_voice_state_changes), inline=True)
            embed.add_field(
                name="Announcements Cleared",
                value=str(before.successful_announcements + before.failed_announcements),
                inline=True,
            )
            await application_context.respond(embed=embed, ephemeral=True)
            logger.info(f"Metrics reset by {application_context.user}")
        except Exception as e:
            logger.error(f"Error in reset_metrics command: {e}")
            await application_context.respond(content=f"❌ Error: {e}", ephemeral=True)


def setup(bot: discord.Bot, runtime: AnnouncerRuntime) -> None:
    """Register the debug cog and command group with the bot."""
    bot.add_cog(DebugCog(bot, runtime))
