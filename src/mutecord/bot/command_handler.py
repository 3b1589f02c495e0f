"""Text command responses for the ``!``-prefixed chat commands.

Handlers only build the reply text; sending it and counting the result is the
listener cog's job.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Optional

import discord

from mutecord.datatypes.voice_datatypes import VoiceAction
from mutecord.metrics.bot_metrics import BotMetrics
from mutecord.util.logger import get_logger

if TYPE_CHECKING:
    from mutecord.announcement.dispatcher import AnnouncementDispatcher
    from mutecord.announcement.template_renderer import TemplateRenderer
    from mutecord.voice.voice_state_service import VoiceStateService

logger = get_logger("command_handler")

COMMAND_PREFIX = "!"

HELP_MESSAGE = """🤖 **Mute/Deafen Bot Commands:**
• `!ping` - Health check with latency
• `!status` - Bot operational status
• `!stats` - Usage statistics
• `!metrics` - Detailed metrics snapshot
• `!templates` - Message template statistics
• `!voice` - Voice state change statistics
• `!test` - Send a test announcement
• `!help` - This help message

🎭 **Features:**
• Announces mute/unmute actions
• Announces deafen/undeafen actions
• Smart spam prevention with cooldowns
• Fun random messages with {user}, {time}, {channel}, {guild} variables
• Retry mechanism for reliable message delivery
"""

TEMPLATE_VARIABLES = """
**Available Template Variables:**
• `{user}` - User display name
• `{action}` - Voice action (muted/unmuted/etc.)
• `{emoji}` - Action emoji
• `{time}` - Current time (HH:mm:ss)
• `{channel}` - Voice channel name
• `{guild}` - Guild ID

**Template counts per action:**
"""


def format_latency(latency: float) -> str:
    """Render a gateway latency in seconds as whole milliseconds."""
    if not math.isfinite(latency):
        return "n/a"
    return f"{round(latency * 1000)}ms"


class CommandHandler:
    """Build replies for the text commands.

    Commands match case-insensitively on the whole trimmed message. Unknown
    commands produce no reply.
    """

    def __init__(
        self,
        metrics: BotMetrics,
        renderer: "TemplateRenderer",
        voice_service: "VoiceStateService",
        dispatcher: "AnnouncementDispatcher",
    ) -> None:
        self._metrics = metrics
        self._renderer = renderer
        self._voice_service = voice_service
        self._dispatcher = dispatcher
        self._handlers: Dict[str, Callable[[discord.Message, discord.Bot], Awaitable[str]]] = {
            "!ping": self._ping,
            "!help": self._help,
            "!status": self._status,
            "!stats": self._stats,
            "!metrics": self._detailed_metrics,
            "!templates": self._templates,
            "!voice": self._voice,
            "!test": self._test,
        }

    @property
    def command_names(self) -> list[str]:
        return list(self._handlers)

    async def process(self, command: str, message: discord.Message, bot: discord.Bot) -> Optional[str]:
        """Return the reply for ``command``, or None when it is not a known command."""
        handler = self._handlers.get(command.strip().lower())
        if handler is None:
            return None
        logger.debug("Processing command %s from %s", command, message.author)
        return await handler(message, bot)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    async def _ping(self, message: discord.Message, bot: discord.Bot) -> str:
        return f"🏓 Pong! Gateway ping: {format_latency(bot.latency)}"

    async def _help(self, message: discord.Message, bot: discord.Bot) -> str:
        return HELP_MESSAGE

    async def _status(self, message: discord.Message, bot: discord.Bot) -> str:
        stats = self._renderer.get_template_stats()
        return (
            "✅ **Bot Status: ONLINE**\n"
            f"🏰 Connected to {len(bot.guilds)} guilds\n"
            "📊 Monitoring voice state changes\n"
            f"📝 {stats['total_default_templates']} message templates loaded\n"
            f"👥 {stats['custom_user_count']} users with custom messages\n"
            "🎯 Ready to announce!\n"
        )

    async def _stats(self, message: discord.Message, bot: discord.Bot) -> str:
        snapshot = self._metrics.snapshot()
        return (
            "📈 **Bot Statistics:**\n"
            f"🎭 Voice changes: {snapshot.total_voice_state_changes}\n"
            f"📢 Announcements: {snapshot.successful_announcements} successful, "
            f"{snapshot.failed_announcements} failed\n"
            f"📊 Success rate: {snapshot.success_rate:.2f}%\n"
            f"🚫 Cooldown blocks: {snapshot.cooldown_blocks}\n"
            f"⚡ Rate limits: {snapshot.rate_limits}\n"
            f"💥 Errors: {snapshot.errors}\n"
            f"⌨️ Commands processed: {snapshot.commands_processed}\n"
        )

    async def _detailed_metrics(self, message: discord.Message, bot: discord.Bot) -> str:
        snapshot = self._metrics.snapshot()
        lines = [
            "📊 **Detailed Metrics:**",
            f"🎭 Total Voice Changes: {snapshot.total_voice_state_changes}",
            "**Voice Actions:**",
        ]
        lines += [f"  • {action}: {count}" for action, count in snapshot.voice_action_counts.items()]
        lines += [
            "",
            "**Announcement Performance:**",
            f"✅ Successful: {snapshot.successful_announcements}",
            f"❌ Failed: {snapshot.failed_announcements}",
            f"📈 Success Rate: {snapshot.success_rate:.2f}%",
            "",
            "**Rate Limiting:**",
            f"🚫 Cooldown Blocks: {snapshot.cooldown_blocks}",
            f"⚡ Rate Limits: {snapshot.rate_limits}",
            "",
            "**System:**",
            f"💥 Errors: {snapshot.errors}",
            f"⌨️ Commands: {snapshot.commands_processed}",
        ]
        return "\n".join(lines) + "\n"

    async def _templates(self, message: discord.Message, bot: discord.Bot) -> str:
        stats = self._renderer.get_template_stats()
        text = (
            "📝 **Message Template Statistics:**\n"
            f"📊 Total Default Templates: {stats['total_default_templates']}\n"
            f"👥 Users with Custom Messages: {stats['custom_user_count']}\n"
            f"🎭 Actions Configured: {stats['actions_configured']}\n"
            f"🏷️ Use Nicknames: {str(stats['use_nicknames']).lower()}\n"
            + TEMPLATE_VARIABLES
        )
        for action in VoiceAction:
            text += f"  • {action.label}: {len(self._renderer.templates_for_action(action))} templates\n"
        return text

    async def _voice(self, message: discord.Message, bot: discord.Bot) -> str:
        stats = self._voice_service.get_stats()
        lines = [
            "🎭 **Voice State Statistics:**",
            f"📊 Total Voice Changes: {stats.total_changes}",
            "",
            "**Action Breakdown:**",
            f"🔇 Mutes: {stats.mute_count}",
            f"🎤 Unmutes: {stats.unmute_count}",
            f"👂❌ Deafens: {stats.deafen_count}",
            f"👂 Undeafens: {stats.undeafen_count}",
        ]
        if stats.total_changes > 0:
            total = stats.total_changes
            lines += [
                "",
                "**Action Distribution:**",
                f"Mutes: {stats.mute_count * 100.0 / total:.1f}%",
                f"Unmutes: {stats.unmute_count * 100.0 / total:.1f}%",
                f"Deafens: {stats.deafen_count * 100.0 / total:.1f}%",
                f"Undeafens: {stats.undeafen_count * 100.0 / total:.1f}%",
            ]
        return "\n".join(lines) + "\n"

    async def _test(self, message: discord.Message, bot: discord.Bot) -> str:
        if message.guild is None:
            return "Test command only works in servers!"

        result = await self._dispatcher.send_test_announcement(
            message.guild,
            f"Bot functionality check from {message.author.display_name}",
        )
        if result.is_success:
            return f"Test announcement sent successfully to #{result.channel_name}!"
        return f"Failed to send test announcement: {result.message}"
