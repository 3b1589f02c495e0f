"""Render, resolve and send voice announcements.

``dispatch`` returns as soon as the message is handed to a background delivery
task. Delivery retries transient Discord errors and only reports back through
metrics, so a returned :class:`AnnouncementSuccess` means "accepted for
delivery", not "delivered".
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, List, Set

import discord

from mutecord.announcement.channel_resolver import ChannelResolver
from mutecord.announcement.template_renderer import TemplateRenderer
from mutecord.configuration.bot_settings import AnnouncementSettings
from mutecord.datatypes.voice_datatypes import (
    AnnouncementFailure,
    AnnouncementResult,
    AnnouncementSuccess,
    FailureReason,
    VoiceStateChange,
)
from mutecord.metrics.bot_metrics import BotMetrics
from mutecord.util.logger import get_logger
from mutecord.util.retry import retry_async

logger = get_logger("announcement_dispatcher")

TEST_ANNOUNCEMENT_PREFIX = "**Test Announcement:** "


class AnnouncementDispatcher:
    def __init__(
        self,
        renderer: TemplateRenderer,
        resolver: ChannelResolver,
        metrics: BotMetrics,
        settings: AnnouncementSettings,
        *,
        send_attempts: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self._renderer = renderer
        self._resolver = resolver
        self._metrics = metrics
        self._settings = settings
        self._send_attempts = send_attempts
        self._retry_delay = retry_delay
        # Strong references so in-flight deliveries are not garbage collected
        self._pending: Set[asyncio.Task] = set()

    async def dispatch(self, change: VoiceStateChange, guild: discord.Guild) -> AnnouncementResult:
        """Announce ``change`` in ``guild``. Never raises for expected conditions."""
        if not self._settings.is_enabled(change.action):
            logger.debug("Action %s disabled in configuration", change.action.name)
            return AnnouncementFailure(FailureReason.ACTION_DISABLED)

        if change.is_bot and not self._settings.include_bots:
            logger.debug("Bot action ignored for user %s", change.user_id)
            return AnnouncementFailure(FailureReason.ACTOR_EXCLUDED)

        message = self._renderer.render(change)
        if message is None:
            logger.warning("No message template found for action: %s", change.action.name)
            self._metrics.increment_failed_announcements()
            return AnnouncementFailure(FailureReason.NO_TEMPLATE_AVAILABLE)

        channel = self._resolver.find_announcement_channel(guild)
        if channel is None:
            logger.error("No available channels in guild: %s", guild.name)
            self._metrics.increment_failed_announcements()
            return AnnouncementFailure(FailureReason.NO_CHANNEL_AVAILABLE)

        return self._send(channel, message)

    async def send_test_announcement(self, guild: discord.Guild, test_message: str) -> AnnouncementResult:
        """Send an operator-triggered message through the normal resolve and send path."""
        channel = self._resolver.find_announcement_channel(guild)
        if channel is None:
            logger.warning("No channel available for test message in guild: %s", guild.name)
            return AnnouncementFailure(FailureReason.NO_CHANNEL_AVAILABLE, "No channel available for test")

        return self._send(channel, TEST_ANNOUNCEMENT_PREFIX + test_message)

    def _send(self, channel: discord.TextChannel, message: str) -> AnnouncementResult:
        first_attempt: Awaitable[Any] | None = None
        try:
            # Start the first send here so a collaborator that raises synchronously fails this call
            first_attempt = channel.send(message)
            task = asyncio.create_task(self._deliver(channel, message, first_attempt))
        except Exception as exc:
            if asyncio.iscoroutine(first_attempt):
                first_attempt.close()
            logger.exception("Exception queuing message to #%s: %s", channel.name, exc)
            self._metrics.increment_failed_announcements()
            self._metrics.increment_errors()
            return AnnouncementFailure(FailureReason.SEND_FAILED, str(exc))

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return AnnouncementSuccess(message=message, channel_name=channel.name)

    async def _deliver(self, channel: discord.TextChannel, message: str, first_attempt: Awaitable[Any]) -> None:
        queued: List[Awaitable[Any]] = [first_attempt]

        async def attempt() -> Any:
            return await (queued.pop() if queued else channel.send(message))

        try:
            await retry_async(
                attempt,
                max_attempts=self._send_attempts,
                base_delay=self._retry_delay,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("Discord API error for #%s: %s", channel.name, exc)
            self._metrics.increment_failed_announcements()
            return

        logger.info("Message sent to #%s: %s", channel.name, message)
        self._metrics.increment_successful_announcements()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def wait_for_pending(self) -> None:
        """Wait until every in-flight delivery has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
