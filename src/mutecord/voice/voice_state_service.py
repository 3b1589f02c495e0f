"""Entry point of the announcement pipeline for parsed voice state updates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import discord

from mutecord.announcement.dispatcher import AnnouncementDispatcher
from mutecord.configuration.bot_settings import AnnouncementSettings
from mutecord.datatypes.voice_datatypes import (
    AnnouncementResult,
    VoiceAction,
    VoiceStateChange,
    VoiceStateUpdate,
)
from mutecord.metrics.bot_metrics import BotMetrics
from mutecord.util.logger import get_logger
from mutecord.voice.presence_tracker import PresenceTracker
from mutecord.voice.spam_gate import SpamGate

logger = get_logger("voice_state_service")


@dataclass(frozen=True, slots=True)
class VoiceStateStats:
    total_changes: int
    mute_count: int
    unmute_count: int
    deafen_count: int
    undeafen_count: int


class VoiceStateService:
    """Classify, gate and announce voice state updates.

    Flow: tracker -> spam gate -> metrics -> dispatcher. Updates without a
    presence payload and updates from bots (unless bots are opted in) are
    dropped before the tracker sees them.
    """

    def __init__(
        self,
        tracker: PresenceTracker,
        spam_gate: SpamGate,
        dispatcher: AnnouncementDispatcher,
        metrics: BotMetrics,
        settings: AnnouncementSettings,
    ) -> None:
        self._tracker = tracker
        self._spam_gate = spam_gate
        self._dispatcher = dispatcher
        self._metrics = metrics
        self._settings = settings

    async def handle_update(
        self,
        update: Optional[VoiceStateUpdate],
        guild: discord.Guild,
    ) -> Optional[AnnouncementResult]:
        """Process one update; return the announcement result, or None if nothing was announced."""
        if update is None:
            logger.debug("Ignoring voice update without presence payload")
            return None
        if self._is_excluded(update):
            return None

        action = self._tracker.observe_update(update)
        if action is None:
            return None

        change = VoiceStateChange.from_update(update, action)
        if not self._spam_gate.admit(change.user_id):
            logger.debug(
                "State change filtered out for %s: %s (cooldown/rate limit)",
                change.username,
                action.name,
            )
            return None

        return await self.process_state_change(change, guild)

    def _is_excluded(self, update: VoiceStateUpdate) -> bool:
        if update.is_bot and not self._settings.include_bots:
            logger.debug("Ignoring bot update for %s", update.username)
            return True

        return False

    async def process_state_change(
        self,
        change: VoiceStateChange,
        guild: discord.Guild,
    ) -> Optional[AnnouncementResult]:
        logger.info("Processing %s for %s in %s", change.action.name, change.username, guild.name)
        self._metrics.increment_voice_state_changes(change.action)

        try:
            result = await self._dispatcher.dispatch(change, guild)
        except Exception as exc:
            logger.exception("Error processing announcement for %s: %s", change.username, exc)
            self._metrics.increment_errors()
            return None

        if result.is_success:
            logger.debug("Announcement for %s queued to #%s", change.username, result.channel_name)
        else:
            logger.debug("Announcement not sent for %s: %s", change.username, result.message)
        return result

    def get_stats(self) -> VoiceStateStats:
        return VoiceStateStats(
            total_changes=self._metrics.total_voice_state_changes,
            mute_count=self._metrics.voice_state_changes(VoiceAction.MUTED),
            unmute_count=self._metrics.voice_state_changes(VoiceAction.UNMUTED),
            deafen_count=self._metrics.voice_state_changes(VoiceAction.DEAFENED),
            undeafen_count=self._metrics.voice_state_changes(VoiceAction.UNDEAFENED),
        )
