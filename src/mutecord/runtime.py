"""Wiring for one running announcer: every component built once from the config."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from mutecord.announcement.channel_resolver import ChannelResolver
from mutecord.announcement.dispatcher import AnnouncementDispatcher
from mutecord.announcement.template_renderer import TemplateRenderer
from mutecord.bot.command_handler import CommandHandler
from mutecord.configuration.app_configuration import AppConfig
from mutecord.metrics.bot_metrics import BotMetrics
from mutecord.scheduler.periodic_task import PeriodicTask
from mutecord.util.logger import get_logger
from mutecord.voice.presence_tracker import PresenceTracker
from mutecord.voice.spam_gate import SpamGate
from mutecord.voice.voice_state_service import VoiceStateService

logger = get_logger("runtime")


@dataclass
class AnnouncerRuntime:
    """Container handed to the cogs and the console."""

    config: AppConfig
    metrics: BotMetrics
    tracker: PresenceTracker
    spam_gate: SpamGate
    renderer: TemplateRenderer
    resolver: ChannelResolver
    dispatcher: AnnouncementDispatcher
    voice_service: VoiceStateService
    commands: CommandHandler
    sweeps: List[PeriodicTask] = field(default_factory=list)

    @property
    def started(self) -> bool:
        return any(sweep.is_running for sweep in self.sweeps)

    def start(self) -> None:
        """Start the maintenance sweeps on the running event loop. Safe to call on every reconnect."""
        for sweep in self.sweeps:
            if not sweep.is_running:
                sweep.start()

    async def shutdown(self) -> None:
        """Stop the sweeps, then wait for in-flight deliveries."""
        for sweep in self.sweeps:
            await sweep.shutdown()
        await self.dispatcher.wait_for_pending()
        logger.info("Announcer runtime shut down")


def build_runtime(
    config: AppConfig,
    *,
    rng: Optional[random.Random] = None,
    clock: Callable[[], float] = time.monotonic,
) -> AnnouncerRuntime:
    """Validate ``config`` and build the full announcement pipeline.

    Raises
    ------
    ConfigurationError
        If the configuration is unusable.
    """
    config.validate()

    announcements = config.announcements
    spam_settings = config.spam_prevention

    metrics = BotMetrics()
    tracker = PresenceTracker()
    spam_gate = SpamGate.from_settings(spam_settings, metrics, clock=clock)
    renderer = TemplateRenderer.from_settings(
        config.messages,
        use_nicknames=announcements.use_nicknames,
        rng=rng,
    )
    resolver = ChannelResolver(config.announcement_channel)
    dispatcher = AnnouncementDispatcher(renderer, resolver, metrics, announcements)
    voice_service = VoiceStateService(tracker, spam_gate, dispatcher, metrics, announcements)
    commands = CommandHandler(metrics, renderer, voice_service, dispatcher)

    sweeps = [
        PeriodicTask("rate-reset", spam_gate.reset_rate_counters, spam_settings.rate_window),
        PeriodicTask("cooldown-cleanup", spam_gate.cleanup_cooldowns, spam_settings.cooldown_cleanup_interval),
    ]

    logger.info(
        "Runtime built: channel=%s cooldown=%.1fs cap=%d/window",
        config.announcement_channel,
        spam_gate.cooldown,
        spam_gate.max_per_window,
    )
    return AnnouncerRuntime(
        config=config,
        metrics=metrics,
        tracker=tracker,
        spam_gate=spam_gate,
        renderer=renderer,
        resolver=resolver,
        dispatcher=dispatcher,
        voice_service=voice_service,
        commands=commands,
        sweeps=sweeps,
    )
