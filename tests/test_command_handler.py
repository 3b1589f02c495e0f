"""Tests for the text command replies."""

import math
import random
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from mutecord.announcement.template_renderer import TemplateRenderer
from mutecord.bot.command_handler import HELP_MESSAGE, CommandHandler, format_latency
from mutecord.configuration.bot_settings import DEFAULT_TEMPLATES
from mutecord.datatypes.voice_datatypes import (
    AnnouncementFailure,
    AnnouncementSuccess,
    FailureReason,
    VoiceAction,
)
from mutecord.metrics.bot_metrics import BotMetrics
from mutecord.voice.voice_state_service import VoiceStateStats


@pytest.fixture
def parts():
    metrics = BotMetrics()
    renderer = TemplateRenderer(DEFAULT_TEMPLATES, {"1": ["hi"]}, rng=random.Random(0))
    voice_service = SimpleNamespace(get_stats=lambda: VoiceStateStats(4, 2, 1, 1, 0))
    dispatcher = SimpleNamespace(send_test_announcement=AsyncMock())
    handler = CommandHandler(metrics, renderer, voice_service, dispatcher)
    bot = SimpleNamespace(latency=0.0424, guilds=[object(), object()])
    message = SimpleNamespace(
        guild=SimpleNamespace(name="G"),
        author=SimpleNamespace(display_name="Ada"),
    )
    return SimpleNamespace(
        handler=handler, metrics=metrics, dispatcher=dispatcher, bot=bot, message=message, voice=voice_service
    )


@pytest.mark.asyncio
async def test_unknown_command_has_no_reply(parts):
    assert await parts.handler.process("!dance", parts.message, parts.bot) is None


@pytest.mark.asyncio
async def test_commands_are_case_insensitive(parts):
    reply = await parts.handler.process("  !PING ", parts.message, parts.bot)

    assert reply == "🏓 Pong! Gateway ping: 42ms"


def test_format_latency_handles_nan():
    assert format_latency(math.nan) == "n/a"
    assert format_latency(0.1) == "100ms"


@pytest.mark.asyncio
async def test_help_lists_every_command(parts):
    reply = await parts.handler.process("!help", parts.message, parts.bot)

    assert reply == HELP_MESSAGE
    for name in parts.handler.command_names:
        assert f"`{name}`" in reply


@pytest.mark.asyncio
async def test_status_reports_guilds_and_templates(parts):
    reply = await parts.handler.process("!status", parts.message, parts.bot)

    assert "✅ **Bot Status: ONLINE**" in reply
    assert "🏰 Connected to 2 guilds" in reply
    assert "📝 12 message templates loaded" in reply
    assert "👥 1 users with custom messages" in reply


@pytest.mark.asyncio
async def test_stats_formats_success_rate(parts):
    for _ in range(3):
        parts.metrics.increment_successful_announcements()
    parts.metrics.increment_failed_announcements()

    reply = await parts.handler.process("!stats", parts.message, parts.bot)

    assert "📢 Announcements: 3 successful, 1 failed" in reply
    assert "📊 Success rate: 75.00%" in reply


@pytest.mark.asyncio
async def test_metrics_lists_each_action(parts):
    parts.metrics.increment_voice_state_changes(VoiceAction.DEAFENED)

    reply = await parts.handler.process("!metrics", parts.message, parts.bot)

    assert "🎭 Total Voice Changes: 1" in reply
    assert "  • deafened: 1" in reply
    assert "  • muted: 0" in reply
    assert "📈 Success Rate: 0.00%" in reply


@pytest.mark.asyncio
async def test_templates_lists_counts(parts):
    reply = await parts.handler.process("!templates", parts.message, parts.bot)

    assert "📊 Total Default Templates: 12" in reply
    assert "🏷️ Use Nicknames: true" in reply
    assert "• `{guild}` - Guild ID" in reply
    assert "  • undeafened: 3 templates" in reply


@pytest.mark.asyncio
async def test_voice_includes_distribution(parts):
    reply = await parts.handler.process("!voice", parts.message, parts.bot)

    assert "📊 Total Voice Changes: 4" in reply
    assert "🔇 Mutes: 2" in reply
    assert "Mutes: 50.0%" in reply
    assert "Undeafens: 0.0%" in reply


@pytest.mark.asyncio
async def test_voice_without_changes_has_no_distribution(parts):
    parts.voice.get_stats = lambda: VoiceStateStats(0, 0, 0, 0, 0)

    reply = await parts.handler.process("!voice", parts.message, parts.bot)

    assert "Action Distribution" not in reply


@pytest.mark.asyncio
async def test_test_command_success(parts):
    parts.dispatcher.send_test_announcement.return_value = AnnouncementSuccess(message="x", channel_name="general")

    reply = await parts.handler.process("!test", parts.message, parts.bot)

    assert reply == "Test announcement sent successfully to #general!"
    parts.dispatcher.send_test_announcement.assert_awaited_once_with(
        parts.message.guild, "Bot functionality check from Ada"
    )


@pytest.mark.asyncio
async def test_test_command_failure(parts):
    parts.dispatcher.send_test_announcement.return_value = AnnouncementFailure(
        FailureReason.NO_CHANNEL_AVAILABLE, "No channel available for test"
    )

    reply = await parts.handler.process("!test", parts.message, parts.bot)

    assert reply == "Failed to send test announcement: No available channels: No channel available for test"


@pytest.mark.asyncio
async def test_test_command_outside_guild(parts):
    parts.message.guild = None

    reply = await parts.handler.process("!test", parts.message, parts.bot)

    assert reply == "Test command only works in servers!"
    parts.dispatcher.send_test_announcement.assert_not_awaited()
