"""Tests for AnnouncementDispatcher outcomes, metrics and background delivery."""

import random
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from mutecord.announcement.channel_resolver import ChannelResolver
from mutecord.announcement.dispatcher import TEST_ANNOUNCEMENT_PREFIX, AnnouncementDispatcher
from mutecord.announcement.template_renderer import TemplateRenderer
from mutecord.configuration.bot_settings import AnnouncementSettings
from mutecord.datatypes.discord_datatypes import GuildID, UserID
from mutecord.datatypes.voice_datatypes import FailureReason, VoiceAction, VoiceStateChange
from mutecord.metrics.bot_metrics import BotMetrics


def http_error(message="server error"):
    return discord.HTTPException(SimpleNamespace(status=500, reason="Internal Server Error"), message)


def make_change(action=VoiceAction.MUTED, *, is_bot=False):
    return VoiceStateChange(
        user_id=UserID(1),
        display_name="Ada",
        username="ada",
        guild_id=GuildID(1),
        action=action,
        is_bot=is_bot,
    )


@pytest.fixture
def metrics():
    return BotMetrics()


@pytest.fixture
def build(metrics):
    def _build(*, templates=None, settings=None, channel_name="general"):
        renderer = TemplateRenderer(
            templates or {action: ["{user} {action}"] for action in VoiceAction},
            rng=random.Random(0),
            now=lambda: datetime(2024, 1, 1),
        )
        return AnnouncementDispatcher(
            renderer,
            ChannelResolver(channel_name),
            metrics,
            settings or AnnouncementSettings(),
            retry_delay=0.0,
        )

    return _build


@pytest.mark.asyncio
async def test_successful_dispatch_is_counted_after_delivery(build, metrics, make_channel, make_guild):
    send = AsyncMock()
    guild = make_guild([make_channel("general", send=send)])
    dispatcher = build()

    result = await dispatcher.dispatch(make_change(), guild)

    assert result.is_success
    assert result.channel_name == "general"
    assert result.message == "Ada muted"
    await dispatcher.wait_for_pending()
    send.assert_awaited_once_with("Ada muted")
    assert metrics.snapshot().successful_announcements == 1
    assert dispatcher.pending_count == 0


@pytest.mark.asyncio
async def test_disabled_category_is_not_counted(build, metrics, make_channel, make_guild):
    send = AsyncMock()
    dispatcher = build(settings=AnnouncementSettings({"mute": False}))

    result = await dispatcher.dispatch(make_change(VoiceAction.UNMUTED), make_guild([make_channel("general", send=send)]))

    assert result.is_failure
    assert result.reason is FailureReason.ACTION_DISABLED
    send.assert_not_called()
    snapshot = metrics.snapshot()
    assert snapshot.failed_announcements == 0
    assert snapshot.successful_announcements == 0


@pytest.mark.asyncio
async def test_deafen_still_announced_when_mute_disabled(build, make_channel, make_guild):
    dispatcher = build(settings=AnnouncementSettings({"mute": False}))

    result = await dispatcher.dispatch(
        make_change(VoiceAction.DEAFENED),
        make_guild([make_channel("general", send=AsyncMock())]),
    )

    assert result.is_success
    await dispatcher.wait_for_pending()


@pytest.mark.asyncio
async def test_bot_actor_excluded(build, metrics, make_channel, make_guild):
    dispatcher = build()

    result = await dispatcher.dispatch(make_change(is_bot=True), make_guild([make_channel("general", send=AsyncMock())]))

    assert result.reason is FailureReason.ACTOR_EXCLUDED
    assert metrics.snapshot().failed_announcements == 0


@pytest.mark.asyncio
async def test_bot_actor_included_when_opted_in(build, make_channel, make_guild):
    dispatcher = build(settings=AnnouncementSettings({"include_bots": True}))

    result = await dispatcher.dispatch(make_change(is_bot=True), make_guild([make_channel("general", send=AsyncMock())]))

    assert result.is_success
    await dispatcher.wait_for_pending()


@pytest.mark.asyncio
async def test_missing_template_counts_failure(build, metrics, make_channel, make_guild):
    dispatcher = build(templates={VoiceAction.MUTED: []})

    result = await dispatcher.dispatch(make_change(), make_guild([make_channel("general", send=AsyncMock())]))

    assert result.reason is FailureReason.NO_TEMPLATE_AVAILABLE
    assert metrics.snapshot().failed_announcements == 1


@pytest.mark.asyncio
async def test_missing_channel_counts_failure(build, metrics, make_guild):
    dispatcher = build()

    result = await dispatcher.dispatch(make_change(), make_guild([]))

    assert result.reason is FailureReason.NO_CHANNEL_AVAILABLE
    assert metrics.snapshot().failed_announcements == 1


@pytest.mark.asyncio
async def test_synchronous_send_error_is_send_failed(build, metrics, make_channel, make_guild):
    send = MagicMock(side_effect=RuntimeError("socket closed"))
    dispatcher = build()

    result = await dispatcher.dispatch(make_change(), make_guild([make_channel("general", send=send)]))

    assert result.reason is FailureReason.SEND_FAILED
    assert result.message == "Send error: socket closed"
    snapshot = metrics.snapshot()
    assert snapshot.failed_announcements == 1
    assert snapshot.errors == 1
    assert dispatcher.pending_count == 0


@pytest.mark.asyncio
async def test_transient_error_is_retried(build, metrics, make_channel, make_guild):
    send = AsyncMock(side_effect=[http_error(), None])
    dispatcher = build()

    result = await dispatcher.dispatch(make_change(), make_guild([make_channel("general", send=send)]))
    await dispatcher.wait_for_pending()

    assert result.is_success
    assert send.await_count == 2
    snapshot = metrics.snapshot()
    assert snapshot.successful_announcements == 1
    assert snapshot.failed_announcements == 0


@pytest.mark.asyncio
async def test_exhausted_retries_count_one_failure(build, metrics, make_channel, make_guild):
    send = AsyncMock(side_effect=http_error())
    dispatcher = build()

    result = await dispatcher.dispatch(make_change(), make_guild([make_channel("general", send=send)]))
    await dispatcher.wait_for_pending()

    assert result.is_success
    assert send.await_count == 3
    snapshot = metrics.snapshot()
    assert snapshot.successful_announcements == 0
    assert snapshot.failed_announcements == 1
    assert snapshot.success_rate == 0


@pytest.mark.asyncio
async def test_non_retryable_error_fails_immediately(build, metrics, make_channel, make_guild):
    send = AsyncMock(side_effect=ValueError("bad payload"))
    dispatcher = build()

    await dispatcher.dispatch(make_change(), make_guild([make_channel("general", send=send)]))
    await dispatcher.wait_for_pending()

    assert send.await_count == 1
    assert metrics.snapshot().failed_announcements == 1


@pytest.mark.asyncio
async def test_forbidden_send_fails_without_retrying(build, metrics, make_channel, make_guild):
    forbidden = discord.Forbidden(SimpleNamespace(status=403, reason="Forbidden"), "Missing Permissions")
    send = AsyncMock(side_effect=forbidden)
    dispatcher = build()

    await dispatcher.dispatch(make_change(), make_guild([make_channel("general", send=send)]))
    await dispatcher.wait_for_pending()

    assert send.await_count == 1
    assert metrics.snapshot().failed_announcements == 1


@pytest.mark.asyncio
async def test_unpermitted_channels_are_never_sent_to(build, metrics, make_channel, make_guild):
    read_only = SimpleNamespace(view_channel=True, send_messages=False, embed_links=True)
    send = AsyncMock()
    dispatcher = build()

    result = await dispatcher.dispatch(make_change(), make_guild([make_channel("general", send=send, permissions=read_only)]))

    assert result.reason is FailureReason.NO_CHANNEL_AVAILABLE
    send.assert_not_called()
    assert metrics.snapshot().failed_announcements == 1


@pytest.mark.asyncio
async def test_test_announcement_is_prefixed(build, metrics, make_channel, make_guild):
    send = AsyncMock()
    dispatcher = build()

    result = await dispatcher.send_test_announcement(make_guild([make_channel("general", send=send)]), "hello")
    await dispatcher.wait_for_pending()

    assert result.is_success
    send.assert_awaited_once_with(TEST_ANNOUNCEMENT_PREFIX + "hello")
    assert result.message == "**Test Announcement:** hello"


@pytest.mark.asyncio
async def test_test_announcement_without_channel(build, metrics, make_guild):
    dispatcher = build()

    result = await dispatcher.send_test_announcement(make_guild([]), "hello")

    assert result.reason is FailureReason.NO_CHANNEL_AVAILABLE
    assert result.message == "No available channels: No channel available for test"
    assert metrics.snapshot().failed_announcements == 0
