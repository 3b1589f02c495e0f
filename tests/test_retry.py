"""Tests for retry_async."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import discord
import pytest

from mutecord.util.retry import retry_async


def http_error():
    return discord.HTTPException(SimpleNamespace(status=502, reason="Bad Gateway"), "upstream")


@pytest.mark.asyncio
async def test_returns_first_success():
    func = AsyncMock(return_value="ok")

    assert await retry_async(func, 1, key="v") == "ok"
    func.assert_awaited_once_with(1, key="v")


@pytest.mark.asyncio
async def test_retries_with_exponential_backoff():
    func = AsyncMock(side_effect=[http_error(), ConnectionError(), "ok"])

    with patch("mutecord.util.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
        result = await retry_async(func, max_attempts=3, base_delay=1.0)

    assert result == "ok"
    assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_delay_is_capped():
    func = AsyncMock(side_effect=[TimeoutError(), TimeoutError(), TimeoutError(), "ok"])

    with patch("mutecord.util.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
        await retry_async(func, max_attempts=4, base_delay=4.0, max_delay=5.0)

    assert [call.args[0] for call in sleep.await_args_list] == [4.0, 5.0, 5.0]


@pytest.mark.asyncio
async def test_raises_last_error_after_exhaustion():
    func = AsyncMock(side_effect=http_error())

    with patch("mutecord.util.retry.asyncio.sleep", new_callable=AsyncMock):
        with pytest.raises(discord.HTTPException):
            await retry_async(func, max_attempts=3)

    assert func.await_count == 3


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    func = AsyncMock(side_effect=KeyError("x"))

    with pytest.raises(KeyError):
        await retry_async(func, max_attempts=3)

    assert func.await_count == 1


@pytest.mark.asyncio
async def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        await retry_async(AsyncMock(), max_attempts=0)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        discord.Forbidden(SimpleNamespace(status=403, reason="Forbidden"), "Missing Permissions"),
        discord.NotFound(SimpleNamespace(status=404, reason="Not Found"), "Unknown Channel"),
    ],
)
async def test_permanent_http_errors_are_not_retried(error):
    func = AsyncMock(side_effect=error)

    with patch("mutecord.util.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
        with pytest.raises(type(error)):
            await retry_async(func, max_attempts=3)

    assert func.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_rate_limited_responses_are_retried():
    limited = discord.HTTPException(SimpleNamespace(status=429, reason="Too Many Requests"), "slow down")
    func = AsyncMock(side_effect=[limited, "ok"])

    with patch("mutecord.util.retry.asyncio.sleep", new_callable=AsyncMock):
        assert await retry_async(func, max_attempts=3) == "ok"

    assert func.await_count == 2
