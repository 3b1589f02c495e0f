"""
Pytest configuration and fixtures for Mutecord tests.
"""

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


BOT_MEMBER = SimpleNamespace(id=999, name="Mutecord")


def _permissions(*, view=True, send=True, embed=True):
    return SimpleNamespace(view_channel=view, send_messages=send, embed_links=embed)


@pytest.fixture
def make_channel():
    def _make(name, *, send=None, channel_id=0, permissions=None):
        granted = permissions or _permissions()
        return SimpleNamespace(
            name=name,
            id=channel_id,
            send=send,
            permissions_for=lambda member: granted,
        )

    return _make


@pytest.fixture
def make_guild():
    def _make(channels, *, name="Test Guild", guild_id=1, me=BOT_MEMBER):
        return SimpleNamespace(name=name, id=guild_id, text_channels=list(channels), me=me)

    return _make
