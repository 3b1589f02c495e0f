"""Thread-safe counters for voice transitions, announcements and spam rejections."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Dict, Mapping

from mutecord.datatypes.voice_datatypes import VoiceAction
from mutecord.util.logger import get_logger

logger = get_logger("bot_metrics")

_TWO_PLACES = Decimal("0.01")


def compute_success_rate(successes: int, failures: int) -> Decimal:
    """Return ``successes / (successes + failures) * 100`` rounded half-up to two places.

    Zero attempts yield ``Decimal("0")``.
    """
    total = successes + failures
    if total == 0:
        return Decimal("0")
    return (Decimal(successes) * 100 / Decimal(total)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    """Read-only copy of every counter taken at one instant."""

    total_voice_state_changes: int
    voice_action_counts: Mapping[str, int]
    successful_announcements: int
    failed_announcements: int
    success_rate: Decimal
    cooldown_blocks: int
    rate_limits: int
    errors: int
    commands_processed: int


class BotMetrics:
    """Monotonic counters shared by the event listeners, the spam gate and the dispatcher.

    Every increment, :meth:`snapshot` and :meth:`reset` runs under one lock so a
    reader sees either the counters before a reset or the zeroed ones, never a
    mix.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._voice_actions: Dict[VoiceAction, int] = {action: 0 for action in VoiceAction}
        self._successful_announcements = 0
        self._failed_announcements = 0
        self._cooldown_blocks = 0
        self._rate_limits = 0
        self._errors = 0
        self._commands_processed = 0

    # ------------------------------------------------------------------
    # Increments
    # ------------------------------------------------------------------
    def increment_voice_state_changes(self, action: VoiceAction | None) -> None:
        if action is None:
            logger.warning("Attempted to count a voice state change without an action")
            return
        with self._lock:
            self._voice_actions[action] += 1

    def increment_successful_announcements(self) -> None:
        with self._lock:
            self._successful_announcements += 1

    def increment_failed_announcements(self) -> None:
        with self._lock:
            self._failed_announcements += 1

    def increment_cooldown_blocks(self) -> None:
        with self._lock:
            self._cooldown_blocks += 1

    def increment_rate_limits(self) -> None:
        with self._lock:
            self._rate_limits += 1

    def increment_errors(self) -> None:
        with self._lock:
            self._errors += 1

    def increment_commands_processed(self) -> None:
        with self._lock:
            self._commands_processed += 1

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def voice_state_changes(self, action: VoiceAction | None) -> int:
        if action is None:
            return 0
        with self._lock:
            return self._voice_actions[action]

    @property
    def total_voice_state_changes(self) -> int:
        with self._lock:
            return sum(self._voice_actions.values())

    @property
    def success_rate(self) -> Decimal:
        with self._lock:
            return compute_success_rate(self._successful_announcements, self._failed_announcements)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            counts = {action.label: count for action, count in self._voice_actions.items()}
            return MetricsSnapshot(
                total_voice_state_changes=sum(counts.values()),
                voice_action_counts=MappingProxyType(counts),
                successful_announcements=self._successful_announcements,
                failed_announcements=self._failed_announcements,
                success_rate=compute_success_rate(self._successful_announcements, self._failed_announcements),
                cooldown_blocks=self._cooldown_blocks,
                rate_limits=self._rate_limits,
                errors=self._errors,
                commands_processed=self._commands_processed,
            )

    def reset(self) -> None:
        """Zero every counter in one step."""
        logger.info("Resetting all bot metrics")
        with self._lock:
            for action in self._voice_actions:
                self._voice_actions[action] = 0
            self._successful_announcements = 0
            self._failed_announcements = 0
            self._cooldown_blocks = 0
            self._rate_limits = 0
            self._errors = 0
            self._commands_processed = 0
