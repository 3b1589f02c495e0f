"""Per-user cooldown plus fixed-window rate cap for voice announcements.

Two gates must both pass before an action is admitted:

- **Cooldown**: the user's previous admission must be at least ``cooldown``
  seconds old. The timestamp is refreshed as part of the same admission.
- **Rate cap**: the user may be admitted at most ``max_per_window`` times
  between two window resets. Resets clear every user at once on a fixed
  schedule, so a burst straddling a reset can reach twice the cap.

Rejections are counted separately (``cooldown_blocks`` / ``rate_limits``).
The window reset and the stale cooldown sweep are driven from outside by
:class:`~mutecord.scheduler.periodic_task.PeriodicTask`.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict

from mutecord.configuration.bot_settings import SpamPreventionSettings
from mutecord.datatypes.discord_datatypes import UserID
from mutecord.metrics.bot_metrics import BotMetrics
from mutecord.util.logger import get_logger

logger = get_logger("spam_gate")


class SpamGate:
    def __init__(
        self,
        metrics: BotMetrics,
        *,
        cooldown: float = 3.0,
        max_per_window: int = 20,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_per_window < 1:
            raise ValueError("max_per_window must be at least 1")
        self._metrics = metrics
        self.cooldown = cooldown
        self.max_per_window = max_per_window
        self.enabled = enabled
        self._clock = clock

        self._cooldowns: Dict[UserID, float] = {}
        # Swapped wholesale on every window reset
        self._rate_counters: Dict[UserID, int] = {}
        self._locks: Dict[UserID, threading.Lock] = {}

    @classmethod
    def from_settings(
        cls,
        settings: SpamPreventionSettings,
        metrics: BotMetrics,
        clock: Callable[[], float] = time.monotonic,
    ) -> "SpamGate":
        return cls(
            metrics,
            cooldown=settings.cooldown,
            max_per_window=settings.max_announcements_per_minute,
            enabled=settings.enable_rate_limit,
            clock=clock,
        )

    def _lock_for(self, user_id: UserID) -> threading.Lock:
        return self._locks.setdefault(user_id, threading.Lock())

    # ------------------------------------------------------------------
    # Event path
    # ------------------------------------------------------------------
    def admit(self, user_id: UserID | int | str) -> bool:
        """Return True if an action by ``user_id`` may be announced now.

        Admission records the attempt in both gates. A disabled gate admits
        everything and records nothing.
        """
        if not self.enabled:
            return True

        user_id = UserID(user_id)
        with self._lock_for(user_id):
            now = self._clock()
            last_admitted = self._cooldowns.get(user_id)
            if last_admitted is not None and now - last_admitted < self.cooldown:
                self._metrics.increment_cooldown_blocks()
                logger.debug("User %s blocked by cooldown", user_id)
                return False

            counters = self._rate_counters
            count = counters.get(user_id, 0)
            if count >= self.max_per_window:
                self._metrics.increment_rate_limits()
                logger.warning("User %s is rate limited (%d in current window)", user_id, count)
                return False

            self._cooldowns[user_id] = now
            counters[user_id] = count + 1
            return True

    def is_on_cooldown(self, user_id: UserID | int | str) -> bool:
        if not self.enabled:
            return False
        last_admitted = self._cooldowns.get(UserID(user_id))
        return last_admitted is not None and self._clock() - last_admitted < self.cooldown

    # ------------------------------------------------------------------
    # Background sweeps
    # ------------------------------------------------------------------
    def reset_rate_counters(self) -> int:
        """Start a fresh window for every user; return how many users were cleared."""
        cleared = len(self._rate_counters)
        self._rate_counters = {}
        logger.debug("Reset rate counters for %d users", cleared)
        return cleared

    def cleanup_cooldowns(self) -> int:
        """Evict cooldown entries older than twice the cooldown; return how many went."""
        cutoff = self._clock() - 2 * self.cooldown
        removed = 0
        for user_id, last_admitted in list(self._cooldowns.items()):
            if last_admitted >= cutoff:
                continue
            with self._lock_for(user_id):
                # Re-check: an admission may have refreshed the entry meanwhile
                current = self._cooldowns.get(user_id)
                if current is not None and current < cutoff:
                    del self._cooldowns[user_id]
                    removed += 1
        if removed:
            logger.debug("Cleaned up %d old cooldown entries", removed)
        return removed

    def get_stats(self) -> Dict[str, Any]:
        return {
            "active_cooldowns": len(self._cooldowns),
            "active_rate_limits": len(self._rate_counters),
            "cooldown_duration": self.cooldown,
        }
