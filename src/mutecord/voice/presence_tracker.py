"""Per-user cache of self-mute/self-deafen flags and transition classification."""

from __future__ import annotations

import threading
from typing import Dict, Optional, Tuple

from mutecord.datatypes.discord_datatypes import UserID
from mutecord.datatypes.voice_datatypes import UserPresence, VoiceAction, VoiceStateUpdate
from mutecord.util.logger import get_logger

logger = get_logger("presence_tracker")


class PresenceTracker:
    """Remember each user's last observed flags and turn updates into actions.

    The cache always holds the latest observed flags, whether or not an update
    produced an announceable action. Entries are never evicted; the map grows
    with the number of distinct users seen since startup.
    """

    def __init__(self) -> None:
        self._presence: Dict[UserID, UserPresence] = {}
        # Per-user locks: updates for different users never contend
        self._locks: Dict[UserID, threading.Lock] = {}

    def _lock_for(self, user_id: UserID) -> threading.Lock:
        # dict.setdefault is atomic, so two threads always end up with the same lock
        return self._locks.setdefault(user_id, threading.Lock())

    @staticmethod
    def classify(
        previous_muted: bool,
        previous_deafened: bool,
        new_muted: bool,
        new_deafened: bool,
    ) -> Optional[VoiceAction]:
        """Return the single action implied by a flag change, or None.

        Mute edges win over deafen edges when both flags flip at once.
        """
        if not previous_muted and new_muted:
            return VoiceAction.MUTED
        if previous_muted and not new_muted:
            return VoiceAction.UNMUTED
        if not previous_deafened and new_deafened:
            return VoiceAction.DEAFENED
        if previous_deafened and not new_deafened:
            return VoiceAction.UNDEAFENED
        return None

    def observe(
        self,
        user_id: UserID,
        new_muted: bool,
        new_deafened: bool,
        previous: Optional[Tuple[bool, bool]] = None,
    ) -> Optional[VoiceAction]:
        """Classify the new flags against the cached ones and store them.

        Parameters
        ----------
        user_id:
            User the flags belong to.
        new_muted, new_deafened:
            Flags reported by the update.
        previous:
            Flags the gateway reported before the change. Only used for a user
            with no cached entry yet; otherwise the cache is authoritative.
        """
        user_id = UserID(user_id)
        with self._lock_for(user_id):
            presence = self._presence.get(user_id)
            if presence is None:
                previous_muted, previous_deafened = previous or (False, False)
                presence = UserPresence(user_id=user_id)
                self._presence[user_id] = presence
            else:
                previous_muted, previous_deafened = presence.muted, presence.deafened

            action = self.classify(previous_muted, previous_deafened, new_muted, new_deafened)
            presence.muted = new_muted
            presence.deafened = new_deafened

        if action is not None:
            logger.debug("User %s transition: %s", user_id, action.name)
        return action

    def observe_update(self, update: VoiceStateUpdate) -> Optional[VoiceAction]:
        """Shorthand for :meth:`observe` driven by a gateway update."""
        return self.observe(
            update.user_id,
            update.new_muted,
            update.new_deafened,
            previous=(update.previous_muted, update.previous_deafened),
        )

    def get_presence(self, user_id: UserID | int | str) -> Optional[UserPresence]:
        """Return a copy of the cached flags for ``user_id``."""
        user_id = UserID(user_id)
        with self._lock_for(user_id):
            presence = self._presence.get(user_id)
            if presence is None:
                return None
            return UserPresence(user_id=presence.user_id, muted=presence.muted, deafened=presence.deafened)

    @property
    def tracked_user_count(self) -> int:
        return len(self._presence)
