"""Pick a message template for a voice transition and fill in its placeholders."""

from __future__ import annotations

import random
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from mutecord.configuration.bot_settings import MessageSettings
from mutecord.datatypes.voice_datatypes import VoiceAction, VoiceStateChange
from mutecord.util.logger import get_logger

logger = get_logger("template_renderer")

TIME_FORMAT = "%H:%M:%S"
FALLBACK_CHANNEL_NAME = "voice-channel"

# Recognised placeholders; anything else in braces is left untouched
PLACEHOLDERS = ("{user}", "{action}", "{emoji}", "{time}", "{channel}", "{guild}")
_PLACEHOLDER_PATTERN = re.compile("|".join(re.escape(placeholder) for placeholder in PLACEHOLDERS))


class TemplateRenderer:
    """Render announcement text from the default pools or a user's override pool.

    A non-empty override list for the user wins over the per-action default
    pool regardless of the action. Selection is uniform over the candidate
    list; pass a seeded ``rng`` for reproducible picks.
    """

    def __init__(
        self,
        action_templates: Mapping[VoiceAction, Sequence[str]],
        custom_user_messages: Mapping[str, Sequence[str]] | None = None,
        *,
        use_nicknames: bool = True,
        rng: random.Random | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._action_templates: Dict[VoiceAction, List[str]] = {
            action: list(action_templates.get(action, ())) for action in VoiceAction
        }
        self._custom_user_messages: Dict[str, List[str]] = {
            str(user_id).strip(): list(templates) for user_id, templates in (custom_user_messages or {}).items()
        }
        self.use_nicknames = use_nicknames
        self._rng = rng or random.Random()
        self._now = now
        logger.info("Initialized message templates for %d voice actions", len(self._action_templates))

    @classmethod
    def from_settings(
        cls,
        messages: MessageSettings,
        *,
        use_nicknames: bool = True,
        rng: random.Random | None = None,
    ) -> "TemplateRenderer":
        return cls(
            messages.action_templates,
            messages.custom_user_messages,
            use_nicknames=use_nicknames,
            rng=rng,
        )

    def render(self, change: VoiceStateChange | None) -> Optional[str]:
        """Return the finished announcement, or None when no template is available."""
        if change is None:
            logger.warning("Cannot generate message for a missing state change")
            return None

        template = self._custom_template(str(change.user_id)) or self.random_template(change.action)
        if template is None:
            return None
        return self.format_template(template, change)

    def random_template(self, action: VoiceAction) -> Optional[str]:
        templates = self._action_templates.get(action)
        if not templates:
            logger.warning("No templates configured for action: %s", action.name)
            return None
        return self._rng.choice(templates)

    def _custom_template(self, user_id: str) -> Optional[str]:
        templates = self._custom_user_messages.get(user_id)
        if not templates:
            return None
        return self._rng.choice(templates)

    def format_template(self, template: str, change: VoiceStateChange) -> str:
        """Substitute the recognised placeholders literally and case-sensitively."""
        values = {
            "{user}": change.name_for(self.use_nicknames),
            "{action}": change.action.label,
            "{emoji}": change.action.emoji,
            "{time}": self._now().strftime(TIME_FORMAT),
            "{channel}": change.voice_channel_name or FALLBACK_CHANNEL_NAME,
            "{guild}": str(change.guild_id),
        }
        # Single pass, so substituted values are never scanned for placeholders again
        return _PLACEHOLDER_PATTERN.sub(lambda match: values[match.group(0)], template)

    def templates_for_action(self, action: VoiceAction) -> List[str]:
        return list(self._action_templates.get(action, ()))

    def get_template_stats(self) -> Dict[str, Any]:
        return {
            "total_default_templates": sum(len(templates) for templates in self._action_templates.values()),
            "custom_user_count": len(self._custom_user_messages),
            "actions_configured": len(self._action_templates),
            "use_nicknames": self.use_nicknames,
        }
