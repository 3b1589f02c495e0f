"""
Data types shared across Mutecord.

- **discord_datatypes.py**: Snowflake wrappers (``UserID``, ``GuildID``) that
  parse int or string spellings and compare equal to the plain int.
- **voice_datatypes.py**: ``VoiceAction`` and the value objects of the
  announcement pipeline (updates, classified changes, results).
"""
