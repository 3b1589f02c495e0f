"""
Announcement rendering and delivery.

- **template_renderer.py**: Chooses a template (per-user override pool first,
  then the per-action default pool) and substitutes ``{user}``, ``{action}``,
  ``{emoji}``, ``{time}``, ``{channel}`` and ``{guild}``.
- **channel_resolver.py**: Finds a channel the bot may post in, falling back to
  common channel names and then to any permitted channel.
- **dispatcher.py**: Orchestrates render, resolve and send, returning an
  ``AnnouncementResult`` and delivering in the background with retries.
"""
