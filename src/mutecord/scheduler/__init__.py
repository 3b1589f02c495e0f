"""Background maintenance loops driven by the bot's event loop."""
