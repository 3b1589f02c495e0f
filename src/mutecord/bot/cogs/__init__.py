"""py-cord cogs that connect Discord events to the announcer runtime."""
