"""Discord-facing layer: text commands and the py-cord cogs."""
