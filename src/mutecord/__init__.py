"""Mutecord: announces Discord voice mute and deafen changes in a text channel."""
