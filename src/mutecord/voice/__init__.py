"""
Voice presence tracking and spam control.

- **presence_tracker.py**: Per-user cache of self-mute/self-deafen flags and the
  classification of each update into at most one ``VoiceAction``.
- **spam_gate.py**: Per-user cooldown and fixed-window rate cap.
- **voice_state_service.py**: Runs an update through tracker, gate, metrics and
  the announcement dispatcher.
"""
