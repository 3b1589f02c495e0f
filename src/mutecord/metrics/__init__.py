"""
Operational counters for Mutecord.

- **bot_metrics.py**: ``BotMetrics`` accumulates per-action transition counts,
  announcement outcomes, spam gate rejections, errors and processed commands,
  and produces immutable ``MetricsSnapshot`` objects for reporting.
"""
