"""Prometheus metrics for the Goban service.

Counters and histograms are declared once here so that the service and the
routes can record telemetry without managing their own metric instances.
Labels are kept to the variant and action type to bound cardinality.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Gauge, Histogram


GAME_ACTIONS: Final[Counter] = Counter(
    "goban_actions_total",
    "Actions submitted, labeled by variant, action_type and outcome.",
    labelnames=("variant", "action_type", "outcome"),
)

ACTION_LATENCY: Final[Histogram] = Histogram(
    "goban_action_latency_seconds",
    "Time to validate, apply and commit one action, labeled by variant.",
    labelnames=("variant",),
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
)

REPLAY_LENGTH: Final[Histogram] = Histogram(
    "goban_replay_actions",
    "Number of log entries folded by a replay (undo or spectator).",
    labelnames=("purpose",),
    buckets=(0, 10, 50, 100, 200, 400, 800),
)

GAMES_CREATED: Final[Counter] = Counter(
    "goban_games_created_total",
    "Games created, labeled by variant.",
    labelnames=("variant",),
)

UNDOS: Final[Counter] = Counter(
    "goban_undos_total",
    "Successful undos, labeled by variant.",
    labelnames=("variant",),
)

EFFECTS_TRIGGERED: Final[Counter] = Counter(
    "goban_effects_total",
    "Mine explosions and drone strikes, labeled by effect.",
    labelnames=("effect",),
)

VERSION_CONFLICTS: Final[Counter] = Counter(
    "goban_version_conflicts_total",
    "Commits rejected because another writer committed first.",
)

GAMES_PURGED: Final[Gauge] = Gauge(
    "goban_games_purged_last_sweep",
    "Games deleted by the most recent retention sweep.",
)


def observe_action(variant: str, action_type: str, outcome: str, duration: float) -> None:
    """Record one action submission."""
    GAME_ACTIONS.labels(variant, action_type, outcome).inc()
    ACTION_LATENCY.labels(variant).observe(duration)
