"""
Shared pytest fixtures for goban tests.

Game state fixtures are function-scoped so each test works on its own
store and service.
"""

from pathlib import Path
import sys

import pytest


# =============================================================================
# PROMETHEUS REGISTRY FIX
# =============================================================================
# goban.metrics registers collectors at import time. If a test run imports
# it through two paths the default registry would reject the duplicates.


def _patch_prometheus_registry():
    """Make re-registration of identical metrics a no-op."""
    from prometheus_client.registry import CollectorRegistry

    _original_register = CollectorRegistry.register

    def _safe_register(self, collector):
        try:
            return _original_register(self, collector)
        except ValueError as e:
            if "Duplicated timeseries" not in str(e):
                raise

    if not getattr(CollectorRegistry, "_patched_for_tests", False):
        CollectorRegistry.register = _safe_register
        CollectorRegistry._patched_for_tests = True


_patch_prometheus_registry()

# Ensure the repository root is importable when pytest is run from tests/.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from goban.auth import HmacAuthorizer  # noqa: E402
from goban.config import ServiceSettings  # noqa: E402
from goban.db import InMemoryGameStore, SqliteGameStore  # noqa: E402
from goban.service import GameService  # noqa: E402


TEST_SECRET = "test-secret-key"


@pytest.fixture
def settings() -> ServiceSettings:
    """Deterministic settings: no mines, no drones."""
    return ServiceSettings(
        secret_key=TEST_SECRET,
        mine_density=0.0,
        drone_strike_chance=0.0,
    )


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Every store implementation."""
    if request.param == "memory":
        return InMemoryGameStore()
    return SqliteGameStore(tmp_path / "games.db")


@pytest.fixture
def service(store, settings) -> GameService:
    return GameService(store, HmacAuthorizer(settings.secret_key), settings)
