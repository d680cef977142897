"""Shared Goban: rule engine, action-log replay and HTTP service for
shared-board Go variants (classic, crazy, wilde, zen, bang)."""

__version__ = "1.0.0"
