"""Rule evaluation: captures, validation, variant policies and effects."""

from .captures import CaptureResult, resolve_captures, would_be_suicide
from .validator import validate_action
from .variants import build_config

__all__ = [
    "CaptureResult",
    "build_config",
    "resolve_captures",
    "validate_action",
    "would_be_suicide",
]
