"""Sessions: lifecycle vocabulary. Session and SessionRegistry live in their own modules."""
from .models import (
    ControlStatus,
    IllegalTransition,
    SessionMode,
    SessionState,
    StartResult,
    StopResult,
)

__all__ = [
    "ControlStatus",
    "IllegalTransition",
    "SessionMode",
    "SessionState",
    "StartResult",
    "StopResult",
]
