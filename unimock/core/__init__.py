"""Core of the unimock mock-object framework.

This package contains zero external dependencies: interception,
recording, behavior resolution, verification and dummies. Test-runner
integration and configuration loading live outside of it.
"""

from .errors import (
    AssertionFailure,
    ConfigurationError,
    RecordingDegradation,
    UnimockError,
    UnknownOperationError,
)
from .mock import Mock
from .models import (
    ActionKind,
    AssertionResult,
    ConsumptionPolicy,
    Invocation,
    MatchTier,
    Operation,
    OperationKind,
)

__all__ = [
    "ActionKind",
    "AssertionFailure",
    "AssertionResult",
    "ConfigurationError",
    "ConsumptionPolicy",
    "Invocation",
    "MatchTier",
    "Mock",
    "Operation",
    "OperationKind",
    "RecordingDegradation",
    "UnimockError",
    "UnknownOperationError",
]
