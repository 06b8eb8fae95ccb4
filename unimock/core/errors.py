"""Error taxonomy for the unimock framework.

Only ConfigurationError and AssertionFailure are visible to tests.
RecordingDegradation never leaves the invocation recorder: it is
raised by the snapshot logic and absorbed (and logged) by the recorder,
because a mock must not alter the control flow of the code under test.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import AssertionResult


class UnimockError(Exception):
    """Base class for errors raised by the framework itself."""


class ConfigurationError(UnimockError):
    """A mock, dummy or behavior could not be set up as requested.

    Raised immediately at declaration or configuration time, e.g. for a
    type that cannot be intercepted, a malformed behavior registration,
    or the use of a handle after its test has finished.
    """


class UnknownOperationError(ConfigurationError, AttributeError):
    """The described type exposes no operation with the requested name.

    Also an AttributeError so that hasattr() and getattr() defaults keep
    working on mock handles.
    """

    def __init__(self, type_name: str, operation_name: str):
        self.type_name = type_name
        self.operation_name = operation_name
        super().__init__(
            f"{type_name} has no operation named '{operation_name}'"
        )


class RecordingDegradation(UnimockError):
    """An argument could not be snapshotted and is recorded as opaque."""


class AssertionFailure(AssertionError):
    """A verification query did not hold.

    Carries the AssertionResult with the expected pattern and the
    rendered invocation history of the mock under verification.
    """

    def __init__(self, result: "AssertionResult"):
        self.result = result
        super().__init__(result.message)


__all__ = [
    "AssertionFailure",
    "ConfigurationError",
    "RecordingDegradation",
    "UnimockError",
    "UnknownOperationError",
]
