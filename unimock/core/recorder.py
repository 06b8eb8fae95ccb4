"""Invocation recording for mocks.

Every intercepted call is appended to an ordered, per-mock log. The log
is the single source of truth for both behavior resolution (while the
call is happening) and verification (afterwards).
"""

import copy
import logging
from collections.abc import Callable, Mapping
from enum import Enum
from types import FunctionType, MethodType, ModuleType
from typing import Any

from .errors import RecordingDegradation
from .models import Invocation, Opaque, Operation

logger = logging.getLogger(__name__)

_IMMUTABLE_TYPES = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    range,
    type,
    Enum,
    FunctionType,
    MethodType,
    ModuleType,
)


def _compares_by_identity(value: Any) -> bool:
    return type(value).__eq__ is object.__eq__


def snapshot(value: Any, memo: dict[int, Any] | None = None) -> Any:
    """Capture the value of an argument as it is at call time.

    Immutable values and objects comparing by identity are captured by
    reference; copying them would only break identity-based equality.
    Builtin containers are copied recursively, other comparable objects
    are deep-copied. ``memo`` maps ids of already captured objects to their
    copies, so cycles terminate and shared references stay shared.

    Raises:
        RecordingDegradation: If the value cannot be copied.
    """
    if isinstance(value, _IMMUTABLE_TYPES) or _compares_by_identity(value):
        return value
    if memo is None:
        memo = {}
    if id(value) in memo:
        return memo[id(value)]
    try:
        if type(value) is list:
            items: list[Any] = []
            memo[id(value)] = items
            items.extend(snapshot(item, memo) for item in value)
            return items
        if type(value) is dict:
            entries: dict[Any, Any] = {}
            memo[id(value)] = entries
            entries.update((key, snapshot(item, memo)) for key, item in value.items())
            return entries
        if type(value) in (tuple, set, frozenset):
            copied = type(value)(snapshot(item, memo) for item in value)
            return memo.setdefault(id(value), copied)
        return copy.deepcopy(value, memo)
    except RecordingDegradation:
        raise
    except Exception as e:
        raise RecordingDegradation(
            f"Unable to snapshot argument of type {type(value).__qualname__}: {e}"
        ) from e


class InvocationRecorder:
    """Append-only log of the calls made on one mock."""

    def __init__(
        self,
        mock_name: str,
        next_sequence_id: Callable[[], int],
        snapshot_arguments: bool = True,
    ):
        self.mock_name = mock_name
        self._next_sequence_id = next_sequence_id
        self.snapshot_arguments = snapshot_arguments
        self._log: list[Invocation] = []

    @property
    def invocations(self) -> tuple[Invocation, ...]:
        return tuple(self._log)

    def __len__(self) -> int:
        return len(self._log)

    def record(
        self, operation: Operation, args: tuple[Any, ...], kwargs: Mapping[str, Any]
    ) -> Invocation:
        """Bind, snapshot and append one call.

        Raises:
            TypeError: If the arguments do not fit the operation signature.
        """
        originals = operation.bind(args, kwargs)
        memo: dict[int, Any] = {}
        arguments = {
            name: self._capture(operation, name, value, memo)
            for name, value in originals.items()
        }
        invocation = Invocation(
            sequence_id=self._next_sequence_id(),
            mock_name=self.mock_name,
            operation=operation,
            arguments=arguments,
            originals=originals,
        )
        self._log.append(invocation)
        logger.debug(f"Recorded {invocation.render()}")
        return invocation

    def _capture(
        self, operation: Operation, name: str, value: Any, memo: dict[int, Any]
    ) -> Any:
        if not self.snapshot_arguments:
            return value
        try:
            return snapshot(value, memo)
        except RecordingDegradation as e:
            logger.warning(
                f"Argument '{name}' of {self.mock_name}.{operation.name} recorded as "
                f"opaque, matching falls back to the original reference: {e}"
            )
            return Opaque(value)

    def clear(self) -> None:
        self._log.clear()


__all__ = ["InvocationRecorder", "snapshot"]
