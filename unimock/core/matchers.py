"""Argument matchers used in behavior patterns and verification queries.

A matcher can replace any argument of a pattern when the exact value is
not known or does not matter:

    repository.save(instance_of(Order)).returns(True)
    repository.assert_invoked().find(regex(r"^order-\\d+$"))

Plain values in a pattern are wrapped in an ``Equals`` matcher. Patterns
made only of ``Equals`` matchers are exact patterns and take precedence
over patterns using any other matcher.
"""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Set
from dataclasses import fields, is_dataclass
from typing import Any

logger = logging.getLogger(__name__)


class _AnyArgs:
    """Sentinel standing for "whatever arguments" in a pattern."""

    def __repr__(self) -> str:
        return "ANY_ARGS"


ANY_ARGS = _AnyArgs()


class ArgumentMatcher(ABC):
    """Predicate deciding whether one call argument is acceptable."""

    @property
    def is_exact(self) -> bool:
        """True if the matcher only accepts values equal to a concrete one."""
        return False

    @abstractmethod
    def matches(self, value: Any, original: Any) -> bool:
        """Check an argument.

        Args:
            value: The argument as snapshotted at call time.
            original: The reference the caller actually passed.
        """

    @abstractmethod
    def describe(self) -> str:
        """Human-readable form used in failure messages."""

    def __repr__(self) -> str:
        return self.describe()


class Equals(ArgumentMatcher):
    def __init__(self, expected: Any):
        self.expected = expected

    @property
    def is_exact(self) -> bool:
        return True

    def matches(self, value: Any, original: Any) -> bool:
        if value is self.expected:
            return True
        try:
            return bool(value == self.expected)
        except Exception as e:  # a broken __eq__ on an argument is a mismatch
            logger.debug(f"Equality check against {self.expected!r} raised {e!r}")
            return False

    def describe(self) -> str:
        return repr(self.expected)


class Same(ArgumentMatcher):
    """Identity with the reference passed by the caller."""

    def __init__(self, expected: Any):
        self.expected = expected

    def matches(self, value: Any, original: Any) -> bool:
        return original is self.expected

    def describe(self) -> str:
        return f"same({self.expected!r})"


class Anything(ArgumentMatcher):
    def matches(self, value: Any, original: Any) -> bool:
        return True

    def describe(self) -> str:
        return "any_()"


class InstanceOf(ArgumentMatcher):
    """Type-only match."""

    def __init__(self, *types: type):
        if not types:
            raise ValueError("instance_of() needs at least one type")
        self.types = types

    def matches(self, value: Any, original: Any) -> bool:
        return isinstance(original, self.types)

    def describe(self) -> str:
        names = ", ".join(t.__qualname__ for t in self.types)
        return f"instance_of({names})"


class NotNone(ArgumentMatcher):
    def matches(self, value: Any, original: Any) -> bool:
        return original is not None

    def describe(self) -> str:
        return "not_none()"


class IsNone(ArgumentMatcher):
    def matches(self, value: Any, original: Any) -> bool:
        return original is None

    def describe(self) -> str:
        return "is_none()"


class Predicate(ArgumentMatcher):
    """Arbitrary user predicate over the snapshotted value."""

    def __init__(self, function: Callable[[Any], bool], description: str | None = None):
        if not callable(function):
            raise TypeError(f"predicate() needs a callable, got {function!r}")
        self.function = function
        self.description = description or getattr(function, "__name__", repr(function))

    def matches(self, value: Any, original: Any) -> bool:
        try:
            return bool(self.function(value))
        except Exception as e:
            logger.debug(f"Predicate {self.description} raised {e!r} for {value!r}")
            return False

    def describe(self) -> str:
        return f"predicate({self.description})"


class Contains(ArgumentMatcher):
    def __init__(self, item: Any):
        self.item = item

    def matches(self, value: Any, original: Any) -> bool:
        try:
            return self.item in value
        except Exception as e:
            logger.debug(f"Membership check for {self.item!r} raised {e!r}")
            return False

    def describe(self) -> str:
        return f"contains({self.item!r})"


class Regex(ArgumentMatcher):
    """String argument containing a match of a regular expression."""

    def __init__(self, pattern: str | re.Pattern[str], flags: int = 0):
        self.pattern = re.compile(pattern, flags) if isinstance(pattern, str) else pattern

    def matches(self, value: Any, original: Any) -> bool:
        return isinstance(value, str) and self.pattern.search(value) is not None

    def describe(self) -> str:
        return f"regex({self.pattern.pattern!r})"


class ReflectionEquals(ArgumentMatcher):
    """Field-by-field comparison, recursing into nested objects.

    Lenient mode ignores the order of collection elements and any field
    left at None, zero, False or empty in the expected object.
    """

    def __init__(self, expected: Any, lenient: bool = False):
        self.expected = expected
        self.lenient = lenient

    def matches(self, value: Any, original: Any) -> bool:
        return reflection_equals(self.expected, value, self.lenient, set())

    def describe(self) -> str:
        name = "len_eq" if self.lenient else "ref_eq"
        return f"{name}({self.expected!r})"


class Elements(ArgumentMatcher):
    """Element-wise matcher for variadic positional arguments."""

    def __init__(self, items: tuple[ArgumentMatcher, ...]):
        self.items = items

    @property
    def is_exact(self) -> bool:
        return all(item.is_exact for item in self.items)

    def matches(self, value: Any, original: Any) -> bool:
        if not isinstance(value, tuple) or not isinstance(original, tuple):
            return False
        if len(value) != len(self.items) or len(original) != len(self.items):
            return False
        return all(
            matcher.matches(item, ref)
            for matcher, item, ref in zip(self.items, value, original)
        )

    def describe(self) -> str:
        return ", ".join(item.describe() for item in self.items)


class Keywords(ArgumentMatcher):
    """Key-wise matcher for variadic keyword arguments."""

    def __init__(self, items: Mapping[str, ArgumentMatcher]):
        self.items = dict(items)

    @property
    def is_exact(self) -> bool:
        return all(item.is_exact for item in self.items.values())

    def matches(self, value: Any, original: Any) -> bool:
        if not isinstance(value, Mapping) or not isinstance(original, Mapping):
            return False
        if set(value) != set(self.items):
            return False
        return all(
            matcher.matches(value[key], original[key])
            for key, matcher in self.items.items()
        )

    def describe(self) -> str:
        return ", ".join(f"{key}={item.describe()}" for key, item in self.items.items())


def as_matcher(value: Any) -> ArgumentMatcher:
    if isinstance(value, ArgumentMatcher):
        return value
    return Equals(value)


# ============================================================================
# Reflection equality
# ============================================================================


def _is_default(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (int, float, complex)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def _object_fields(obj: Any) -> dict[str, Any] | None:
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in fields(obj)}
    try:
        return dict(vars(obj))
    except TypeError:
        return None


def reflection_equals(expected: Any, actual: Any, lenient: bool, seen: set[tuple[int, int]]) -> bool:
    """Compare two objects field by field.

    ``seen`` holds the (expected, actual) identity pairs currently being
    compared, so cyclic object graphs terminate.
    """
    if expected is actual:
        return True
    if lenient and _is_default(expected):
        return True
    if isinstance(expected, ArgumentMatcher):
        return expected.matches(actual, actual)

    key = (id(expected), id(actual))
    if key in seen:
        return True
    seen.add(key)
    try:
        return _compare(expected, actual, lenient, seen)
    finally:
        seen.discard(key)


def _compare(expected: Any, actual: Any, lenient: bool, seen: set[tuple[int, int]]) -> bool:
    if isinstance(expected, Mapping):
        if not isinstance(actual, Mapping):
            return False
        if not lenient and set(expected) != set(actual):
            return False
        return all(
            key in actual and reflection_equals(item, actual[key], lenient, seen)
            for key, item in expected.items()
        )

    if isinstance(expected, (list, tuple, Set)):
        if not isinstance(actual, (list, tuple, Set)) or len(expected) != len(actual):
            return False
        if lenient or isinstance(expected, Set):
            return _match_unordered(list(expected), list(actual), lenient, seen)
        return all(
            reflection_equals(item, other, lenient, seen)
            for item, other in zip(expected, actual)
        )

    if isinstance(expected, (str, bytes, int, float, complex)):
        return bool(expected == actual)

    expected_fields = _object_fields(expected)
    if expected_fields is None or not isinstance(actual, type(expected)):
        try:
            return bool(expected == actual)
        except Exception:
            return False

    actual_fields = _object_fields(actual) or {}
    return all(
        name in actual_fields
        and reflection_equals(item, actual_fields[name], lenient, seen)
        for name, item in expected_fields.items()
    )


def _match_unordered(
    expected: list[Any], actual: list[Any], lenient: bool, seen: set[tuple[int, int]]
) -> bool:
    remaining = list(actual)
    for item in expected:
        for index, other in enumerate(remaining):
            if reflection_equals(item, other, lenient, seen):
                del remaining[index]
                break
        else:
            return False
    return True


# ============================================================================
# Factory functions
# ============================================================================


def any_(*types: type) -> ArgumentMatcher:
    """Wildcard; with types given, a type-only match."""
    if types:
        return InstanceOf(*types)
    return Anything()


def instance_of(*types: type) -> ArgumentMatcher:
    return InstanceOf(*types)


def not_none() -> ArgumentMatcher:
    return NotNone()


def is_none() -> ArgumentMatcher:
    return IsNone()


def same(expected: Any) -> ArgumentMatcher:
    return Same(expected)


def eq(expected: Any) -> ArgumentMatcher:
    return Equals(expected)


def predicate(function: Callable[[Any], bool], description: str | None = None) -> ArgumentMatcher:
    return Predicate(function, description)


def contains(item: Any) -> ArgumentMatcher:
    return Contains(item)


def regex(pattern: str | re.Pattern[str], flags: int = 0) -> ArgumentMatcher:
    return Regex(pattern, flags)


def ref_eq(expected: Any) -> ArgumentMatcher:
    return ReflectionEquals(expected, lenient=False)


def len_eq(expected: Any) -> ArgumentMatcher:
    return ReflectionEquals(expected, lenient=True)


__all__ = [
    "ANY_ARGS",
    "Anything",
    "ArgumentMatcher",
    "Contains",
    "Elements",
    "Equals",
    "InstanceOf",
    "IsNone",
    "Keywords",
    "NotNone",
    "Predicate",
    "ReflectionEquals",
    "Regex",
    "Same",
    "any_",
    "as_matcher",
    "contains",
    "eq",
    "instance_of",
    "is_none",
    "len_eq",
    "not_none",
    "predicate",
    "ref_eq",
    "reflection_equals",
    "regex",
    "same",
]
