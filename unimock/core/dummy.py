"""Dummy factory and type-appropriate default values.

A dummy is an inert, fully-formed instance of a described type: its
operations answer with default values derived from their return
annotations and nothing is recorded. Dummies fill required arguments
and fields that are never asserted against.

Dummying recurses into the annotated fields of nested capability types
up to a bounded depth, beyond which a degenerate instance with no
populated fields is substituted, so cyclic type descriptions terminate.
"""

import collections.abc
import inspect
import logging
import types
import typing
from collections.abc import Mapping
from enum import Enum
from typing import Any, TypeVar

from .capabilities import CapabilitySet, describe, ensure_interceptable
from .errors import ConfigurationError
from .models import Operation
from .ports import InterceptionHook
from .proxy import ProxyFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ZERO_VALUES: dict[Any, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    str: "",
    bytes: b"",
}

_EMPTY_FACTORIES: dict[Any, Any] = {
    list: list,
    dict: dict,
    set: set,
    frozenset: frozenset,
    tuple: tuple,
    bytearray: bytearray,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
    collections.abc.Collection: tuple,
    collections.abc.Iterable: tuple,
    collections.abc.Iterator: lambda: iter(()),
    collections.abc.Generator: lambda: (item for item in ()),
    collections.abc.AsyncIterator: lambda: _empty_async_iterator(),
    collections.abc.AsyncIterable: lambda: _empty_async_iterator(),
    collections.abc.AsyncGenerator: lambda: _empty_async_iterator(),
}

_UNION_TYPES = (typing.Union, types.UnionType)

_MISSING = object()


async def _empty_async_iterator() -> collections.abc.AsyncIterator[Any]:
    return
    yield  # pragma: no cover


def _is_value_type(annotation: Any) -> bool:
    return annotation in _ZERO_VALUES or annotation in _EMPTY_FACTORIES


def populate_fields(
    instance: Any, fields: Mapping[str, Any], value_for: Any
) -> None:
    """Give annotated data fields without a class-level value a default.

    Args:
        instance: Object to populate.
        fields: Field name to annotation.
        value_for: Callable turning an annotation into a value.
    """
    for name, annotation in fields.items():
        class_value = inspect.getattr_static(type(instance), name, _MISSING)
        if class_value is not _MISSING and not isinstance(
            class_value, types.MemberDescriptorType
        ):
            continue
        try:
            object.__setattr__(instance, name, value_for(annotation))
        except (AttributeError, TypeError) as e:
            logger.debug(f"Field '{name}' of {type(instance).__qualname__} left unset: {e}")


class DefaultValues:
    """Type-appropriate default results for intercepted operations."""

    def __init__(self, factory: "DummyFactory"):
        self._factory = factory

    def for_annotation(self, annotation: Any, depth: int = 0) -> Any:
        """Default for a type annotation.

        - None-like for no annotation, optional and opaque types
        - zero, False or empty for value types
        - first member or value for enums and literals
        - a dummy for nested capability types
        """
        if annotation is inspect.Signature.empty or annotation is None:
            return None
        if annotation is type(None) or annotation is Any or isinstance(annotation, (str, TypeVar)):
            return None

        origin = typing.get_origin(annotation)
        if origin in _UNION_TYPES:
            arguments = typing.get_args(annotation)
            if type(None) in arguments:
                return None
            return self.for_annotation(arguments[0], depth)
        if origin is typing.Literal:
            return typing.get_args(annotation)[0]
        if origin is typing.Annotated:
            return self.for_annotation(typing.get_args(annotation)[0], depth)
        if origin is not None:
            annotation = origin

        if not isinstance(annotation, type):
            return None
        if annotation in _ZERO_VALUES:
            return _ZERO_VALUES[annotation]
        if annotation in _EMPTY_FACTORIES:
            return _EMPTY_FACTORIES[annotation]()
        if issubclass(annotation, Enum):
            return next(iter(annotation), None)
        if annotation.__module__ in ("builtins", "typing", "abc", "collections.abc"):
            return None

        try:
            return self._factory.create(annotation, depth)
        except ConfigurationError as e:
            logger.debug(f"No dummy default for {annotation.__qualname__}: {e}")
            return None

    def for_operation(self, operation: Operation, instance: Any) -> Any:
        """Default result of a call on a substitute.

        Iteration and context-manager protocols get values that keep the
        caller's control flow intact.
        """
        name = operation.name
        if name in ("__enter__", "__aenter__") and instance is not None:
            return instance
        if name == "__next__":
            raise StopIteration
        if name == "__anext__":
            raise StopAsyncIteration
        if name == "__len__":
            return 0
        if name == "__contains__":
            return False
        if name == "__iter__" and not _has_annotation(operation):
            return iter(())
        if name == "__aiter__" and not _has_annotation(operation):
            return _empty_async_iterator()
        return self.for_annotation(operation.return_annotation)


def _has_annotation(operation: Operation) -> bool:
    return operation.return_annotation is not inspect.Signature.empty


class _InertHook(InterceptionHook):
    """Answers every operation with its default, recording nothing."""

    def __init__(self, defaults: DefaultValues):
        self.defaults = defaults

    def intercept(
        self,
        operation: Operation,
        instance: Any,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
    ) -> Any:
        operation.bind(args, kwargs)
        return self.defaults.for_operation(operation, instance)

    async def intercept_async(
        self,
        operation: Operation,
        instance: Any,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
    ) -> Any:
        return self.intercept(operation, instance, args, kwargs)


class DummyFactory:
    """Builds inert placeholder instances of described types."""

    def __init__(self, max_depth: int = 3, proxies: ProxyFactory | None = None):
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.max_depth = max_depth
        self.defaults = DefaultValues(self)
        self._proxies = proxies or ProxyFactory()
        self._hook = _InertHook(self.defaults)
        self._classes: dict[type, tuple[type, CapabilitySet]] = {}

    def create(self, described: type[T], depth: int = 0) -> T:
        """Build a dummy of a described type.

        Args:
            described: Class to dummy.
            depth: Current expansion depth; at max_depth and beyond the
                dummy is degenerate (no fields populated).

        Raises:
            ConfigurationError: If the type cannot be substituted.
        """
        if isinstance(described, type) and (
            _is_value_type(described) or issubclass(described, Enum)
        ):
            value = self.defaults.for_annotation(described, depth)
            if value is None:
                raise ConfigurationError(f"Cannot dummy the empty enum {described!r}")
            return value

        ensure_interceptable(described)
        dummy_class, capabilities = self._dummy_class(described)
        instance = self._proxies.instantiate(dummy_class)
        if depth >= self.max_depth:
            logger.debug(
                f"Depth limit {self.max_depth} reached for {described.__qualname__}, "
                f"using a degenerate dummy"
            )
            return instance

        populate_fields(
            instance,
            capabilities.fields,
            lambda annotation: self.defaults.for_annotation(annotation, depth + 1),
        )
        return instance

    def _dummy_class(self, described: type) -> tuple[type, CapabilitySet]:
        cached = self._classes.get(described)
        if cached is None:
            capabilities = describe(described)
            dummy_class = self._proxies.build_class(capabilities, self._hook, "dummy")
            cached = (dummy_class, capabilities)
            self._classes[described] = cached
        return cached

    def default_result(self, operation: Operation, instance: Any) -> Any:
        return self.defaults.for_operation(operation, instance)


__all__ = ["DefaultValues", "DummyFactory", "populate_fields"]
