"""Annotation-driven wiring of mocks and dummies into test objects.

Test classes declare what they need as annotated attributes:

    class TestCleanInsertLoader:
        delete_all: Mock[DeleteAllOperation]
        connection: Dummy[DatabaseConnection]

and inject_mocks() fills them in from a registry. Annotations are
collected across the whole class hierarchy, so base test classes can
declare shared collaborators.
"""

import logging
import typing
from typing import Any, Generic, Literal, TypeVar

from unimock.core.errors import ConfigurationError
from unimock.core.mock import Mock
from unimock.registry import MockRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

InjectionKind = Literal["mock", "dummy"]


class Dummy(Generic[T]):
    """Annotation marker requesting a dummy of ``T``.

    Never instantiated: the attribute receives an instance of ``T``.
    """

    def __init__(self) -> None:
        raise TypeError("Dummy[T] is an annotation marker; use registry.dummy(T)")


def _annotations(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except Exception as e:
        logger.debug(f"Unable to resolve annotations of {cls.__qualname__}: {e}")
    # Unresolvable names elsewhere in the hierarchy; fall back to the
    # annotations that are already objects.
    merged: dict[str, Any] = {}
    for owner in reversed(cls.__mro__):
        for name, annotation in getattr(owner, "__annotations__", {}).items():
            if not isinstance(annotation, str):
                merged[name] = annotation
    return merged


def injection_points(cls: type) -> dict[str, tuple[InjectionKind, type]]:
    """Attributes of a class annotated with ``Mock[T]`` or ``Dummy[T]``.

    Raises:
        ConfigurationError: If an annotation lacks its type argument.
    """
    points: dict[str, tuple[InjectionKind, type]] = {}
    for name, annotation in _annotations(cls).items():
        if annotation is Mock or annotation is Dummy:
            raise ConfigurationError(
                f"{cls.__qualname__}.{name} must name the substituted type, "
                f"e.g. {annotation.__name__}[SomeType]"
            )
        origin = typing.get_origin(annotation)
        if origin is Mock:
            points[name] = ("mock", typing.get_args(annotation)[0])
        elif origin is Dummy:
            points[name] = ("dummy", typing.get_args(annotation)[0])
    return points


def inject_mocks(target: Any, registry: MockRegistry) -> dict[str, Any]:
    """Create and assign the mocks and dummies a test object declares.

    Mocks are named after the attribute they are assigned to.

    Returns:
        Attribute name to injected handle or dummy.
    """
    injected: dict[str, Any] = {}
    for name, (kind, described) in injection_points(type(target)).items():
        if kind == "mock":
            value: Any = registry.mock(described, name=name)
        else:
            value = registry.dummy(described)
        setattr(target, name, value)
        injected[name] = value

    if injected:
        logger.debug(
            f"Injected {', '.join(injected)} into {type(target).__qualname__}"
        )
    return injected


__all__ = ["Dummy", "inject_mocks", "injection_points"]
