"""Capability description of types that can be substituted.

A pure metadata query over a class: which operations it exposes
(inherited ones included) and which data fields it declares. No
instance of the described type is ever created here.
"""

import functools
import inspect
import logging
import typing
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from .errors import ConfigurationError, UnknownOperationError
from .models import Binding, Operation, OperationKind

logger = logging.getLogger(__name__)

# Dunder operations that are part of a type's observable protocol.
INTERCEPTED_DUNDERS = frozenset(
    {
        "__call__",
        "__len__",
        "__iter__",
        "__next__",
        "__contains__",
        "__getitem__",
        "__setitem__",
        "__delitem__",
        "__enter__",
        "__exit__",
        "__aenter__",
        "__aexit__",
        "__aiter__",
        "__anext__",
    }
)

# Classes whose members are runtime plumbing, not capabilities.
_PLUMBING_MODULES = frozenset({"builtins", "typing", "typing_extensions", "abc"})


@dataclass(frozen=True)
class CapabilitySet:
    """Operations and data fields exposed by a described type."""

    described: type
    operations: Mapping[str, Operation]
    fields: Mapping[str, Any]  # annotated data attributes

    @property
    def type_name(self) -> str:
        return self.described.__qualname__

    def __contains__(self, name: object) -> bool:
        return name in self.operations

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.operations.values())

    def require(self, name: str) -> Operation:
        """Look up an operation by name.

        Raises:
            UnknownOperationError: If the type has no such operation.
        """
        try:
            return self.operations[name]
        except KeyError:
            raise UnknownOperationError(self.type_name, name) from None


def ensure_interceptable(described: Any) -> type:
    """Check that a type description offers an extension point.

    Raises:
        ConfigurationError: If the description is not a class or the
            class is declared final.
    """
    if not isinstance(described, type):
        raise ConfigurationError(
            f"Cannot substitute {described!r}: a class is required. "
            f"Supply a class describing the operations or a hand-written stub."
        )
    if getattr(described, "__final__", False):
        raise ConfigurationError(
            f"Cannot substitute {described.__qualname__}: it is declared final "
            f"and offers no extension point for interception. "
            f"Supply another type description or a hand-written stub."
        )
    if issubclass(described, Enum) and len(described) > 0:
        raise ConfigurationError(
            f"Cannot substitute {described.__qualname__}: enumerations with "
            f"members cannot be extended. Pass one of its members instead."
        )
    return described


def is_intercepted_name(name: str) -> bool:
    if name.startswith("__") and name.endswith("__"):
        return name in INTERCEPTED_DUNDERS
    return True


def describe(described: Any) -> CapabilitySet:
    """Enumerate the capability members of a type, inherited ones included.

    Members are collected walking the MRO from the most generic class to
    the described type itself, so overrides replace inherited members.
    A plain attribute in a subclass hides an inherited operation.

    Raises:
        ConfigurationError: If the type cannot be intercepted.
    """
    cls = ensure_interceptable(described)

    operations: dict[str, Operation] = {}
    for owner in reversed(cls.__mro__):
        if owner is object or owner.__module__ in _PLUMBING_MODULES:
            continue
        for name, member in vars(owner).items():
            if not is_intercepted_name(name):
                continue
            operation = _operation_for(name, member, owner)
            if operation is not None:
                operations[name] = operation
            elif name in operations:
                del operations[name]

    return CapabilitySet(
        described=cls,
        operations=MappingProxyType(operations),
        fields=MappingProxyType(_data_fields(cls, operations)),
    )


def _operation_for(name: str, member: Any, owner: type) -> Operation | None:
    if isinstance(member, property):
        return _build_operation(
            name, member.fget, owner, OperationKind.PROPERTY, Binding.INSTANCE
        )
    if isinstance(member, functools.cached_property):
        return _build_operation(
            name, member.func, owner, OperationKind.PROPERTY, Binding.INSTANCE
        )
    if isinstance(member, staticmethod):
        return _build_operation(
            name, member.__func__, owner, _call_kind(member.__func__), Binding.STATIC
        )
    if isinstance(member, classmethod):
        return _build_operation(
            name, member.__func__, owner, _call_kind(member.__func__), Binding.CLASS
        )
    if inspect.isfunction(member):
        return _build_operation(
            name, member, owner, _call_kind(member), Binding.INSTANCE
        )
    return None


def _call_kind(function: Any) -> OperationKind:
    if inspect.iscoroutinefunction(function):
        return OperationKind.ASYNC_METHOD
    return OperationKind.METHOD


def _build_operation(
    name: str,
    function: Any,
    owner: type,
    kind: OperationKind,
    binding: Binding,
) -> Operation:
    signature = _signature(function, drop_first=binding is not Binding.STATIC)
    return Operation(
        name=name,
        kind=kind,
        binding=binding,
        signature=signature,
        return_annotation=_return_annotation(function, signature),
        owner=owner,
        function=function,
    )


def _signature(function: Any, drop_first: bool) -> inspect.Signature | None:
    if function is None:
        return None
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        logger.debug(f"No inspectable signature for {function!r}")
        return None
    if drop_first:
        parameters = list(signature.parameters.values())
        if parameters and parameters[0].kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            signature = signature.replace(parameters=parameters[1:])
    return signature


def _return_annotation(function: Any, signature: inspect.Signature | None) -> Any:
    if function is None:
        return inspect.Signature.empty
    try:
        hints = typing.get_type_hints(function)
    except Exception as e:  # unresolvable forward references and the like
        logger.debug(f"Unable to resolve annotations of {function!r}: {e}")
        if signature is None or isinstance(signature.return_annotation, str):
            return inspect.Signature.empty
        return signature.return_annotation
    return hints.get("return", inspect.Signature.empty)


def _data_fields(cls: type, operations: Mapping[str, Operation]) -> dict[str, Any]:
    try:
        hints = typing.get_type_hints(cls)
    except Exception as e:
        logger.debug(f"Unable to resolve field annotations of {cls.__qualname__}: {e}")
        hints = {}
        for owner in reversed(cls.__mro__):
            hints.update(getattr(owner, "__annotations__", {}))

    fields: dict[str, Any] = {}
    for name, annotation in hints.items():
        if name in operations or name.startswith("__"):
            continue
        if typing.get_origin(annotation) is typing.ClassVar:
            continue
        fields[name] = annotation
    return fields


__all__ = [
    "CapabilitySet",
    "INTERCEPTED_DUNDERS",
    "describe",
    "ensure_interceptable",
    "is_intercepted_name",
]
