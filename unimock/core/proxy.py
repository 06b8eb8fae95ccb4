"""Proxy factory: builds substitutes for described types.

A substitute is an instance of a subclass generated at creation time
whose every capability member is replaced by a function funnelling the
call into one InterceptionHook. The constructor of the described type
never runs.
"""

import functools
import logging
import types
from typing import Any

from .capabilities import CapabilitySet
from .errors import ConfigurationError
from .models import Binding, Operation, OperationKind
from .ports import InterceptionHook

logger = logging.getLogger(__name__)


def _interceptor(operation: Operation, hook: InterceptionHook) -> Any:
    """Build the class member replacing one operation."""
    if operation.kind is OperationKind.PROPERTY:

        def read(self: Any) -> Any:
            return hook.intercept(operation, self, (), {})

        read.__name__ = operation.name
        return property(read, doc=getattr(operation.function, "__doc__", None))

    if operation.binding is Binding.INSTANCE:
        if operation.is_async:

            async def member(self: Any, *args: Any, **kwargs: Any) -> Any:
                return await hook.intercept_async(operation, self, args, kwargs)

        else:

            def member(self: Any, *args: Any, **kwargs: Any) -> Any:
                return hook.intercept(operation, self, args, kwargs)

    else:
        if operation.is_async:

            async def member(*args: Any, **kwargs: Any) -> Any:
                return await hook.intercept_async(operation, None, args, kwargs)

        else:

            def member(*args: Any, **kwargs: Any) -> Any:
                return hook.intercept(operation, None, args, kwargs)

    if operation.function is not None:
        functools.update_wrapper(member, operation.function)
    member.__isabstractmethod__ = False  # type: ignore[attr-defined]

    if operation.binding is Binding.INSTANCE:
        return member
    return staticmethod(member)


def _identity_copy(self: Any, memo: Any = None) -> Any:
    return self


class ProxyFactory:
    """Builds classes and instances routing every operation to a hook."""

    def build_class(
        self, capabilities: CapabilitySet, hook: InterceptionHook, label: str
    ) -> type:
        """Generate the substitute class for a capability set.

        Raises:
            ConfigurationError: If the described type refuses subclassing.
        """
        described = capabilities.described
        members: dict[str, Any] = {
            operation.name: _interceptor(operation, hook) for operation in capabilities
        }

        def repr_(self: Any) -> str:
            return f"<{label} of {described.__qualname__}>"

        members.update(
            {
                "__module__": described.__module__,
                "__qualname__": f"{described.__qualname__}Proxy",
                "__doc__": described.__doc__,
                "__repr__": repr_,
                "__eq__": object.__eq__,
                "__ne__": object.__ne__,
                "__hash__": object.__hash__,
                "__copy__": _identity_copy,
                "__deepcopy__": _identity_copy,
            }
        )
        if "__bool__" not in capabilities.operations:
            members["__bool__"] = lambda self: True

        try:
            proxy_class = types.new_class(
                f"{described.__name__}Proxy",
                (described,),
                exec_body=lambda namespace: namespace.update(members),
            )
        except TypeError as e:
            raise ConfigurationError(
                f"Cannot substitute {described.__qualname__}: it offers no extension "
                f"point for interception ({e}). Supply another type description or "
                f"a hand-written stub."
            ) from e

        if getattr(proxy_class, "__abstractmethods__", None):
            proxy_class.__abstractmethods__ = frozenset()
        logger.debug(
            f"Built {label} class for {described.__qualname__} "
            f"with {len(capabilities.operations)} operations"
        )
        return proxy_class

    @staticmethod
    def instantiate(proxy_class: type) -> Any:
        """Create an instance without running any constructor.

        Raises:
            ConfigurationError: If the runtime refuses to allocate it.
        """
        try:
            return object.__new__(proxy_class)
        except TypeError as e:
            logger.debug(f"object.__new__ refused {proxy_class.__qualname__}: {e}")
        try:
            return proxy_class.__new__(proxy_class)
        except TypeError as e:
            raise ConfigurationError(
                f"Cannot allocate an instance of {proxy_class.__qualname__}: {e}"
            ) from e

    def create(self, capabilities: CapabilitySet, hook: InterceptionHook, label: str) -> Any:
        return self.instantiate(self.build_class(capabilities, hook, label))


__all__ = ["ProxyFactory"]
