"""Port interfaces for the unimock framework.

These abstract base classes define the boundary between the generated
substitutes and whatever decides how their operations behave.

Port Interface Categories:

1. **Interception** (generated substitutes call out through it)
   - InterceptionHook: receives every operation of a substitute
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from .models import Operation


class InterceptionHook(ABC):
    """Port through which a generated substitute routes every operation.

    The proxy factory funnels all operations of the substitutes it builds
    into one hook. Implementations decide what a call produces: mocks
    record the call and resolve a configured behavior, dummies answer
    with inert default values.

    Implementations must:
    - Never block or perform I/O
    - Let TypeError propagate for arguments not fitting the signature
    """

    @abstractmethod
    def intercept(
        self,
        operation: Operation,
        instance: Any,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
    ) -> Any:
        """Handle a synchronous operation or property read.

        Args:
            operation: The capability member being invoked.
            instance: The substitute, or None for static and class
                methods.
            args: Positional arguments as passed by the caller.
            kwargs: Keyword arguments as passed by the caller.

        Returns:
            The result handed back to the caller.
        """

    @abstractmethod
    async def intercept_async(
        self,
        operation: Operation,
        instance: Any,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
    ) -> Any:
        """Handle an ``async def`` operation.

        Same contract as intercept(); the result is delivered when the
        caller awaits the call. Completes without suspending unless a
        configured delegate does.
        """


__all__ = ["InterceptionHook"]
