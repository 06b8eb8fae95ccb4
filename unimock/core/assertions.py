"""Verification of recorded invocations.

Queries are replayed against the invocation log of a mock. Sequence
queries share one cursor per test-scoped registry, so ordering can be
verified across different mocks:

    delete_all.assert_invoked_in_sequence().execute(connection, data_set)
    insert.assert_invoked_in_sequence().execute(connection, data_set)

passes only if the insert happened after the delete.
"""

import logging
from collections.abc import Sequence

from .errors import ConfigurationError
from .matching import InvocationPattern
from .models import AssertionResult, Invocation

logger = logging.getLogger(__name__)


class SequenceCursor:
    """Checkpoint of the last invocation consumed by a sequence query."""

    def __init__(self) -> None:
        self.position = 0
        self.last: Invocation | None = None

    def advance(self, invocation: Invocation) -> None:
        self.position = invocation.sequence_id
        self.last = invocation

    def reset(self) -> None:
        self.position = 0
        self.last = None

    def describe(self) -> str:
        if self.last is None:
            return "the start of the test"
        return f"#{self.last.sequence_id} {self.last.mock_name}.{self.last.operation.name}"


def render_history(mock_name: str, type_name: str, log: Sequence[Invocation]) -> str:
    """Render the full invocation log of a mock for failure messages."""
    header = f"Invocations recorded on {mock_name} ({type_name}):"
    if not log:
        return f"{header}\n  (none)"
    lines = [header]
    lines.extend(f"  {invocation.render()}" for invocation in log)
    return "\n".join(lines)


def _ids(invocations: Sequence[Invocation]) -> str:
    return ", ".join(f"#{invocation.sequence_id}" for invocation in invocations)


class AssertionEngine:
    """Replays invocation logs against verification queries."""

    def __init__(self, cursor: SequenceCursor):
        self.cursor = cursor

    def invoked(
        self,
        mock_name: str,
        type_name: str,
        log: Sequence[Invocation],
        pattern: InvocationPattern,
    ) -> AssertionResult:
        """Pass iff at least one logged call matches; order-agnostic."""
        expected = pattern.render(mock_name)
        matched = [invocation for invocation in log if pattern.matches(invocation)]
        if not matched:
            return self._failure(
                "invoked",
                expected,
                mock_name,
                type_name,
                log,
                f"Expected invocation of {expected}, but it did not occur.",
            )

        unverified = [invocation for invocation in matched if not invocation.verified]
        if unverified:
            unverified[0].verified = True
        return AssertionResult(
            passed=True,
            query="invoked",
            expected=expected,
            history=render_history(mock_name, type_name, log),
            matched=tuple(matched),
        )

    def invoked_in_sequence(
        self,
        mock_name: str,
        type_name: str,
        log: Sequence[Invocation],
        pattern: InvocationPattern,
    ) -> AssertionResult:
        """Pass iff a matching call happened after the shared cursor.

        On success the cursor advances to the matched call.
        """
        expected = pattern.render(mock_name)
        matched = [invocation for invocation in log if pattern.matches(invocation)]
        candidates = [
            invocation
            for invocation in matched
            if invocation.sequence_id > self.cursor.position
        ]
        if not candidates:
            if matched:
                reason = (
                    f"Expected invocation of {expected} after {self.cursor.describe()}, "
                    f"but matching invocations only occurred earlier: {_ids(matched)}."
                )
            else:
                reason = f"Expected invocation of {expected}, but it did not occur."
            return self._failure(
                "invoked_in_sequence", expected, mock_name, type_name, log, reason
            )

        chosen = candidates[0]
        chosen.verified = True
        self.cursor.advance(chosen)
        logger.debug(f"Sequence cursor advanced to #{chosen.sequence_id}")
        return AssertionResult(
            passed=True,
            query="invoked_in_sequence",
            expected=expected,
            history=render_history(mock_name, type_name, log),
            matched=(chosen,),
        )

    def not_invoked(
        self,
        mock_name: str,
        type_name: str,
        log: Sequence[Invocation],
        pattern: InvocationPattern,
    ) -> AssertionResult:
        """Pass iff no logged call matches."""
        expected = pattern.render(mock_name)
        matched = [invocation for invocation in log if pattern.matches(invocation)]
        if matched:
            return self._failure(
                "not_invoked",
                expected,
                mock_name,
                type_name,
                log,
                f"Expected no invocation of {expected}, but found {len(matched)}: "
                f"{_ids(matched)}.",
                matched,
            )
        return AssertionResult(
            passed=True,
            query="not_invoked",
            expected=expected,
            history=render_history(mock_name, type_name, log),
        )

    def invoked_exactly(
        self,
        count: int,
        mock_name: str,
        type_name: str,
        log: Sequence[Invocation],
        pattern: InvocationPattern,
    ) -> AssertionResult:
        """Pass iff exactly ``count`` logged calls match.

        Raises:
            ConfigurationError: If count is negative.
        """
        if count < 0:
            raise ConfigurationError(f"invocation count must be non-negative, got {count}")

        expected = pattern.render(mock_name)
        matched = [invocation for invocation in log if pattern.matches(invocation)]
        if len(matched) != count:
            return self._failure(
                "invoked_exactly",
                expected,
                mock_name,
                type_name,
                log,
                f"Expected {count} invocation(s) of {expected}, but found "
                f"{len(matched)}" + (f": {_ids(matched)}." if matched else "."),
                matched,
            )

        for invocation in matched:
            invocation.verified = True
        return AssertionResult(
            passed=True,
            query="invoked_exactly",
            expected=expected,
            history=render_history(mock_name, type_name, log),
            matched=tuple(matched),
        )

    def no_more_invocations(
        self, mock_name: str, type_name: str, log: Sequence[Invocation]
    ) -> AssertionResult:
        """Pass iff every logged call was matched by an earlier assertion."""
        unverified = [invocation for invocation in log if not invocation.verified]
        if unverified:
            listed = "\n".join(f"  {invocation.render()}" for invocation in unverified)
            return self._failure(
                "no_more_invocations",
                "no unverified invocations",
                mock_name,
                type_name,
                log,
                f"Expected no more invocations on {mock_name}, but found "
                f"{len(unverified)} unverified:\n{listed}",
                unverified,
            )
        return AssertionResult(
            passed=True,
            query="no_more_invocations",
            expected="no unverified invocations",
            history=render_history(mock_name, type_name, log),
        )

    @staticmethod
    def _failure(
        query: str,
        expected: str,
        mock_name: str,
        type_name: str,
        log: Sequence[Invocation],
        reason: str,
        matched: Sequence[Invocation] = (),
    ) -> AssertionResult:
        result = AssertionResult(
            passed=False,
            query=query,
            expected=expected,
            history=render_history(mock_name, type_name, log),
            matched=tuple(matched),
            reason=reason,
        )
        logger.debug(f"Assertion {query} failed: {reason}")
        return result


__all__ = ["AssertionEngine", "SequenceCursor", "render_history"]
