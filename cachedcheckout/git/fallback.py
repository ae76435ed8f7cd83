"""
Primary/secondary attempt combinator.

Two places in the engine follow the same "try A, fall back to B" shape:
reference clone -> standalone clone, and shallow fetch -> unshallow fetch.
Both are expressed as ``attempt(...).or_else(...)`` so that failures are
classified and logged the same way. Internally the attempts are
``returns`` Results; a git failure becomes a ``Failure`` carrying the
``GitCommandError`` and only the last one is turned into a fatal
``CheckoutError``.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from git.exc import GitCommandError
from returns.result import Failure, Result, Success

from cachedcheckout.errors import CheckoutError, Stage

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Value of the attempt that succeeded and its label."""

    value: T
    label: str
    fell_back: bool


@dataclass(frozen=True)
class Attempt(Generic[T]):
    label: str
    action: Callable[[], T]
    # Runs after a failed attempt, before the next one
    cleanup: Optional[Callable[[], object]] = None

    def __call__(self) -> Result[T, GitCommandError]:
        try:
            return Success(self.action())
        except GitCommandError as e:
            return Failure(e)

    def or_else(self, secondary: "Attempt[T]") -> "Fallback[T]":
        return Fallback(self, secondary)

    def run(self, stage: Stage, message: str) -> Outcome[T]:
        """Run this attempt alone; a failure is fatal."""
        result = self()
        if isinstance(result, Success):
            return Outcome(result.unwrap(), self.label, fell_back=False)
        if self.cleanup is not None:
            self.cleanup()
        raise _fatal(stage, message, result.failure())


def attempt(
    label: str,
    action: Callable[[], T],
    cleanup: Optional[Callable[[], object]] = None,
) -> Attempt[T]:
    return Attempt(label=label, action=action, cleanup=cleanup)


@dataclass(frozen=True)
class Fallback(Generic[T]):
    primary: Attempt[T]
    secondary: Attempt[T]

    def run(self, stage: Stage, message: str) -> Outcome[T]:
        """
        Run the primary attempt, and the secondary one if it failed.

        Args:
            stage: Stage reported if both attempts fail
            message: Error message used if both attempts fail

        Returns:
            Outcome of the first successful attempt

        Raises:
            CheckoutError: if both attempts fail
        """
        result = self.primary().map(
            lambda value: Outcome(value, self.primary.label, fell_back=False)
        )

        def _recover(error: GitCommandError) -> Result[Outcome[T], GitCommandError]:
            logger.warning(
                f"{self.primary.label} failed, falling back to {self.secondary.label}: "
                f"{stderr_text(error) or error}"
            )
            if self.primary.cleanup is not None:
                self.primary.cleanup()
            return self.secondary().map(
                lambda value: Outcome(value, self.secondary.label, fell_back=True)
            )

        result = result.lash(_recover)

        if isinstance(result, Success):
            return result.unwrap()

        error = result.failure()
        if self.secondary.cleanup is not None:
            self.secondary.cleanup()
        raise _fatal(stage, message, error)


def _fatal(stage: Stage, message: str, error: GitCommandError) -> CheckoutError:
    fatal = CheckoutError(
        stage,
        message,
        status=error.status if isinstance(error.status, int) else None,
        stderr=stderr_text(error),
    )
    fatal.__cause__ = error
    return fatal


def stderr_text(error: GitCommandError) -> str:
    """GitCommandError prefixes stderr for display; recover the raw text."""
    text = (error.stderr or "").strip()
    if text.startswith("stderr:"):
        text = text[len("stderr:") :].strip().strip("'")
    return text
