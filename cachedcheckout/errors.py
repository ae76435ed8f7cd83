"""Errors raised by the checkout engine."""

from enum import Enum
from typing import Optional


class Stage(str, Enum):
    """Pipeline stage in which a failure happened."""

    clone = "clone"
    fetch = "fetch"
    checkout = "checkout"


class CheckoutError(Exception):
    """Fatal failure of a run.

    Carries the stage that failed and, when a git command was the cause, its
    exit status and stderr so the caller can report why the run failed.
    """

    def __init__(
        self,
        stage: Stage,
        message: str,
        status: Optional[int] = None,
        stderr: Optional[str] = None,
    ) -> None:
        self.stage = stage
        self.message = message
        self.status = status
        self.stderr = stderr
        super().__init__(message)

    def __str__(self) -> str:
        parts = [f"[{self.stage.value}] {self.message}"]
        if self.status is not None:
            parts.append(f"git exited with status {self.status}")
        if self.stderr:
            parts.append(self.stderr.strip())
        return "\n".join(parts)


class CacheMountError(Exception):
    """The cache collaborator could not provide a mirror directory."""

    pass
