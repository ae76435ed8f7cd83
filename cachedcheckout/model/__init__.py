"""Data models for cachedcheckout."""

from cachedcheckout.model.inputs import (
    CheckoutInputs,
    validate_non_empty_string,
    validate_relative_path,
)
from cachedcheckout.model.state import (
    CheckoutOutcome,
    MirrorState,
    WorkspaceResult,
)

__all__ = [
    "CheckoutInputs",
    "CheckoutOutcome",
    "MirrorState",
    "WorkspaceResult",
    "validate_non_empty_string",
    "validate_relative_path",
]
