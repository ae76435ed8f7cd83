"""Pydantic model for the inputs of a checkout run."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from cachedcheckout.config import get_server_url
from cachedcheckout.git.remote import mirror_key, remote_url


# Validators
def validate_non_empty_string(v: str) -> str:
    """Validate that a string is not empty."""
    if not v or not v.strip():
        raise ValueError("must be a non-empty string")
    return v.strip()


def validate_relative_path(v: str) -> str:
    """Validate that a workspace path is relative."""
    v = (v or ".").strip() or "."
    if Path(v).is_absolute():
        raise ValueError("must be relative to the workspace root")
    return v


class CheckoutInputs(BaseModel):
    """Validated inputs of one checkout run."""

    repository: str = Field(
        ..., description="owner/name on the git server, a URL, or a local path"
    )
    ref: str = Field("", description="Branch, tag, PR ref or SHA; empty for the default branch")
    fetch_depth: int = Field(1, ge=0, description="Commits to fetch, 0 for full history")
    path: str = Field(".", description="Workspace directory relative to the workspace root")
    refresh_cache: bool = Field(False, description="Wipe and rebuild the mirror")
    use_cache: bool = Field(True, description="Use the mirror cache for this run")
    workspace_root: Path = Field(default_factory=Path.cwd)
    server_url: str = Field(default_factory=get_server_url)

    @field_validator("repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        return validate_non_empty_string(v)

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        return validate_relative_path(v)

    @field_validator("ref")
    @classmethod
    def validate_ref(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("server_url")
    @classmethod
    def validate_server_url(cls, v: str) -> str:
        return validate_non_empty_string(v).rstrip("/")

    @model_validator(mode="after")
    def validate_workspace_inside_root(self) -> "CheckoutInputs":
        root = self.workspace_root.resolve()
        target = (root / self.path).resolve()
        if target != root and root not in target.parents:
            raise ValueError(f"path '{self.path}' escapes the workspace root {root}")
        return self

    @property
    def workspace_path(self) -> Path:
        return (self.workspace_root / self.path).resolve()

    def remote_url(self, transport: str = "https") -> str:
        return remote_url(self.repository, self.server_url, transport)

    def mirror_key(self, transport: str = "https") -> str:
        return mirror_key(self.remote_url(transport))
