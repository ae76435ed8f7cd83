"""
Authenticated git invocation.

Every git command the engine runs goes through a ``GitAuth`` instance. The
engine only calls ``invoke``/``run``; how credentials reach git (an HTTP
header or an SSH identity) is decided by the subclass and passed through the
child process environment, so secrets never show up in argv or in the logs.
"""

import base64
import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence

from git import Git
from git.exc import GitCommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GitResult:
    """Exit status and output of one git command."""

    status: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.status == 0


class GitAuth:
    """Run git without credentials. Base class for the authenticated variants."""

    transport = "https"

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    def environment(self) -> Dict[str, str]:
        """Extra environment for the git child process."""
        return {}

    def invoke(self, args: Sequence[str], cwd: Optional[Path] = None) -> GitResult:
        """Run ``git <args>`` and return its status and output, never raising on failure."""
        env = {"GIT_TERMINAL_PROMPT": "0", **self.environment()}
        logger.debug(f"git {' '.join(args)}" + (f" (in {cwd})" if cwd else ""))
        status, stdout, stderr = Git(str(cwd) if cwd else None).execute(
            ["git", *args],
            with_extended_output=True,
            with_exceptions=False,
            env=env,
            kill_after_timeout=self.timeout,
        )
        return GitResult(status=status, stdout=stdout, stderr=stderr)

    def run(self, args: Sequence[str], cwd: Optional[Path] = None) -> str:
        """Run ``git <args>`` and return stdout.

        Raises:
            GitCommandError: if git exits with a non-zero status
        """
        result = self.invoke(args, cwd=cwd)
        if not result.ok:
            raise GitCommandError(["git", *args], result.status, result.stderr)
        return result.stdout


class TokenAuth(GitAuth):
    """HTTPS access with a token sent as a basic-auth extra header."""

    def __init__(
        self, token: str, server_url: str, timeout: Optional[float] = None
    ) -> None:
        super().__init__(timeout=timeout)
        self._token = token
        self._server_url = server_url.rstrip("/")

    def environment(self) -> Dict[str, str]:
        basic = base64.b64encode(f"x-access-token:{self._token}".encode()).decode()
        # Scoped to the server so the header is never sent to other hosts
        return {
            "GIT_CONFIG_COUNT": "1",
            "GIT_CONFIG_KEY_0": f"http.{self._server_url}/.extraheader",
            "GIT_CONFIG_VALUE_0": f"AUTHORIZATION: basic {basic}",
        }


class SshKeyAuth(GitAuth):
    """SSH access with a private key file."""

    transport = "ssh"

    def __init__(
        self,
        key_path: Path,
        known_hosts: Optional[Path] = None,
        strict_host_key_checking: bool = True,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self._key_path = key_path
        self._known_hosts = known_hosts
        self._strict = strict_host_key_checking

    def environment(self) -> Dict[str, str]:
        command = [
            "ssh",
            "-i",
            str(self._key_path),
            "-o",
            "IdentitiesOnly=yes",
            "-o",
            f"StrictHostKeyChecking={'yes' if self._strict else 'no'}",
        ]
        if self._known_hosts is not None:
            command += ["-o", f"UserKnownHostsFile={self._known_hosts}"]
        return {"GIT_SSH_COMMAND": shlex.join(command)}
