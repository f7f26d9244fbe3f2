# Exception types for a11y-devkit
from typing import Literal

# ABOUTME: Classification of failed git clone/pull invocations
RepoFailureKind = Literal["auth_required", "not_found", "tool_missing", "generic"]


class DevkitError(Exception):
    """Base class for all a11y-devkit errors."""


class ConfigError(DevkitError, ValueError):
    """Deploy configuration is missing required fields or is malformed."""


class NotManagedDirectoryError(DevkitError):
    """Target directory exists but was not created by our clone step.

    ABOUTME: Raised before anything is modified
    """

    def __init__(self, path: object) -> None:
        super().__init__(f"Target exists but is not a git repo: {path}")
        self.path = path


class RepoOperationError(DevkitError):
    """git clone or pull exited non-zero.

    ABOUTME: kind separates auth/not-found/missing-git/generic failures
    """

    def __init__(self, message: str, kind: RepoFailureKind = "generic", url: str | None = None) -> None:
        super().__init__(message)
        self.kind: RepoFailureKind = kind
        self.url = url


class BuildError(DevkitError):
    """A build step exited non-zero."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"Build step '{command}' failed with code {returncode}{detail}")
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
