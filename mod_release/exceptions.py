"""Exception hierarchy for mod-release.

Read-only history queries raise VcsQueryFailed, which callers walking old
commits recover from. Everything else derived from ModReleaseError aborts
the run with exit code 1.
"""

from __future__ import annotations


class ModReleaseError(Exception):
    """Base class for all mod-release errors."""


class VcsError(ModReleaseError):
    """A git invocation failed.

    Attributes:
        stderr: Captured stderr of the failed command, if any.
    """

    def __init__(self, message: str, *, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        message = super().__str__()
        if self.stderr and self.stderr.strip():
            return f"{message}\n{self.stderr.strip()}"
        return message


class VcsQueryFailed(VcsError):
    """A read-only query (log, show, rev-parse, tag list) failed."""


class VcsMutationFailed(VcsError):
    """A commit, push or tag operation failed."""


class DirtyWorkingTree(ModReleaseError):
    """The working tree has uncommitted changes."""


class ManifestParseFailure(ModReleaseError):
    """The manifest could not be read or has no usable version."""


class ConfigError(ModReleaseError):
    """The mod-release configuration is invalid."""


class BuildFailed(ModReleaseError):
    """The external build command exited with a non-zero status."""
