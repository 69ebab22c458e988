"""Manifest history accessor.

Wraps the git queries the version logic needs behind one object that
memoizes per-commit lookups. Every ``git show`` of the manifest goes
through version_at(), which is also the single place where unreadable or
unparsable historical manifests are turned into "no data".
"""

from __future__ import annotations

import semver

from . import vcs
from .exceptions import ManifestParseFailure, VcsQueryFailed
from .manifest import manifest_version, parse_manifest
from .shell import warn


class ManifestHistory:
    """Read-only view of a manifest file's history in the current repo."""

    def __init__(self, manifest_path: str) -> None:
        self.manifest_path = manifest_path
        self._versions: dict[str, semver.Version | None] = {}
        self._parents: dict[str, str | None] = {}

    def touching_commits(self) -> list[str]:
        """Hashes of commits that touched the manifest, newest-first."""
        try:
            return vcs.log_hashes(self.manifest_path)
        except VcsQueryFailed as e:
            warn(f"Could not list commits touching {self.manifest_path}: {e}")
            return []

    def touching_commits_with_dates(self) -> list[tuple[str, str]]:
        """(hash, date) for commits that touched the manifest, oldest-first."""
        try:
            return vcs.log_hashes_with_dates(self.manifest_path, reverse=True)
        except VcsQueryFailed as e:
            warn(f"Could not list commits touching {self.manifest_path}: {e}")
            return []

    def version_at(self, commit: str) -> semver.Version | None:
        """Manifest version at ``commit``, or None if missing or unparsable."""
        if commit in self._versions:
            return self._versions[commit]

        version: semver.Version | None = None
        try:
            text = vcs.file_at(commit, self.manifest_path)
            version = manifest_version(
                parse_manifest(text, self.manifest_path), f"{commit[:7]}:{self.manifest_path}"
            )
        except VcsQueryFailed:
            warn(f"{self.manifest_path} not readable at {commit[:7]}")
        except ManifestParseFailure as e:
            warn(str(e))

        self._versions[commit] = version
        return version

    def parent_of(self, commit: str) -> str | None:
        if commit not in self._parents:
            try:
                self._parents[commit] = vcs.parent_of(commit)
            except VcsQueryFailed as e:
                warn(f"Could not resolve parent of {commit[:7]}: {e}")
                self._parents[commit] = None
        return self._parents[commit]

    def subjects_since(self, base: str) -> list[str]:
        """Subjects of commits after ``base`` up to HEAD (base excluded)."""
        try:
            return vcs.subjects(f"{base}..HEAD")
        except VcsQueryFailed as e:
            warn(f"Could not read commits since {base[:7]}: {e}")
            return []

    def recent_subjects(self, count: int) -> list[str]:
        """Subjects of the last ``count`` commits reachable from HEAD."""
        if count <= 0:
            return []
        try:
            return vcs.subjects("HEAD", max_count=count)
        except VcsQueryFailed as e:
            warn(f"Could not read recent commits: {e}")
            return []
