"""Data models for mod-release.

These Pydantic models represent the data derived from git history on every
run. None of them are persisted; the commit log is the source of truth.
"""

from __future__ import annotations

import semver
from pydantic import BaseModel, ConfigDict, Field


class CommitRecord(BaseModel):
    """A single commit as reported by git.

    Attributes:
        hash: Full commit hash.
        parent_hash: First parent, or None for a root commit.
        author_date: Author date as YYYY-MM-DD.
        subject: First line of the commit message.
        body: Remaining lines of the commit message, stripped.
    """

    model_config = ConfigDict(frozen=True)

    hash: str
    parent_hash: str | None = None
    author_date: str = ""
    subject: str
    body: str = ""


class ClassifiedCommit(BaseModel):
    """A commit mapped onto a changelog category.

    Attributes:
        category: Changelog category name (e.g. "Features").
        scope: Optional scope from ``type(scope): message``.
        message: Free text shown in the changelog entry.
        body: Commit body, rendered as detail lines under the entry.
    """

    model_config = ConfigDict(frozen=True)

    category: str
    scope: str | None = None
    message: str
    body: str = ""


class VersionChangePoint(BaseModel):
    """A commit where the manifest version differs from the previous one."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    hash: str
    version: semver.Version
    date: str


class ChangelogSection(BaseModel):
    """One ``Version:`` block of the changelog.

    Attributes:
        version: Version label for the section.
        date: Date shown for the section (YYYY-MM-DD).
        entries: Category name → classified commits, in commit-log order.
        is_current_work: True for the section covering unreleased commits.
    """

    version: str
    date: str
    entries: dict[str, list[ClassifiedCommit]] = Field(default_factory=dict)
    is_current_work: bool = False

    @property
    def has_entries(self) -> bool:
        return any(self.entries.values())


class VersionDecision(BaseModel):
    """Outcome of reconciling the computed version with the manifest.

    Attributes:
        current: Version read from the manifest.
        candidate: Version computed from history.
        version: Version to release.
        should_commit: True when the manifest must be rewritten and committed.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    current: semver.Version
    candidate: semver.Version
    version: semver.Version
    should_commit: bool
