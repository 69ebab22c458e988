"""Commit classification.

Maps commit subjects written as ``type(scope)!: message`` onto changelog
categories, and recognizes the administrative version-bump commits that
mod-release itself creates so they never show up as changelog content.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping

from .models import ClassifiedCommit, CommitRecord

VERSION_COMMIT_TEMPLATE = "chore: Update version to {version}"
VERSION_COMMIT_RE = re.compile(r"^chore: Update version to (\d+\.\d+\.\d+)$")
CONVENTIONAL_RE = re.compile(r"^(\w+)(?:\(([^)]+)\))?(!?): (.*)$")

DEFAULT_CATEGORY = "Changes"
TYPE_TO_CATEGORY: dict[str, str] = {
    "feat": "Features",
    "fix": "Bugfixes",
    "perf": "Optimizations",
    "docs": "Info",
    "style": "Changes",
    "refactor": "Changes",
    "test": "Changes",
    "chore": "Changes",
    "build": "Changes",
    "ci": "Changes",
    "revert": "Changes",
}

AdministrativePredicate = Callable[[str], bool]


def version_commit_message(version: object) -> str:
    """Build the commit message used when mod-release bumps the manifest."""
    return VERSION_COMMIT_TEMPLATE.format(version=version)


def is_version_bump(subject: str) -> bool:
    """True if ``subject`` is an administrative version-bump commit."""
    return bool(VERSION_COMMIT_RE.match(subject.strip()))


def classify_commit(
    commit: CommitRecord,
    categories: Mapping[str, str] | None = None,
    is_administrative: AdministrativePredicate = is_version_bump,
) -> ClassifiedCommit | None:
    """Classify a single commit.

    Returns:
        The classified commit, or None if it is administrative.
    """
    subject = commit.subject.strip()
    if is_administrative(subject):
        return None

    table = TYPE_TO_CATEGORY if categories is None else categories
    match = CONVENTIONAL_RE.match(subject)
    if not match:
        return ClassifiedCommit(
            category=DEFAULT_CATEGORY, message=subject, body=commit.body.strip()
        )

    commit_type, scope, _breaking, message = match.groups()
    return ClassifiedCommit(
        category=table.get(commit_type, DEFAULT_CATEGORY),
        scope=scope,
        message=message,
        body=commit.body.strip(),
    )


def group_by_category(
    commits: Iterable[CommitRecord],
    categories: Mapping[str, str] | None = None,
    is_administrative: AdministrativePredicate = is_version_bump,
) -> dict[str, list[ClassifiedCommit]]:
    """Classify commits and bucket them by category, keeping input order.

    Administrative commits are dropped. Categories with no commits are absent.
    """
    grouped: dict[str, list[ClassifiedCommit]] = {}
    for commit in commits:
        classified = classify_commit(commit, categories, is_administrative)
        if classified is None:
            continue
        grouped.setdefault(classified.category, []).append(classified)
    return grouped


def count_work_commits(
    subjects: Iterable[str], is_administrative: AdministrativePredicate = is_version_bump
) -> int:
    """Count commit subjects that are not administrative."""
    return sum(1 for s in subjects if not is_administrative(s))
