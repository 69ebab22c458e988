"""Version series resolution.

A series is every release sharing one ``major.minor``. The patch number
of the next release is the number of work commits made since the commit
that started the current series. Version-bump commits don't count.

The functions here take a history object (see ManifestHistory) rather
than calling git directly, so they can be exercised against fixtures.
"""

from __future__ import annotations

import semver

from .commits import AdministrativePredicate, count_work_commits, is_version_bump
from .models import VersionDecision
from .shell import step
from .versions import in_series, reconcile_version, series_prefix


def find_series_base(prefix: str, history) -> str | None:
    """Find the commit that established the ``prefix`` series.

    Walks manifest-touching commits newest-first and returns the first one
    whose version is in the series and which is either a root commit,
    follows a parent whose version is outside the series, or sets the
    patch to exactly zero. The most recent qualifying commit wins.

    Args:
        prefix: Series prefix such as ``"1.2."``.
        history: Object providing touching_commits(), version_at(), parent_of().

    Returns:
        Hash of the base commit, or None if no commit ever recorded the series.
    """
    for commit in history.touching_commits():
        version = history.version_at(commit)
        if version is None or not in_series(version, prefix):
            continue

        parent = history.parent_of(commit)
        if parent is None:
            print(f"  Base {commit[:7]}: root commit at {version}")
            return commit

        parent_version = history.version_at(parent)
        if parent_version is None or not in_series(parent_version, prefix):
            print(f"  Base {commit[:7]}: {parent_version or 'N/A'} → {version}")
            return commit

        if version.patch == 0:
            print(f"  Base {commit[:7]}: explicit reset to {version}")
            return commit

    return None


def resolve_patch_number(
    prefix: str,
    history,
    *,
    fallback_commits: int = 0,
    is_administrative: AdministrativePredicate = is_version_bump,
) -> int:
    """Compute the patch number for the ``prefix`` series.

    Without a base commit, only the last ``fallback_commits`` commits are
    considered, so the default fallback yields patch 0.
    """
    base = find_series_base(prefix, history)
    if base is None:
        print(f"  No base commit for series {prefix}x")
        subjects = history.recent_subjects(fallback_commits)
    else:
        subjects = history.subjects_since(base)

    patch = count_work_commits(subjects, is_administrative)
    print(f"  {len(subjects)} commits, {patch} work commits")
    return patch


def resolve_version(
    history,
    current: semver.Version,
    *,
    fallback_commits: int = 0,
    is_administrative: AdministrativePredicate = is_version_bump,
) -> VersionDecision:
    """Compute the next version from history and reconcile it with ``current``.

    This performs no writes; the caller commits the manifest when the
    decision says so.
    """
    step(f"Resolving version (manifest: {current})")
    patch = resolve_patch_number(
        series_prefix(current),
        history,
        fallback_commits=fallback_commits,
        is_administrative=is_administrative,
    )
    candidate = current.replace(patch=patch)
    decision = reconcile_version(current, candidate)

    if decision.should_commit:
        print(f"  {current} → {decision.version}")
    elif candidate.compare(current) < 0:
        print(f"  Calculated {candidate} is lower than {current}; keeping manifest version")
    else:
        print(f"  {current} is up to date")
    return decision
