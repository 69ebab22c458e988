"""Version-change timeline.

Replays the manifest's history oldest-first and records every commit at
which the version actually changed. The resulting points delimit the
releases shown in the cumulative changelog.
"""

from __future__ import annotations

from collections.abc import Iterable

import semver

from .models import VersionChangePoint


def build_timeline(
    entries: Iterable[tuple[str, str, semver.Version | None]],
) -> list[VersionChangePoint]:
    """Collapse per-commit manifest versions into change points.

    Args:
        entries: (hash, date, version) for each manifest-touching commit,
            oldest-first. A None version means the manifest was missing or
            unparsable at that commit; it resets the comparison so the next
            readable version is always recorded.

    Returns:
        Change points, newest-first.
    """
    points: list[VersionChangePoint] = []
    previous: semver.Version | None = None
    for commit, date, version in entries:
        if version is None:
            previous = None
            continue
        if previous is None or version != previous:
            points.append(VersionChangePoint(hash=commit, version=version, date=date))
        previous = version
    points.reverse()
    return points


def find_version_change_points(history) -> list[VersionChangePoint]:
    """Build the timeline from a ManifestHistory."""
    entries = (
        (commit, date, history.version_at(commit))
        for commit, date in history.touching_commits_with_dates()
    )
    return build_timeline(entries)
