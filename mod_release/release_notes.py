"""Release notes for a single tag.

Where the cumulative changelog replays the whole manifest history, these
notes cover just the commits between one release tag and the one before
it, for use as a GitHub release body.
"""

from __future__ import annotations

from collections.abc import Mapping

from . import vcs
from .changelog import today
from .commits import group_by_category
from .exceptions import VcsQueryFailed
from .models import ChangelogSection
from .shell import warn


def previous_tag(tag: str) -> str | None:
    """Find the release tag preceding ``tag``.

    Describes the first parent of the tag's commit; if that yields nothing
    useful, falls back to the tag list sorted by version.
    """
    try:
        candidate = vcs.describe_tag(f"{tag}^1")
        if candidate and candidate != tag:
            print(f"  Previous tag {candidate} (described from parent of {tag})")
            return candidate
    except VcsQueryFailed:
        print(f"  Could not describe parent of {tag}")

    try:
        tags = vcs.list_tags(sort="-v:refname")
    except VcsQueryFailed as e:
        warn(f"Could not list tags: {e}")
        return None

    if tag in tags:
        index = tags.index(tag)
        if index + 1 < len(tags):
            print(f"  Previous tag {tags[index + 1]} (from sorted tag list)")
            return tags[index + 1]
    print(f"  No tag before {tag}; treating it as the first release")
    return None


def release_notes(
    tag: str,
    previous: str | None = None,
    categories: Mapping[str, str] | None = None,
) -> ChangelogSection | None:
    """Build a changelog section covering ``previous..tag``.

    Returns:
        The section, or None for a first release with nothing to report.
    """
    rev_range = f"{previous}..{tag}" if previous else tag
    entries = group_by_category(vcs.commits_in_range(rev_range), categories)
    if previous:
        total = vcs.count_commits_between(previous, tag)
        print(f"  {total} commits in {rev_range}")
    elif not any(entries.values()):
        return None

    try:
        date = vcs.date_of(tag)
    except VcsQueryFailed:
        warn(f"Could not read date of {tag}; using today")
        date = today()

    version = tag[1:] if tag.startswith("v") else tag
    return ChangelogSection(version=version, date=date, entries=entries)
