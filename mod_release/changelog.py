"""Cumulative changelog generation.

Builds one section per released version from the version-change timeline,
plus a section for commits made since the latest version change, and
renders them in the plain-text mod changelog format:

    ---------------------------------------------------------------------------------------------------
    Version: 1.2.3
    Date: 2024-05-01
      Features:
        - (ui) add button
          longer description from the commit body

Also converts that text into markdown for GitHub release notes.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone

import semver

from . import vcs
from .commits import AdministrativePredicate, group_by_category, is_version_bump
from .exceptions import VcsQueryFailed
from .models import ChangelogSection, ClassifiedCommit, CommitRecord, VersionChangePoint
from .shell import warn

SEPARATOR = "-" * 99
PLACEHOLDER = (
    "  Changes:\n"
    "    - No specific changes documented for this version "
    "(or commits did not follow conventional format).\n"
)
CATEGORY_ORDER: list[str] = [
    "Major Features",
    "Features",
    "Minor Features",
    "Graphics",
    "Sounds",
    "Optimizations",
    "Balancing",
    "Combat Balancing",
    "Circuit Network",
    "Changes",
    "Bugfixes",
    "Modding",
    "Scripting",
    "Gui",
    "Control",
    "Translation",
    "Debug",
    "Ease of use",
    "Info",
    "Locale",
]

CommitSource = Callable[[str], list[CommitRecord]]


def today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def assemble_changelog(
    points: Sequence[VersionChangePoint],
    current_version: semver.Version,
    *,
    just_bumped: bool,
    collect: CommitSource | None = None,
    date: str | None = None,
    categories: Mapping[str, str] | None = None,
    is_administrative: AdministrativePredicate = is_version_bump,
) -> list[ChangelogSection]:
    """Build changelog sections, newest version first.

    Args:
        points: Version-change points, newest-first.
        current_version: Version being built.
        just_bumped: True if this run committed ``current_version`` to the
            manifest. That version then always gets a section, even if no
            work commits fall into its interval.
        collect: Returns commits for a ``git log`` revision range
            (default: vcs.commits_in_range).
        date: Date for the unreleased section (defaults to today, UTC).
        categories: Commit type → category table.
        is_administrative: Predicate excluding version-bump commits.
    """
    date = date or today()
    collect = collect or vcs.commits_in_range
    sections: list[ChangelogSection] = []

    def classify(rev_range: str) -> dict[str, list[ClassifiedCommit]]:
        try:
            commits = collect(rev_range)
        except VcsQueryFailed as e:
            warn(f"Could not read commits in {rev_range}: {e}")
            return {}
        return group_by_category(commits, categories, is_administrative)

    # Work since the latest version change. When this run just bumped the
    # version, the bump commit is points[0] and the loop below covers it.
    if not just_bumped:
        if points:
            latest = points[0]
            if latest.version == current_version:
                rev_range = f"{latest.hash}..HEAD"
                entries = classify(rev_range)
                if any(entries.values()):
                    print(f"  {current_version} (unreleased): {rev_range}")
                    sections.append(
                        ChangelogSection(
                            version=str(current_version),
                            date=date,
                            entries=entries,
                            is_current_work=True,
                        )
                    )
        else:
            entries = classify("HEAD")
            if any(entries.values()):
                print(f"  {current_version} (no version history): HEAD")
                sections.append(
                    ChangelogSection(
                        version=str(current_version),
                        date=date,
                        entries=entries,
                        is_current_work=True,
                    )
                )

    for i, point in enumerate(points):
        older = points[i + 1] if i + 1 < len(points) else None
        # The oldest interval runs from the repository root.
        rev_range = f"{older.hash}..{point.hash}" if older else point.hash
        entries = classify(rev_range)
        just_set = just_bumped and i == 0 and point.version == current_version

        if any(entries.values()) or just_set:
            print(f"  {point.version}: {rev_range}")
            sections.append(
                ChangelogSection(
                    version=str(point.version), date=point.date, entries=entries
                )
            )
        else:
            print(f"  {point.version}: skipped, no work commits in {rev_range}")

    return sections


def _render_entries(category: str, commits: list[ClassifiedCommit]) -> list[str]:
    lines = [f"  {category}:"]
    for commit in commits:
        scope = f"({commit.scope}) " if commit.scope else ""
        lines.append(f"    - {scope}{commit.message}")
        for body_line in commit.body.splitlines():
            if body_line.strip():
                lines.append(f"      {body_line}")
    return lines


def render_section(section: ChangelogSection) -> str:
    """Render one section, starting with the separator line."""
    lines = [SEPARATOR, f"Version: {section.version}", f"Date: {section.date}"]

    ordered = [c for c in CATEGORY_ORDER if section.entries.get(c)]
    # Categories outside the standard order keep their first-seen order.
    ordered += [
        c for c, commits in section.entries.items() if c not in CATEGORY_ORDER and commits
    ]
    for category in ordered:
        lines.extend(_render_entries(category, section.entries[category]))

    text = "\n".join(lines) + "\n"
    if not ordered:
        text += PLACEHOLDER
    return text


def render_changelog(sections: Sequence[ChangelogSection]) -> str:
    return "".join(render_section(s) for s in sections)


_VERSION_LINE = re.compile(r"^Version: (.*)")
_DATE_LINE = re.compile(r"^Date: (.*)")
_CATEGORY_LINE = re.compile(r"^  (\S.*):$")
_ITEM_LINE = re.compile(r"^    - (.*)")


def changelog_to_markdown(text: str) -> str:
    """Convert a rendered text changelog into GitHub release markdown.

    Body lines are dropped; each version becomes a ``##`` heading with
    ``###`` category headings and ``*`` bullets.
    """
    output: list[str] = []
    for block in text.split(SEPARATOR):
        if not block.strip():
            continue

        version = date = ""
        categories: dict[str, list[str]] = {}
        current = ""
        for line in block.strip("\n").splitlines():
            version_match = _VERSION_LINE.match(line)
            date_match = _DATE_LINE.match(line)
            category_match = _CATEGORY_LINE.match(line)
            item_match = _ITEM_LINE.match(line)
            if version_match:
                version = version_match.group(1)
            elif date_match:
                date = date_match.group(1)
            elif category_match:
                current = category_match.group(1)
                categories.setdefault(current, [])
            elif item_match and current:
                categories[current].append(item_match.group(1))

        if not version:
            continue

        output.append(f"## Version {version}{f' ({date})' if date else ''}\n")
        for category, items in categories.items():
            if items:
                output.append(f"### {category}")
                output.extend(f"* {item}" for item in items)
                output.append("")
        output.append("---\n")

    return "\n".join(output).strip()
