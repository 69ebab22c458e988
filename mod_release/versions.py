"""Version parsing and reconciliation.

Versions in the manifest are strict ``major.minor.patch`` strings. The
reconciliation policy decides whether a version computed from git history
replaces the one already recorded in the manifest.
"""

from __future__ import annotations

import re

import semver

from .models import VersionDecision

_VERSION_RE = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


def parse_version(version_str: str) -> semver.Version:
    """Parse a ``M.m.p`` string into a semver.Version.

    Prerelease/build metadata and incomplete versions are rejected.

    Raises:
        ValueError: If the string is not a plain three-component version.
    """
    if not isinstance(version_str, str) or not _VERSION_RE.match(version_str.strip()):
        raise ValueError(f"Not a major.minor.patch version: {version_str!r}")
    return semver.Version.parse(version_str.strip())


def try_parse_version(version_str: object) -> semver.Version | None:
    """Like parse_version(), but returns None instead of raising."""
    if not isinstance(version_str, str):
        return None
    try:
        return parse_version(version_str)
    except ValueError:
        return None


def series_prefix(version: semver.Version) -> str:
    """Return the ``"M.m."`` prefix identifying a version's series."""
    return f"{version.major}.{version.minor}."


def in_series(version: semver.Version, prefix: str) -> bool:
    return str(version).startswith(prefix)


def reconcile_version(
    current: semver.Version, candidate: semver.Version
) -> VersionDecision:
    """Decide which version to release.

    The candidate is adopted only when it is strictly greater than the
    manifest version. A manually raised patch in the same series, or an
    equal version, keeps the manifest value.
    """
    chosen = candidate if candidate.compare(current) > 0 else current
    return VersionDecision(
        current=current,
        candidate=candidate,
        version=chosen,
        should_commit=chosen != current,
    )
