"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mod_release.models import CommitRecord
from mod_release.versions import try_parse_version


class FakeRepo:
    """A linear in-memory commit history with one tracked manifest.

    Provides the same read interface as ManifestHistory, plus
    commits_in_range() for the changelog assembler.
    """

    def __init__(self) -> None:
        # (hash, date, subject, body, manifest version written or None)
        self.commits: list[tuple[str, str, str, str, str | None]] = []

    def commit(
        self,
        subject: str,
        *,
        version: str | None = None,
        date: str = "2024-01-01",
        body: str = "",
    ) -> str:
        commit_hash = f"{len(self.commits) + 1:07d}" + "a" * 33
        self.commits.append((commit_hash, date, subject, body, version))
        return commit_hash

    def work(self, count: int, prefix: str = "fix: change") -> None:
        for i in range(count):
            self.commit(f"{prefix} {i}")

    def bump(self, version: str, date: str = "2024-01-01") -> str:
        return self.commit(f"chore: Update version to {version}", version=version, date=date)

    def _index(self, ref: str) -> int:
        if ref == "HEAD":
            return len(self.commits) - 1
        return [c[0] for c in self.commits].index(ref)

    # --- ManifestHistory interface ---

    def touching_commits(self) -> list[str]:
        return [c[0] for c in reversed(self.commits) if c[4] is not None]

    def touching_commits_with_dates(self) -> list[tuple[str, str]]:
        return [(c[0], c[1]) for c in self.commits if c[4] is not None]

    def version_at(self, commit: str):
        for _, _, _, _, version in reversed(self.commits[: self._index(commit) + 1]):
            if version is not None:
                return try_parse_version(version)
        return None

    def parent_of(self, commit: str) -> str | None:
        index = self._index(commit)
        return self.commits[index - 1][0] if index > 0 else None

    def subjects_since(self, base: str) -> list[str]:
        return [c[2] for c in reversed(self.commits[self._index(base) + 1 :])]

    def recent_subjects(self, count: int) -> list[str]:
        if count <= 0:
            return []
        return [c[2] for c in reversed(self.commits)][:count]

    # --- changelog commit source ---

    def commits_in_range(self, rev_range: str) -> list[CommitRecord]:
        base, sep, tip = rev_range.partition("..")
        if not sep:
            base, tip = "", rev_range
        start = self._index(base) + 1 if base else 0
        selected = self.commits[start : self._index(tip) + 1]
        return [
            CommitRecord(hash=h, author_date=d, subject=s, body=b)
            for h, d, s, b, _ in reversed(selected)
        ]


@pytest.fixture
def repo() -> FakeRepo:
    """An empty fake repository."""
    return FakeRepo()


@pytest.fixture
def tmp_manifest(tmp_path: Path) -> Path:
    """Create a temporary package.json manifest."""
    manifest = tmp_path / "package.json"
    manifest.write_text(
        json.dumps(
            {
                "name": "my-mod",
                "version": "0.1.0",
                "description": "A test mod",
                "author": {"name": "Jane", "email": "jane@example.com"},
                "scripts": {"build": "tstl"},
                "factorio": {"title": "My Mod", "factorio_version": "2.0"},
            },
            indent=2,
        )
        + "\n"
    )
    return manifest
