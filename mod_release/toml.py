"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying TOML
manifests, and to read the mod-release configuration tables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit


def load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file.

    Returns a TOMLDocument that preserves formatting when modified and saved.
    """
    return tomlkit.parse(path.read_text())


def parse_toml(text: str) -> tomlkit.TOMLDocument:
    return tomlkit.parse(text)


def save_toml(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc))


def get_version_table(doc: tomlkit.TOMLDocument) -> Any:
    """Return the table holding ``name``/``version``.

    Top-level keys win; a ``[project]`` table is used when the document has
    no top-level version (pyproject-style manifests).
    """
    if "version" not in doc and "project" in doc:
        return doc["project"]
    return doc


def get_tool_table(doc: tomlkit.TOMLDocument, name: str) -> dict[str, Any]:
    """Extract ``[tool.<name>]`` as a plain dict, or {} if absent."""
    table = doc.get("tool", {}).get(name, {})
    return table.unwrap() if hasattr(table, "unwrap") else dict(table)
