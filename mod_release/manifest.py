"""Manifest reading and version rewriting.

The manifest is the tracked key-value file holding the mod's canonical
``name`` and ``version`` (``package.json`` by default, or a TOML file).
Rewrites touch only the version value so the rest of the file, including
its formatting, survives.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import semver
from tomlkit.exceptions import TOMLKitError

from .exceptions import ManifestParseFailure
from .toml import get_version_table, parse_toml, save_toml
from .versions import parse_version

# Every "version" member with a string value, at any depth and indent.
_JSON_VERSION_RE = re.compile(r'"version"\s*:\s*("[^"\\]*")')
_JSON_INDENT_RE = re.compile(r"^([ \t]+)\S", re.MULTILINE)


def is_toml(path: str | Path) -> bool:
    return str(path).endswith(".toml")


def parse_manifest(text: str, path: str | Path) -> dict[str, Any]:
    """Parse manifest content, picking the format from the file name.

    Raises:
        ManifestParseFailure: If the content is not valid JSON/TOML or not a mapping.
    """
    try:
        if is_toml(path):
            data: Any = parse_toml(text).unwrap()
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, TOMLKitError) as e:
        raise ManifestParseFailure(f"Cannot parse manifest {path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestParseFailure(f"Manifest {path} is not a key-value document")
    if is_toml(path) and "version" not in data and isinstance(data.get("project"), dict):
        data = {**data, **data["project"]}
    return data


def manifest_version(
    data: dict[str, Any], path: str | Path = "manifest"
) -> semver.Version:
    """Return the parsed version recorded in manifest data.

    Raises:
        ManifestParseFailure: If the version is missing or not ``M.m.p``.
    """
    raw = data.get("version")
    try:
        return parse_version(raw)
    except ValueError as e:
        raise ManifestParseFailure(f"Manifest {path} has no valid version: {raw!r}") from e


def load_manifest(path: Path) -> dict[str, Any]:
    """Read and parse the manifest on disk."""
    try:
        text = path.read_text()
    except OSError as e:
        raise ManifestParseFailure(f"Cannot read manifest {path}: {e}") from e
    return parse_manifest(text, path)


def write_manifest_version(path: Path, new_version: str) -> None:
    """Rewrite the manifest's version field in place.

    Raises:
        ManifestParseFailure: If the manifest can't be parsed or has no version.
    """
    try:
        text = path.read_text()
    except OSError as e:
        raise ManifestParseFailure(f"Cannot read manifest {path}: {e}") from e

    if is_toml(path):
        try:
            doc = parse_toml(text)
        except TOMLKitError as e:
            raise ManifestParseFailure(f"Cannot parse manifest {path}: {e}") from e
        table = get_version_table(doc)
        if "version" not in table:
            raise ManifestParseFailure(f"No version field in {path}")
        table["version"] = new_version
        save_toml(path, doc)
        return

    data = parse_manifest(text, path)
    if "version" not in data:
        raise ManifestParseFailure(f"No version field in {path}")

    expected = {**data, "version": new_version}
    # The regex can't see nesting; keep the first rewrite that changes only
    # the top-level value.
    for match in _JSON_VERSION_RE.finditer(text):
        new_text = f'{text[: match.start(1)]}"{new_version}"{text[match.end(1) :]}'
        if json.loads(new_text) == expected:
            path.write_text(new_text)
            return

    path.write_text(json.dumps(expected, indent=_json_indent(text), ensure_ascii=False) + "\n")


def _json_indent(text: str) -> str | None:
    """Indent unit of a JSON document, or None if it's on one line."""
    match = _JSON_INDENT_RE.search(text)
    return match.group(1) if match else None


def build_mod_info(
    manifest: dict[str, Any], version: str, default_factorio_version: str = "1.1"
) -> dict[str, Any]:
    """Derive the mod's ``info.json`` document from the manifest.

    Standard package fields (author, homepage, bugs) are preferred; the
    ``factorio`` table supplies mod-specific values and may override
    the contact address.
    """
    factorio = manifest.get("factorio") or {}
    name = manifest.get("name")
    if not name:
        raise ManifestParseFailure("Manifest has no name")

    author = "Unknown Author"
    contact = None
    raw_author = manifest.get("author")
    if isinstance(raw_author, dict):
        author = raw_author.get("name") or author
        contact = raw_author.get("email")
    elif isinstance(raw_author, str) and raw_author:
        author = raw_author

    bugs = manifest.get("bugs")
    if not contact and isinstance(bugs, dict):
        contact = bugs.get("email")
    contact = factorio.get("contact") or contact

    factorio_version = factorio.get("factorio_version") or default_factorio_version
    info: dict[str, Any] = {
        "name": name,
        "version": version,
        "title": factorio.get("title") or name,
        "author": author,
        "factorio_version": factorio_version,
        "description": manifest.get("description") or "No description provided.",
        "contact": contact,
        "homepage": manifest.get("homepage") or factorio.get("homepage"),
        "dependencies": factorio.get("dependencies") or [f"base >= {factorio_version}"],
        **(factorio.get("dlc") or {}),
    }
    return {k: v for k, v in info.items() if v is not None}
