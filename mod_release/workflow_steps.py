"""Helpers for GitHub Actions workflow steps."""

from __future__ import annotations

import os
from pathlib import Path


def github_output_path(explicit: str | None = None) -> str | None:
    """Return the step output file: the explicit path, else $GITHUB_OUTPUT."""
    return explicit or os.environ.get("GITHUB_OUTPUT") or None


def write_output(output_path: str, name: str, value: str) -> None:
    with open(output_path, "a") as fh:
        fh.write(f"{name}={value}\n")


def write_package_outputs(output_path: str, zip_path: Path, version: str) -> None:
    """Expose the packaged zip to later workflow steps."""
    write_output(output_path, "MOD_VERSION", version)
    write_output(output_path, "MOD_ZIP_NAME", zip_path.name)
    write_output(output_path, "MOD_ZIP_PATH", str(zip_path.resolve()))
