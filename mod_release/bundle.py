"""Mod bundling: build, stage, zip.

Produces ``releases/<name>_<version>.zip`` from the build output in the
dist directory, together with the generated ``info.json`` and
``changelog.txt`` and any optional assets from the source directory.
"""

from __future__ import annotations

import json
import shutil
import zipfile
from pathlib import Path
from typing import Any

from .config import ReleaseConfig
from .exceptions import BuildFailed
from .manifest import build_mod_info
from .shell import run, step

EXCLUDED_NAMES = {".DS_Store"}


def prepare_dist(dist_dir: Path) -> None:
    """Recreate an empty dist directory."""
    if dist_dir.exists():
        shutil.rmtree(dist_dir)
    dist_dir.mkdir(parents=True)


def write_metadata(
    dist_dir: Path, info: dict[str, Any], changelog_text: str
) -> None:
    (dist_dir / "info.json").write_text(json.dumps(info, indent=2, ensure_ascii=False))
    (dist_dir / "changelog.txt").write_text(changelog_text)
    print(f"  Wrote info.json and changelog.txt to {dist_dir}")


def run_build(command: list[str]) -> None:
    """Run the external build command; it is expected to write into dist."""
    if not command:
        print("  No build command configured")
        return
    print(f"  $ {' '.join(command)}")
    result = run(*command, check=False)
    if result.returncode != 0:
        raise BuildFailed(
            f"Build command failed with exit code {result.returncode}: {' '.join(command)}"
        )


def copy_assets(
    source_dir: Path, dist_dir: Path, files: list[str], dirs: list[str]
) -> list[str]:
    """Copy optional assets into dist, skipping any that don't exist.

    Returns:
        Names of the assets that were copied.
    """
    copied: list[str] = []
    for name in files:
        src = source_dir / name
        if src.is_file():
            shutil.copy2(src, dist_dir / name)
            copied.append(name)
    for name in dirs:
        src = source_dir / name
        if src.is_dir():
            shutil.copytree(src, dist_dir / name, dirs_exist_ok=True)
            copied.append(name)
    for name in copied:
        print(f"  Copied {name}")
    return copied


def zip_dist(dist_dir: Path, zip_path: Path, folder_name: str) -> Path:
    """Zip the contents of ``dist_dir`` under a single top-level folder."""
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    if zip_path.exists():
        zip_path.unlink()
        print(f"  Removed existing {zip_path.name}")

    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in sorted(dist_dir.rglob("*")):
            if path.name in EXCLUDED_NAMES or not path.is_file():
                continue
            zf.write(path, f"{folder_name}/{path.relative_to(dist_dir).as_posix()}")
    print(f"  Created {zip_path}")
    return zip_path


def bundle_mod(
    config: ReleaseConfig,
    manifest: dict[str, Any],
    version: str,
    changelog_text: str,
    *,
    build_id: str,
    skip_build: bool = False,
) -> Path:
    """Build and package the mod.

    Args:
        config: Release configuration.
        manifest: Parsed manifest (for name and mod metadata).
        version: Version being packaged.
        changelog_text: Rendered cumulative changelog.
        build_id: Short hash plus optional ``-dirty`` suffix, used in the
            zip's top-level folder name.
        skip_build: Don't run the build command (metadata and assets only).

    Returns:
        Path to the created zip.
    """
    info = build_mod_info(manifest, version, config.default_factorio_version)
    name = info["name"]
    step(f"Packaging {name} {version}")

    prepare_dist(config.dist_dir)
    write_metadata(config.dist_dir, info, changelog_text)
    if not skip_build:
        run_build(config.build_command)
    copy_assets(config.source_dir, config.dist_dir, config.asset_files, config.asset_dirs)

    zip_path = config.releases_dir / f"{name}_{version}.zip"
    return zip_dist(config.dist_dir, zip_path, f"{name}_{version}-{build_id}")
