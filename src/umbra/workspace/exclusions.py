"""Exclusion patterns that keep bulky or sensitive files out of checkpoints."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from ..config import REPOSITORY_DEFAULTS

logger = logging.getLogger(__name__)

BUILD_ARTIFACTS = [
    ".gradle/",
    ".idea/",
    ".parcel-cache/",
    ".pytest_cache/",
    ".next/",
    ".nuxt/",
    ".sass-cache/",
    ".vs/",
    ".vscode/",
    "Pods/",
    "__pycache__/",
    "bin/",
    "build/",
    "bundle/",
    "coverage/",
    "deps/",
    "dist/",
    "env/",
    "node_modules/",
    "obj/",
    "out/",
    "pkg/",
    "pycache/",
    "target/dependency/",
    "temp/",
    "vendor/",
    "venv/",
    ".venv/",
]

MEDIA_FILES = [
    "*.jpg",
    "*.jpeg",
    "*.png",
    "*.gif",
    "*.bmp",
    "*.ico",
    "*.webp",
    "*.tiff",
    "*.tif",
    "*.raw",
    "*.heic",
    "*.avif",
    "*.eps",
    "*.psd",
    "*.3gp",
    "*.aac",
    "*.aiff",
    "*.asf",
    "*.avi",
    "*.divx",
    "*.flac",
    "*.m4a",
    "*.m4v",
    "*.mkv",
    "*.mov",
    "*.mp3",
    "*.mp4",
    "*.mpeg",
    "*.mpg",
    "*.ogg",
    "*.opus",
    "*.rm",
    "*.rmvb",
    "*.vob",
    "*.wav",
    "*.webm",
    "*.wma",
    "*.wmv",
]

CACHE_FILES = [
    "*.DS_Store",
    "*.bak",
    "*.cache",
    "*.crdownload",
    "*.dmp",
    "*.dump",
    "*.eslintcache",
    "*.lock",
    "*.log",
    "*.old",
    "*.part",
    "*.partial",
    "*.pyc",
    "*.pyo",
    "*.stackdump",
    "*.swo",
    "*.swp",
    "*.temp",
    "*.tmp",
    "*.Thumbs.db",
]

CONFIG_FILES = [
    "*.env*",
    "*.local",
    "*.development",
    "*.production",
]

LARGE_DATA_FILES = [
    "*.zip",
    "*.tar",
    "*.gz",
    "*.rar",
    "*.7z",
    "*.iso",
    "*.bin",
    "*.exe",
    "*.dll",
    "*.so",
    "*.dylib",
    "*.dat",
    "*.dmg",
    "*.msi",
]

DATABASE_FILES = [
    "*.arrow",
    "*.accdb",
    "*.aof",
    "*.avro",
    "*.bak",
    "*.bson",
    "*.csv",
    "*.db",
    "*.dbf",
    "*.dmp",
    "*.frm",
    "*.ibd",
    "*.mdb",
    "*.myd",
    "*.myi",
    "*.orc",
    "*.parquet",
    "*.pdb",
    "*.rdb",
    "*.sql",
    "*.sqlite",
    "*.sqlite3",
    "*.db-journal",
    "*.db-shm",
    "*.db-wal",
]

GEOSPATIAL_FILES = [
    "*.shp",
    "*.shx",
    "*.dbf",
    "*.prj",
    "*.sbn",
    "*.sbx",
    "*.kmz",
    "*.gpx",
    "*.mbtiles",
    "*.tif",
]

LOG_FILES = [
    "*.error",
    "*.log",
    "*.logs",
    "*.npm-debug.log*",
    "*.out",
    "*.stdout",
    "yarn-debug.log*",
    "yarn-error.log*",
]

METADATA_DIRS = [
    f"{REPOSITORY_DEFAULTS.metadata_dirname}/",
    f"{REPOSITORY_DEFAULTS.metadata_dirname}{REPOSITORY_DEFAULTS.disabled_suffix}/",
]

DEFAULT_EXCLUDES = [
    *METADATA_DIRS,
    *BUILD_ARTIFACTS,
    *MEDIA_FILES,
    *CACHE_FILES,
    *CONFIG_FILES,
    *LARGE_DATA_FILES,
    *DATABASE_FILES,
    *GEOSPATIAL_FILES,
    *LOG_FILES,
]


def read_lfs_patterns(workspace: Path) -> list[str]:
    """Return the Git LFS patterns declared in the workspace's .gitattributes."""

    attributes = Path(workspace) / ".gitattributes"
    try:
        content = attributes.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except OSError as exc:
        logger.warning(
            "Unable to read .gitattributes; continuing without LFS patterns",
            extra={"path": str(attributes), "error": str(exc)},
        )
        return []

    patterns: list[str] = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "filter=lfs" in stripped:
            patterns.append(stripped.split()[0])
    return patterns


def _dedupe(patterns: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for pattern in patterns:
        if pattern not in seen:
            seen.add(pattern)
            ordered.append(pattern)
    return ordered


def get_exclusion_patterns(workspace: Path) -> list[str]:
    """Built-in exclusions followed by the workspace's LFS patterns, in order, without repeats."""

    return _dedupe([*DEFAULT_EXCLUDES, *read_lfs_patterns(workspace)])


def write_exclusion_file(metadata_path: Path, patterns: Iterable[str]) -> Path:
    """Write ``patterns`` to ``info/exclude`` inside the metadata directory."""

    exclude_path = Path(metadata_path) / "info" / "exclude"
    exclude_path.parent.mkdir(parents=True, exist_ok=True)
    exclude_path.write_text("\n".join(patterns) + "\n", encoding="utf-8")
    return exclude_path


__all__ = [
    "DEFAULT_EXCLUDES",
    "get_exclusion_patterns",
    "read_lfs_patterns",
    "write_exclusion_file",
]
