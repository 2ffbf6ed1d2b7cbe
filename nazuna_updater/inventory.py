# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater State Inventory

Declares which paths of an installation are preserved state (user data,
config, customizations, dependency manifest) and which are replaceable
code. Snapshot, restore and clean all read the same tables here, so any
path that is backed up always has a matching restore rule.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from .config import LayoutConfig


class PathKind(str, Enum):
    """Kind of filesystem entry a StatePath refers to."""
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class StatePath:
    """A path preserved across updates, relative to the installation root.

    ``required`` paths abort the backup when they exist but cannot be
    copied. ``crucial`` paths are the ones whose presence in the snapshot
    makes it usable. ``marker`` names the LayoutConfig attribute holding the
    string a customized file is expected to contain.
    """
    relative_path: str
    kind: PathKind
    required: bool = True
    crucial: bool = False
    marker: Optional[str] = None

    @property
    def is_dir(self) -> bool:
        return self.kind == PathKind.DIRECTORY

    def marker_text(self, layout: LayoutConfig) -> Optional[str]:
        if self.marker is None:
            return None
        return getattr(layout, self.marker)


DATABASE_DIR = StatePath("dados/database", PathKind.DIRECTORY, crucial=True)
MEDIA_DIR = StatePath("dados/midias", PathKind.DIRECTORY)
CONFIG_FILE = StatePath("dados/src/config.json", PathKind.FILE, crucial=True)
UPDATE_SCRIPT = StatePath("dados/src/.scripts/update.js", PathKind.FILE, required=False, marker="update_marker")
INDEX_SCRIPT = StatePath("dados/src/index.js", PathKind.FILE, required=False, marker="index_marker")
MANIFEST_FILE = StatePath("package.json", PathKind.FILE)

STATE_PATHS: Tuple[StatePath, ...] = (
    DATABASE_DIR,
    CONFIG_FILE,
    UPDATE_SCRIPT,
    INDEX_SCRIPT,
    MANIFEST_FILE,
    MEDIA_DIR,
)

# Directories created in both the snapshot and the working tree before copying
STATE_SKELETON: Tuple[str, ...] = (
    "dados/database",
    "dados/src/.scripts",
    "dados/midias",
)

# Removed from the working tree on every update
STALE_ARTIFACTS: Tuple[str, ...] = (
    ".git",
    ".github",
    ".npm",
    "README.md",
)

# Removed only when a dependency reinstall is already known to be needed
DEPENDENCY_ARTIFACTS: Tuple[str, ...] = (
    "node_modules",
    "package-lock.json",
)

# State paths cleared before the overlay so restore never merges with stale
# survivors; ".scripts" also drops any legacy scripts shipped by old versions
CLEARED_STATE: Tuple[str, ...] = (
    "dados/src/config.json",
    "dados/src/.scripts",
    "dados/src/index.js",
)

# Removed from the staged tree so the local hand-written doc is not clobbered
STAGED_DOC = "README.md"

MANIFEST_NAME = "package.json"
INSTALL_DIR_NAME = "node_modules"
VERSION_LOG = "dados/database/updateSave.json"

# Matches backup directories from any previous run: backup_YYYY-MM-DD_...
BACKUP_NAME_PATTERN = r"^{prefix}\d{{4}}-\d{{2}}-\d{{2}}_"


def backup_timestamp(now: Optional[datetime] = None) -> str:
    """Return an ISO-8601 UTC timestamp safe for directory names.

    ``2026-10-19T12:34:56.789Z`` becomes ``2026-10-19_12_34_56_789Z``.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    return re.sub(r"[:.]", "_", iso).replace("T", "_")


def backup_name_regex(layout: LayoutConfig) -> "re.Pattern[str]":
    return re.compile(BACKUP_NAME_PATTERN.format(prefix=re.escape(layout.backup_prefix)))


@dataclass(frozen=True)
class UpdatePaths:
    """Filesystem locations used by a single update attempt."""
    root: Path
    backup_dir: Path
    staging_dir: Path

    @classmethod
    def for_attempt(
        cls,
        root: Path,
        layout: Optional[LayoutConfig] = None,
        now: Optional[datetime] = None,
    ) -> "UpdatePaths":
        """Build the paths for one attempt rooted at ``root``."""
        if layout is None:
            layout = LayoutConfig()
        root = Path(root).resolve()
        return cls(
            root=root,
            backup_dir=root / f"{layout.backup_prefix}{backup_timestamp(now)}",
            staging_dir=root / layout.staging_dir_name,
        )

    def in_root(self, relative_path: str) -> Path:
        return self.root / relative_path

    def in_backup(self, relative_path: str) -> Path:
        return self.backup_dir / relative_path

    def in_staging(self, relative_path: str) -> Path:
        return self.staging_dir / relative_path

    def is_safe(self, path: Path) -> bool:
        """Check that ``path`` is a direct child of the root with no '..' parts."""
        return ".." not in path.parts and path.parent == self.root
