# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Snapshot Manager

Copies every preserved state path into a timestamped backup directory
before anything in the working tree is touched.

Snapshot flow:
  1. Remove backup directories left behind by previous runs
  2. Create the backup root and the state directory skeleton
  3. Copy each state path that exists in the working tree
  4. Check customized files still carry their marker (warning only)
  5. Require the database directory or the config file to be captured
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional

from .config import LayoutConfig
from .errors import BackupError
from .inventory import STATE_PATHS, STATE_SKELETON, StatePath, UpdatePaths, backup_name_regex

logger = logging.getLogger(__name__)


def verify_file_content(path: Path, expected: str) -> bool:
    """Check whether a text file contains ``expected``."""
    if not path.is_file():
        return False
    try:
        return expected in path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return False


def copy_state_path(state: StatePath, source_root: Path, dest_root: Path) -> bool:
    """Copy one state path between two roots with the same layout.

    Returns:
        True if the path existed under ``source_root`` and was copied.
    """
    source = source_root / state.relative_path
    dest = dest_root / state.relative_path
    if not source.exists():
        return False

    if state.is_dir:
        shutil.copytree(source, dest, dirs_exist_ok=True)
    else:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, dest)
    return True


class SnapshotManager:
    """Creates the backup of preserved state for one update attempt."""

    def __init__(self, paths: UpdatePaths, layout: Optional[LayoutConfig] = None):
        self.paths = paths
        self.layout = layout or LayoutConfig()
        self.copied: List[StatePath] = []

    def cleanup_old_backups(self) -> List[Path]:
        """Remove backup directories from earlier runs, except the current one.

        Failures are logged and never block the new backup.
        """
        logger.info("Checking for old backups...")
        pattern = backup_name_regex(self.layout)
        removed = []
        try:
            for entry in sorted(self.paths.root.iterdir()):
                if not pattern.match(entry.name) or not entry.is_dir():
                    continue
                if entry.resolve() == self.paths.backup_dir.resolve():
                    continue
                logger.debug("Removing old backup: %s", entry.name)
                shutil.rmtree(entry)
                removed.append(entry)
        except OSError as e:
            logger.warning("Failed to clean up old backups: %s", e)
        return removed

    def create_snapshot(self) -> Path:
        """Back up every state path present in the working tree.

        Returns:
            Path to the backup root.

        Raises:
            BackupError: If the backup location is invalid, a required path
                could not be copied, or no crucial state was captured.
        """
        self.cleanup_old_backups()

        logger.info("Creating backup...")
        backup_dir = self.paths.backup_dir
        if not self.paths.is_safe(backup_dir):
            raise BackupError(f"Invalid backup path: {backup_dir}")

        self.copied = []
        try:
            for skeleton in STATE_SKELETON:
                self.paths.in_backup(skeleton).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackupError(f"Failed to create backup directory: {e}") from e

        for state in STATE_PATHS:
            self._copy(state)

        if not any(state.crucial for state in self.copied):
            raise BackupError("Incomplete backup - no crucial state was copied")

        logger.info("Backup saved to: %s", backup_dir)
        return backup_dir

    def _copy(self, state: StatePath) -> None:
        if not self.paths.in_root(state.relative_path).exists():
            return

        logger.debug("Backing up %s...", state.relative_path)
        try:
            copy_state_path(state, self.paths.root, self.paths.backup_dir)
        except OSError as e:
            if state.required:
                raise BackupError(f"Failed to back up {state.relative_path}: {e}") from e
            logger.warning("Failed to back up %s: %s", state.relative_path, e)
            return

        self.copied.append(state)

        marker = state.marker_text(self.layout)
        if marker is None:
            return
        if verify_file_content(self.paths.in_backup(state.relative_path), marker):
            logger.debug("Backup OK: %s contains its marker", state.relative_path)
        else:
            logger.warning(
                "Backed up %s does NOT contain the customization marker. Check it.",
                state.relative_path,
            )
