# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Replacer

Removes stale artifacts from the working tree and overlays the staged
checkout on top of it. Files with the same relative path are replaced;
files that only exist in the working tree are left alone.
"""

import logging
import shutil
from pathlib import Path
from typing import List

from .errors import ApplyError, CleanError
from .inventory import CLEARED_STATE, DEPENDENCY_ARTIFACTS, STALE_ARTIFACTS, UpdatePaths

logger = logging.getLogger(__name__)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def clean_working_tree(paths: UpdatePaths, force_clean: bool) -> List[str]:
    """Remove files the update replaces or that restore will put back.

    Args:
        paths: Paths of the current attempt.
        force_clean: Also drop node_modules and package-lock.json. Only set
            when a reinstall is already known to be needed.

    Returns:
        Relative paths that were removed.

    Raises:
        CleanError: If any removal fails.
    """
    logger.info("Cleaning old files...")
    targets = list(STALE_ARTIFACTS)
    if force_clean:
        targets.extend(DEPENDENCY_ARTIFACTS)
    else:
        logger.debug("Keeping existing %s", ", ".join(DEPENDENCY_ARTIFACTS))
    targets.extend(CLEARED_STATE)

    removed = []
    try:
        for relative in targets:
            path = paths.in_root(relative)
            if not path.exists() and not path.is_symlink():
                continue
            logger.debug("Removing %s...", relative)
            _remove(path)
            removed.append(relative)
    except OSError as e:
        logger.error("Failed to clean old files: %s", e)
        raise CleanError(f"Failed to remove {relative}: {e}") from e

    logger.info("Cleanup completed successfully.")
    return removed


def apply_staging(paths: UpdatePaths) -> None:
    """Copy every entry of the staging tree over the working tree, then delete it.

    Raises:
        ApplyError: If the staging tree is missing or the copy fails.
    """
    logger.info("Applying update...")
    staging = paths.staging_dir
    if not staging.is_dir():
        raise ApplyError(f"Staging directory not found: {staging}")

    try:
        shutil.copytree(staging, paths.root, symlinks=True, dirs_exist_ok=True)
        shutil.rmtree(staging)
    except OSError as e:
        logger.error("Failed to apply update: %s", e)
        raise ApplyError(f"Failed to apply update: {e}") from e

    logger.info("Update applied successfully.")
