# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Restorer

Copies preserved state from a snapshot back into the working tree using
the same layout the Snapshot Manager wrote. This is also how the old
package.json returns after the overlay, so the dependency decision is
always made against the pre-update manifest.
"""

import logging
from typing import List

from .errors import RestoreError
from .inventory import STATE_PATHS, STATE_SKELETON, StatePath, UpdatePaths
from .snapshot import copy_state_path

logger = logging.getLogger(__name__)


def restore_snapshot(paths: UpdatePaths) -> List[StatePath]:
    """Restore every state path found in the snapshot.

    Paths absent from the snapshot are skipped, which is the normal case
    for a fresh install.

    Returns:
        The state paths that were restored.

    Raises:
        RestoreError: If the snapshot is missing or a copy fails.
    """
    logger.info("Restoring backup...")
    if not paths.backup_dir.is_dir():
        raise RestoreError(f"Backup directory not found: {paths.backup_dir}")

    restored = []
    try:
        for skeleton in STATE_SKELETON:
            paths.in_root(skeleton).mkdir(parents=True, exist_ok=True)

        for state in STATE_PATHS:
            if copy_state_path(state, paths.backup_dir, paths.root):
                logger.debug("Restored %s", state.relative_path)
                restored.append(state)
    except OSError as e:
        raise RestoreError(f"Failed to restore backup: {e}") from e

    logger.info("Backup restored successfully.")
    return restored
