# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Entry Point

Run from the bot installation directory:
    python -m nazuna_updater
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from .cancellation import GuardState, UpdateCancelled
from .config import load_config, setup_logging
from .orchestrator import EXIT_FAILURE, EXIT_OK, Updater

logger = logging.getLogger(__name__)


def main(root: Optional[Path] = None) -> int:
    """Run one update in ``root`` (default: current directory) and return the exit code."""
    config = load_config()
    setup_logging(config.logging)

    updater = Updater(root=root or Path.cwd(), config=config)
    try:
        return asyncio.run(updater.main())
    except UpdateCancelled:
        print()
        logger.warning("Update cancelled by user.")
        return EXIT_OK
    except KeyboardInterrupt:
        print()
        if updater.guard.state != GuardState.DISARMED:
            logger.warning("Update cancelled by user.")
            return EXIT_OK

    # Interrupted during the destructive phases
    attempt = asyncio.run(updater.recover_interrupted())
    return EXIT_OK if attempt is not None and attempt.succeeded else EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
