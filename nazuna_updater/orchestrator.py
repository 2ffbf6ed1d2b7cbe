# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Orchestrator

Runs one update attempt from start to a terminal state.

Update flow:
  1. Check git and npm are available
  2. Count down, letting the user cancel (nothing touched yet)
  3. Back up preserved state
  4. Clone the latest version into the staging directory
  5. Check dependencies against the current package.json
  6. Clean stale files from the working tree
  7. Overlay the staged tree onto the working tree
  8. Restore preserved state from the backup
  9. Reinstall dependencies if the check said so
 10. Remove the backup and record the upstream version

Recovery:
  - Backup taken, overlay not started: restore the backup automatically
  - Overlay started but incomplete: keep the backup, manual recovery
  - No backup: report that nothing was saved
  - Staging is always removed; the backup is only removed after success
"""

import asyncio
import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from . import __version__
from .cancellation import CancellationGuard, countdown
from .config import Config
from .dependencies import DependencyVerdict, check_dependencies, install_dependencies
from .errors import ApplyError, BackupError, MetadataError, UpdateError
from .fetcher import RemoteFetcher, remove_staging
from .inventory import MANIFEST_NAME, UpdatePaths
from .prereqs import check_requirements
from .replacer import apply_staging, clean_working_tree
from .restore import restore_snapshot
from .snapshot import SnapshotManager
from .version_log import record_version

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 44
EXIT_OK = 0
EXIT_FAILURE = 1


# =============================================================================
# DATA MODELS
# =============================================================================

class Phase(str, Enum):
    """Phases of an update attempt, in order."""
    INIT = "init"
    BACKED_UP = "backed_up"
    DOWNLOADED = "downloaded"
    CLEANED = "cleaned"
    APPLIED = "applied"
    RESTORED = "restored"
    DEPS_RESOLVED = "deps_resolved"
    DONE = "done"
    FAILED = "failed"


class Recovery(str, Enum):
    """What the failure path did with the working tree."""
    AUTO_RESTORED = "auto_restored"
    RESTORE_FAILED = "restore_failed"
    MANUAL = "manual"
    NO_BACKUP = "no_backup"


@dataclass
class UpdateAttempt:
    """In-memory progress of one attempt. Never persisted."""
    paths: UpdatePaths
    phase: Phase = Phase.INIT
    backup_created: bool = False
    download_successful: bool = False
    apply_started: bool = False
    update_applied: bool = False
    verdict: Optional[DependencyVerdict] = None
    installed: bool = False
    failed_phase: Optional[Phase] = None
    error: Optional[BaseException] = None
    recovery: Optional[Recovery] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.phase == Phase.DONE

    def advance(self, phase: Phase) -> None:
        logger.debug("Phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase


# =============================================================================
# UPDATER
# =============================================================================

class Updater:
    """Sequences the update phases with rollback-on-failure.

    Usage:
        updater = Updater(root=Path.cwd(), config=load_config())
        exit_code = await updater.main()
    """

    def __init__(
        self,
        root: Optional[Path] = None,
        config: Optional[Config] = None,
        guard: Optional[CancellationGuard] = None,
        now: Optional[datetime] = None,
    ):
        self.config = config or Config()
        self.paths = UpdatePaths.for_attempt(root or Path.cwd(), self.config.layout, now)
        self.guard = guard or CancellationGuard()
        self.attempt: Optional[UpdateAttempt] = None

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def main(self) -> int:
        """Check requirements, confirm, run the update and return an exit code.

        Raises:
            UpdateCancelled: If the user cancels during the countdown.
        """
        self._print_header()
        try:
            await check_requirements(self.config.install.required_tools)
        except UpdateError:
            return EXIT_FAILURE

        self.guard.arm(asyncio.get_running_loop())
        try:
            await countdown(self.config.prompt.countdown_seconds, self.guard)
            attempt = await self.run()
        finally:
            self.guard.close()

        return EXIT_OK if attempt.succeeded else EXIT_FAILURE

    async def run(self) -> UpdateAttempt:
        """Run every destructive phase and recover on failure."""
        self.guard.disarm()
        attempt = self.attempt = UpdateAttempt(paths=self.paths)
        try:
            await self._run_phases(attempt)
        except Exception as e:
            await self._recover(attempt, e)
            return attempt

        await self._finish(attempt)
        return attempt

    async def recover_interrupted(self) -> Optional[UpdateAttempt]:
        """Bring an attempt cut short by KeyboardInterrupt to a terminal state.

        Event loops without signal handlers (Windows) cannot ignore Ctrl+C
        while the destructive phases run, so the interrupted attempt goes
        through the normal recovery path afterwards.
        """
        attempt = self.attempt
        if attempt is None or attempt.phase in (Phase.DONE, Phase.FAILED):
            return attempt
        await self._recover(attempt, UpdateError("Update interrupted before it finished"))
        return attempt

    # =========================================================================
    # PHASES
    # =========================================================================

    async def _run_phases(self, attempt: UpdateAttempt) -> None:
        paths = self.paths

        snapshot = SnapshotManager(paths, self.config.layout)
        await asyncio.to_thread(snapshot.create_snapshot)
        if not paths.backup_dir.is_dir():
            raise BackupError("Backup directory missing after backup")
        attempt.backup_created = True
        attempt.advance(Phase.BACKED_UP)

        fetcher = RemoteFetcher(paths, self.config.remote, self.config.prompt)
        await fetcher.fetch_latest()
        attempt.download_successful = True
        attempt.advance(Phase.DOWNLOADED)

        # Decided once against the current manifest and reused by the installer
        attempt.verdict = await asyncio.to_thread(check_dependencies, paths.root)
        await asyncio.to_thread(clean_working_tree, paths, attempt.verdict.needs_install)
        attempt.advance(Phase.CLEANED)

        attempt.apply_started = True
        await asyncio.to_thread(apply_staging, paths)
        if not paths.in_root(MANIFEST_NAME).exists():
            raise ApplyError(f"Update incomplete - {MANIFEST_NAME} missing")
        attempt.update_applied = True
        attempt.advance(Phase.APPLIED)

        await asyncio.to_thread(restore_snapshot, paths)
        attempt.advance(Phase.RESTORED)

        attempt.installed = await install_dependencies(
            paths.root,
            attempt.verdict,
            self.config.install,
            self.config.prompt,
        )
        attempt.advance(Phase.DEPS_RESOLVED)

    async def _finish(self, attempt: UpdateAttempt) -> None:
        await self._cleanup_staging()

        logger.info("Removing backup of the successful update...")
        try:
            await asyncio.to_thread(shutil.rmtree, self.paths.backup_dir)
            logger.debug("Backup removed: %s", self.paths.backup_dir.name)
        except OSError as e:
            logger.warning("Could not remove the backup (%s). Delete it manually: %s", e, self.paths.backup_dir)
            attempt.warnings.append(str(e))

        try:
            await record_version(self.paths, self.config.remote)
        except MetadataError as e:
            logger.warning("Could not record the version (updateSave.json): %s", e)
            logger.info("The update was applied, but the version record may be outdated.")
            attempt.warnings.append(str(e))

        attempt.advance(Phase.DONE)
        logger.info(SEPARATOR)
        logger.info("Update completed successfully!")
        logger.warning("Remember to check whether upstream added new dependencies to package.json!")
        logger.info("Start the bot with: npm start")
        logger.info(SEPARATOR)

    # =========================================================================
    # RECOVERY
    # =========================================================================

    async def _recover(self, attempt: UpdateAttempt, error: BaseException) -> None:
        attempt.failed_phase = attempt.phase
        attempt.error = error
        attempt.advance(Phase.FAILED)

        logger.info(SEPARATOR)
        if isinstance(error, UpdateError):
            logger.error("Error during update: %s", error)
        else:
            logger.exception("Unexpected error during update: %s", error)

        if attempt.backup_created and not attempt.apply_started:
            if attempt.download_successful:
                logger.warning("The update was not applied. Restoring preserved files from the backup...")
            try:
                await asyncio.to_thread(restore_snapshot, self.paths)
                attempt.recovery = Recovery.AUTO_RESTORED
                logger.info("Backup of the previous version restored automatically.")
            except UpdateError as e:
                attempt.recovery = Recovery.RESTORE_FAILED
                logger.error("Failed to restore backup automatically: %s", e)
        elif attempt.backup_created and not attempt.update_applied:
            attempt.recovery = Recovery.MANUAL
            logger.warning("The update was only partially applied.")
            logger.warning("The working tree may mix old and new files; it was not restored automatically.")
        elif not attempt.backup_created:
            attempt.recovery = Recovery.NO_BACKUP
            logger.warning("No backup was created. Your files were not modified by the updater.")
        else:
            attempt.recovery = Recovery.MANUAL
            logger.warning("The new version was applied, but a later step failed.")

        await self._cleanup_staging()

        if self.paths.backup_dir.exists():
            logger.warning("Backup available at: %s", self.paths.backup_dir)
            logger.info("To restore manually, copy the backup files to the matching directories.")
        else:
            logger.warning("Backup available at: unavailable")
        logger.info("If in doubt, contact the developer.")

    async def _cleanup_staging(self) -> None:
        try:
            if await asyncio.to_thread(remove_staging, self.paths):
                logger.debug("Staging directory removed.")
        except OSError as e:
            logger.error("Failed to remove staging directory %s: %s", self.paths.staging_dir, e)

    def _print_header(self) -> None:
        logger.info(SEPARATOR)
        logger.info("Nazuna Updater %s", __version__)
        logger.info(SEPARATOR)
