# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Dependency Management

Decides whether the installed node_modules still satisfy the working-tree
package.json, and runs the install command when they do not.

The check only ever reads the manifest currently in the working tree. After
an update that is the restored pre-update manifest, so dependencies added
upstream are not detected or installed automatically.
"""

import asyncio
import json
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .config import InstallConfig, PromptConfig
from .errors import InstallError
from .inventory import INSTALL_DIR_NAME, MANIFEST_NAME
from .prereqs import resolve_executable
from .progress import run_with_progress

logger = logging.getLogger(__name__)

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies", "optionalDependencies")


class DependencyVerdict(str, Enum):
    """Outcome of comparing node_modules against package.json."""
    MANIFEST_MISSING = "manifest-missing"
    INSTALL_DIR_MISSING = "install-dir-missing"
    DEPENDENCY_MISSING = "dependency-missing"
    UP_TO_DATE = "up-to-date"
    CHECK_ERROR = "check-error"

    @property
    def needs_install(self) -> bool:
        return self is not DependencyVerdict.UP_TO_DATE


def declared_dependencies(manifest: dict) -> List[str]:
    """Names declared across all dependency sections, first occurrence wins."""
    names = {}
    for section in DEPENDENCY_SECTIONS:
        names.update(dict.fromkeys(manifest.get(section) or {}))
    return list(names)


def check_dependencies(root: Path) -> DependencyVerdict:
    """Compare the installed packages with the working-tree manifest.

    Reads only; calling it twice without filesystem changes gives the same
    verdict.
    """
    logger.info("Checking dependency changes...")
    try:
        manifest_path = root / MANIFEST_NAME
        if not manifest_path.exists():
            logger.debug("%s not found, install required", MANIFEST_NAME)
            return DependencyVerdict.MANIFEST_MISSING

        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))

        install_dir = root / INSTALL_DIR_NAME
        if not install_dir.exists():
            logger.debug("%s not found, install required", INSTALL_DIR_NAME)
            return DependencyVerdict.INSTALL_DIR_MISSING

        for name in declared_dependencies(manifest):
            if not (install_dir / name).exists():
                logger.debug("Dependency not installed: %s", name)
                return DependencyVerdict.DEPENDENCY_MISSING

        logger.debug("All dependencies of the current %s are installed.", MANIFEST_NAME)
        return DependencyVerdict.UP_TO_DATE
    except Exception as e:
        logger.warning("Failed to check dependencies: %s", e)
        return DependencyVerdict.CHECK_ERROR


async def _run_install(command: List[str], cwd: Path) -> None:
    try:
        proc = await asyncio.create_subprocess_exec(
            resolve_executable(command[0]),
            *command[1:],
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await proc.communicate()
    except OSError as e:
        raise InstallError(f"Failed to start {command[0]}: {e}") from e

    if proc.returncode != 0:
        detail = stderr.decode(errors="replace").strip() if stderr else ""
        logger.debug("%s stderr: %s", " ".join(command), detail)
        raise InstallError(f"Install command failed with exit code {proc.returncode}")


async def install_dependencies(
    root: Path,
    verdict: Optional[DependencyVerdict] = None,
    install: Optional[InstallConfig] = None,
    prompt: Optional[PromptConfig] = None,
) -> bool:
    """Run the install command unless the verdict says nothing is missing.

    Args:
        root: Working-tree root.
        verdict: Verdict computed earlier in the attempt. Recomputed if None.
        install: Install command settings.
        prompt: Spinner settings.

    Returns:
        True if the install command ran.

    Raises:
        InstallError: If the command fails or node_modules is still missing.
    """
    install = install or InstallConfig()
    prompt = prompt or PromptConfig()
    if verdict is None:
        verdict = check_dependencies(root)

    if not verdict.needs_install:
        logger.info("Dependencies are up to date, skipping install.")
        return False

    command_text = " ".join(install.command)
    logger.info("Installing dependencies from the restored %s (%s)...", MANIFEST_NAME, verdict.value)
    try:
        await run_with_progress(
            _run_install(install.command, root),
            "Installing dependencies...",
            interval=prompt.spinner_interval,
        )
        if not (root / INSTALL_DIR_NAME).exists():
            raise InstallError(f"{INSTALL_DIR_NAME} was not created by the install command")
    except InstallError as e:
        logger.error("Failed to install dependencies: %s", e)
        logger.info("Try running manually: %s", command_text)
        raise

    logger.info("Dependencies installed successfully.")
    return True
