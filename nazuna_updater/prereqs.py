# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Requirement Checks

Makes sure git and npm can be executed before anything is touched.
"""

import asyncio
import logging
import platform
import shutil
from typing import Iterable

from .errors import PrerequisiteError

logger = logging.getLogger(__name__)


def resolve_executable(name: str) -> str:
    """Full path of ``name`` on PATH, honouring PATHEXT (npm is npm.cmd on Windows)."""
    return shutil.which(name) or name


def install_hint(tool: str) -> str:
    """Platform-specific advice for installing a missing tool."""
    if tool == "git":
        system = platform.system()
        if system == "Windows":
            return "Install Git from: https://git-scm.com/download/win"
        if system == "Darwin":
            return "Install Git with: brew install git"
        return "Install Git with: sudo apt-get install git (Ubuntu/Debian) or equivalent"
    if tool in ("npm", "node"):
        return "Install Node.js and NPM from: https://nodejs.org"
    return f"Install {tool} and make sure it is on PATH"


async def check_tool(tool: str) -> str:
    """Run ``<tool> --version`` and return its output.

    Raises:
        PrerequisiteError: If the tool is missing or fails to run.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            resolve_executable(tool), "--version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        stdout, _ = await proc.communicate()
    except OSError as e:
        raise PrerequisiteError(tool, install_hint(tool)) from e

    if proc.returncode != 0:
        raise PrerequisiteError(tool, install_hint(tool))
    return stdout.decode(errors="replace").strip()


async def check_requirements(tools: Iterable[str]) -> None:
    """Check every required tool, stopping at the first missing one."""
    logger.info("Checking system requirements...")
    for tool in tools:
        try:
            version = await check_tool(tool)
        except PrerequisiteError as e:
            logger.error("%s not found! It is required to update.", tool)
            logger.info(e.hint)
            raise
        logger.debug("%s found: %s", tool, version)
    logger.debug("All requirements met.")
