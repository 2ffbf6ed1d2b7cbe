# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Remote Fetcher

Clones the latest revision of the source repository into the staging
directory and checks that the result is a real git checkout.
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional

import aiohttp

from . import __version__
from .config import PromptConfig, RemoteConfig
from .errors import FetchError
from .inventory import STAGED_DOC, UpdatePaths
from .progress import run_with_progress

logger = logging.getLogger(__name__)


async def check_connectivity(url: str, timeout: int = 5) -> bool:
    """Return True if ``url`` answers an HTTP request at all."""
    try:
        async with aiohttp.ClientSession() as session:
            async with session.head(
                url,
                headers={"User-Agent": f"nazuna-updater/{__version__}"},
                timeout=aiohttp.ClientTimeout(total=timeout),
                allow_redirects=True,
            ):
                return True
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.debug("Connectivity probe to %s failed: %s", url, e)
        return False


def remove_staging(paths: UpdatePaths) -> bool:
    """Delete the staging directory. Returns True if something was removed."""
    if not paths.staging_dir.exists():
        return False
    shutil.rmtree(paths.staging_dir)
    return True


class RemoteFetcher:
    """Shallow-clones the remote repository into the staging directory."""

    def __init__(
        self,
        paths: UpdatePaths,
        remote: Optional[RemoteConfig] = None,
        prompt: Optional[PromptConfig] = None,
    ):
        self.paths = paths
        self.remote = remote or RemoteConfig()
        self.prompt = prompt or PromptConfig()

    async def fetch_latest(self) -> Path:
        """Clone the latest revision and validate the checkout.

        Returns:
            Path to the staging directory.

        Raises:
            FetchError: If the clone fails or does not produce a checkout.
        """
        logger.info("Downloading the latest version...")
        try:
            await self._prepare_staging()
            await run_with_progress(
                self._clone(),
                "Downloading...",
                interval=self.prompt.spinner_interval,
            )
            self._validate()
        except FetchError as e:
            logger.error("Failed to download the update: %s", e)
            await self._diagnose()
            raise

        self._remove_staged_doc()
        logger.info("Download completed successfully.")
        return self.paths.staging_dir

    async def _prepare_staging(self) -> None:
        staging = self.paths.staging_dir
        if not self.paths.is_safe(staging):
            raise FetchError(f"Invalid staging path: {staging}")
        if staging.exists():
            logger.debug("Removing existing staging directory...")
            try:
                await asyncio.to_thread(shutil.rmtree, staging)
            except OSError as e:
                raise FetchError(f"Failed to clear staging directory: {e}") from e

    async def _clone(self) -> None:
        logger.debug("Cloning %s...", self.remote.repo_url)
        try:
            proc = await asyncio.create_subprocess_exec(
                "git", "clone", "--depth", str(self.remote.clone_depth),
                self.remote.repo_url, str(self.paths.staging_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await proc.communicate()
        except OSError as e:
            raise FetchError(f"Failed to start git: {e}") from e

        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip() if stderr else ""
            logger.debug("git clone stderr: %s", detail)
            raise FetchError(f"Git clone failed with exit code {proc.returncode}")

    def _validate(self) -> None:
        staging = self.paths.staging_dir
        if not staging.is_dir():
            raise FetchError("Staging directory was not created by the clone")
        if not (staging / ".git").exists():
            raise FetchError("Invalid git clone: no .git metadata in staging directory")

    def _remove_staged_doc(self) -> None:
        doc = self.paths.in_staging(STAGED_DOC)
        try:
            if doc.exists():
                doc.unlink()
        except OSError as e:
            logger.warning("Could not remove %s from the download: %s", STAGED_DOC, e)

    async def _diagnose(self) -> None:
        logger.info("Checking connectivity to %s...", self.remote.probe_url)
        if await check_connectivity(self.remote.probe_url, self.remote.probe_timeout):
            logger.warning("Network is reachable. Check git permissions or configuration.")
        else:
            logger.warning("No internet connection. Check your network.")
