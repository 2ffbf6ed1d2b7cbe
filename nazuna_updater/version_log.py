# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Version Log

Records the number of commits in the upstream repository after a
successful update. The bot compares this count to tell whether it is
behind. Failing to record it never fails the update.
"""

import asyncio
import json
import logging
import os
import re
from typing import Dict, Optional

import aiohttp

from . import __version__
from .config import RemoteConfig
from .errors import MetadataError
from .inventory import VERSION_LOG, UpdatePaths

logger = logging.getLogger(__name__)

LAST_PAGE_PATTERN = re.compile(r'page=(\d+)>;\s*rel="last"')


def _get_headers() -> Dict[str, str]:
    """Get HTTP headers for GitHub API requests."""
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": f"nazuna-updater/{__version__}",
    }
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def parse_commit_total(link_header: Optional[str]) -> int:
    """Extract the last page number from a GitHub ``Link`` header.

    With ``per_page=1`` the last page number equals the commit count.
    """
    if not link_header:
        return 0
    match = LAST_PAGE_PATTERN.search(link_header)
    return int(match.group(1)) if match else 0


async def fetch_commit_total(remote: RemoteConfig) -> int:
    """Ask the commits API how many commits the repository has."""
    try:
        async with aiohttp.ClientSession() as session:
            timeout = aiohttp.ClientTimeout(total=remote.request_timeout)
            async with session.get(remote.commits_api_url, headers=_get_headers(), timeout=timeout) as resp:
                if resp.status != 200:
                    raise MetadataError(f"Failed to fetch commits: {resp.status} {resp.reason}")
                return parse_commit_total(resp.headers.get("Link"))
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise MetadataError(f"Commits API request failed: {e}") from e


async def record_version(paths: UpdatePaths, remote: Optional[RemoteConfig] = None) -> int:
    """Fetch the commit count and write it to updateSave.json.

    Raises:
        MetadataError: If the count cannot be fetched or written.
    """
    logger.info("Fetching latest commit information...")
    total = await fetch_commit_total(remote or RemoteConfig())

    target = paths.in_root(VERSION_LOG)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"total": total}), encoding="utf-8")
    except OSError as e:
        raise MetadataError(f"Failed to write {target.name}: {e}") from e

    logger.debug("%s updated (total=%d).", target.name, total)
    return total
