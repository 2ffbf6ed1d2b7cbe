# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Version Log Tests

HTTP calls go to a local aiohttp test server.
Run with: pytest tests/test_version_log.py -v
"""

import asyncio
import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from nazuna_updater.config import RemoteConfig
from nazuna_updater.errors import MetadataError
from nazuna_updater.fetcher import check_connectivity
from nazuna_updater.version_log import fetch_commit_total, parse_commit_total, record_version

LINK_HEADER = (
    '<https://api.github.com/repositories/1/commits?per_page=1&page=2>; rel="next", '
    '<https://api.github.com/repositories/1/commits?per_page=1&page=1873>; rel="last"'
)


async def _with_server(handler, scenario):
    app = web.Application()
    app.router.add_get("/commits", handler)
    async with TestServer(app) as server:
        return await scenario(str(server.make_url("/commits")))


async def _commits(request):
    return web.json_response([{"sha": "abc"}], headers={"Link": LINK_HEADER})


# =============================================================================
# PARSING
# =============================================================================

def test_parse_commit_total():
    """Test the last page number is the commit count."""
    assert parse_commit_total(LINK_HEADER) == 1873


def test_parse_commit_total_without_last():
    """Test a missing or incomplete header counts as zero."""
    assert parse_commit_total(None) == 0
    assert parse_commit_total("") == 0
    assert parse_commit_total('<https://x/commits?page=2>; rel="next"') == 0


# =============================================================================
# HTTP
# =============================================================================

def test_token_is_optional(monkeypatch):
    """Test requests are unauthenticated unless GITHUB_TOKEN is set."""
    captured = []

    async def commits(request):
        captured.append(request.headers.get("Authorization"))
        return await _commits(request)

    async def scenario(url):
        return await fetch_commit_total(RemoteConfig(commits_api_url=url))

    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    asyncio.run(_with_server(commits, scenario))
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_example")
    asyncio.run(_with_server(commits, scenario))

    assert captured == [None, "Bearer ghp_example"]


def test_fetch_commit_total():
    """Test the count is read from the Link header of the API response."""
    async def scenario(url):
        return await fetch_commit_total(RemoteConfig(commits_api_url=url))

    assert asyncio.run(_with_server(_commits, scenario)) == 1873


def test_fetch_commit_total_http_error():
    """Test a non-200 response raises MetadataError."""
    async def rate_limited(request):
        return web.json_response({"message": "API rate limit exceeded"}, status=403)

    async def scenario(url):
        return await fetch_commit_total(RemoteConfig(commits_api_url=url))

    with pytest.raises(MetadataError, match="403"):
        asyncio.run(_with_server(rate_limited, scenario))


def test_fetch_commit_total_unreachable():
    """Test a connection failure raises MetadataError."""
    remote = RemoteConfig(commits_api_url="http://127.0.0.1:1/commits", request_timeout=5)

    with pytest.raises(MetadataError):
        asyncio.run(fetch_commit_total(remote))


def test_record_version_writes_file(paths):
    """Test updateSave.json receives the total."""
    async def scenario(url):
        return await record_version(paths, RemoteConfig(commits_api_url=url))

    total = asyncio.run(_with_server(_commits, scenario))

    assert total == 1873
    saved = json.loads(paths.in_root("dados/database/updateSave.json").read_text())
    assert saved == {"total": 1873}


def test_check_connectivity():
    """Test the probe reports reachable and unreachable hosts."""
    async def scenario(url):
        return await check_connectivity(url, timeout=5)

    assert asyncio.run(_with_server(_commits, scenario)) is True
    assert asyncio.run(check_connectivity("http://127.0.0.1:1/", timeout=5)) is False
