# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Progress Indicator

A spinner drawn on the terminal while a child process runs. The spinner is
a separate task that only writes display output; it is cancelled as soon
as the awaited work settles, on success and on error, and erases its line.
"""

import asyncio
import itertools
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Optional, TextIO, TypeVar

T = TypeVar("T")

SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
DEFAULT_INTERVAL = 0.1


async def _spin(label: str, stream: TextIO, interval: float) -> None:
    for frame in itertools.cycle(SPINNER_FRAMES):
        stream.write(f"\r{frame} {label}")
        stream.flush()
        await asyncio.sleep(interval)


def _erase(label: str, stream: TextIO) -> None:
    stream.write("\r" + " " * (len(label) + 2) + "\r")
    stream.flush()


@asynccontextmanager
async def spinner(
    label: str,
    interval: float = DEFAULT_INTERVAL,
    stream: Optional[TextIO] = None,
) -> AsyncIterator[None]:
    """Show a spinner for the duration of the ``async with`` block."""
    if stream is None:
        stream = sys.stdout
    task = asyncio.create_task(_spin(label, stream, interval))
    try:
        yield
    finally:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        _erase(label, stream)


async def run_with_progress(
    work: Awaitable[T],
    label: str,
    interval: float = DEFAULT_INTERVAL,
    stream: Optional[TextIO] = None,
) -> T:
    """Await ``work`` while a spinner runs, and return its result."""
    async with spinner(label, interval=interval, stream=stream):
        return await work
