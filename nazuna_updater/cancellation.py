# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Cancellation Management

The user may abort an update only while nothing has been changed yet. The
guard is armed during the confirmation countdown; once the backup starts
it is disarmed and interrupt signals are logged and ignored, so an attempt
always runs to a terminal state.
"""

import asyncio
import logging
import signal
import sys
import threading
from enum import Enum
from typing import List, Optional, TextIO

logger = logging.getLogger(__name__)

GUARDED_SIGNALS = tuple(
    sig for sig in (getattr(signal, "SIGINT", None), getattr(signal, "SIGTERM", None)) if sig is not None
)


class UpdateCancelled(Exception):
    """Raised when the user cancels before any destructive step."""
    pass


class GuardState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    DISARMED = "disarmed"


class CancellationGuard:
    """
    Phase-gated cancellation for one update attempt.

    Thread-safe: the flag can be set from a signal handler and checked from
    the countdown loop.
    """

    def __init__(self):
        self._state = GuardState.IDLE
        self._cancelled = False
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._installed: List[int] = []

    @property
    def state(self) -> GuardState:
        with self._lock:
            return self._state

    def arm(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Start accepting cancellation and route signals to this guard."""
        with self._lock:
            self._state = GuardState.ARMED
            self._cancelled = False
        if loop is not None:
            self._install_handlers(loop)

    def disarm(self) -> None:
        """Stop accepting cancellation. Called when destructive phases begin."""
        with self._lock:
            self._state = GuardState.DISARMED
        logger.debug("Cancellation disarmed")

    def close(self) -> None:
        """Remove installed signal handlers and restore default handling."""
        if self._loop is not None:
            for sig in self._installed:
                self._loop.remove_signal_handler(sig)
        self._installed = []
        self._loop = None

    def request_cancel(self) -> bool:
        """Handle a cancellation request (signal or Ctrl+C).

        Returns:
            True if the request was accepted.
        """
        with self._lock:
            if self._state == GuardState.ARMED:
                self._cancelled = True
                accepted = True
            else:
                accepted = False
        if accepted:
            logger.info("Cancellation requested")
        else:
            logger.warning("Update in progress, it cannot be cancelled now. Please wait.")
        return accepted

    def is_cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def check_cancelled(self) -> None:
        """Raise UpdateCancelled if cancellation was accepted."""
        if self.is_cancelled():
            raise UpdateCancelled("Update cancelled by user")

    def _install_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in GUARDED_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_cancel)
            except (NotImplementedError, RuntimeError, ValueError):
                # Windows event loops: Ctrl+C surfaces as KeyboardInterrupt instead
                logger.debug("Signal handler for %s not supported on this platform", sig)
                continue
            self._installed.append(sig)
        if self._installed:
            self._loop = loop


async def countdown(seconds: int, guard: CancellationGuard, stream: Optional[TextIO] = None) -> None:
    """Wait ``seconds`` before proceeding, giving the user a chance to cancel.

    Raises:
        UpdateCancelled: If the guard is cancelled while counting down.
    """
    if stream is None:
        stream = sys.stdout

    logger.warning("Warning: the update overwrites existing files, except configuration and saved data.")
    logger.info("A backup will be created automatically.")
    logger.warning("Press Ctrl+C to cancel.")

    try:
        for remaining in range(seconds, 0, -1):
            guard.check_cancelled()
            stream.write(f"\rStarting in {remaining} seconds...{' ' * 20}")
            stream.flush()
            # Tick in small steps so a cancellation is noticed quickly
            for _ in range(10):
                await asyncio.sleep(0.1)
                guard.check_cancelled()
    finally:
        stream.write("\r" + " " * 40 + "\r")
        stream.flush()

    guard.check_cancelled()
    logger.info("Proceeding with the update...")
