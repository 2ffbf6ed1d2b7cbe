# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Errors

Every phase raises its own subclass of UpdateError. The orchestrator is the
only place that catches them and decides how to recover.
"""


class UpdateError(Exception):
    """Base class for all update phase failures."""
    pass


class PrerequisiteError(UpdateError):
    """A required external tool (git, npm) is not available."""

    def __init__(self, tool: str, hint: str = ""):
        self.tool = tool
        self.hint = hint
        super().__init__(f"Required tool not found: {tool}")


class BackupError(UpdateError):
    """The snapshot could not be created. Nothing has been mutated."""
    pass


class FetchError(UpdateError):
    """The remote source could not be cloned into the staging directory."""
    pass


class CleanError(UpdateError):
    """Stale files could not be removed from the working tree."""
    pass


class ApplyError(UpdateError):
    """The staged tree could not be overlaid onto the working tree."""
    pass


class RestoreError(UpdateError):
    """Preserved state could not be copied back from the snapshot."""
    pass


class InstallError(UpdateError):
    """The dependency install command failed."""
    pass


class MetadataError(UpdateError):
    """The version log could not be written. Never fatal."""
    pass
