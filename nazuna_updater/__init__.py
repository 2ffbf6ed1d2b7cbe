# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater - Self-Update Utility

Backs up local state of a deployed Nazuna bot, fetches the latest source,
replaces the installed code, restores the preserved state and reinstalls
dependencies when they are missing.
"""

__version__ = "20261019.1"
__author__ = "The Nazuna Updater Authors"
