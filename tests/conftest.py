# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 The Nazuna Updater Authors

"""
Shared pytest fixtures.
"""

import pytest

from helpers import FIXED_NOW, build_install

from nazuna_updater.config import LayoutConfig
from nazuna_updater.inventory import UpdatePaths


@pytest.fixture
def install_root(tmp_path):
    """A deployed installation with state, code and installed dependencies."""
    return build_install(tmp_path / "nazuna")


@pytest.fixture
def paths(install_root):
    """Paths of one attempt rooted at the installation."""
    return UpdatePaths.for_attempt(install_root, LayoutConfig(), FIXED_NOW)
