# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 The Nazuna Updater Authors

"""
Shared helpers for building installation trees in tests.
"""

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from nazuna_updater.config import LayoutConfig
from nazuna_updater.inventory import STATE_PATHS

FIXED_NOW = datetime(2026, 10, 19, 12, 34, 56, 789000, tzinfo=timezone.utc)
BACKUP_NAME = "backup_2026-10-19_12_34_56_789Z"

UPDATE_MARKER = LayoutConfig().update_marker
INDEX_MARKER = LayoutConfig().index_marker

OLD_MANIFEST = {"name": "nazuna", "version": "5.0.0", "dependencies": {"bar": "^1.0.0"}}
NEW_MANIFEST = {"name": "nazuna", "version": "6.0.0", "dependencies": {"baileys": "^6.7.0"}}


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def build_install(root: Path, manifest: Optional[dict] = None) -> Path:
    """Create a working tree that looks like a deployed bot."""
    write(root / "dados/database/foo.db", "database bytes")
    write(root / "dados/database/grupos/123.json", '{"antilink": true}')
    write(root / "dados/midias/menu.jpg", "jpeg bytes")
    write(root / "dados/src/config.json", '{"prefixo": "!", "nomedono": "Paulo"}')
    write(root / "dados/src/.scripts/update.js", f"{UPDATE_MARKER}\nconsole.log('custom update');\n")
    write(root / "dados/src/index.js", f"{INDEX_MARKER}\nconsole.log('custom index');\n")
    write(root / "dados/src/funcs/old.js", "module.exports = 'old';\n")
    write(root / "package.json", json.dumps(manifest or OLD_MANIFEST))
    write(root / "package-lock.json", "{}")
    write(root / "node_modules/bar/package.json", '{"name": "bar"}')
    write(root / "README.md", "local readme")
    write(root / ".git/HEAD", "ref: refs/heads/main\n")
    write(root / ".github/workflows/ci.yml", "on: push\n")
    return root


def build_staging(staging: Path, manifest: Optional[dict] = None) -> Path:
    """Create what a shallow clone of the upstream repository looks like."""
    write(staging / ".git/HEAD", "ref: refs/heads/main\n")
    write(staging / "README.md", "upstream readme")
    write(staging / "package.json", json.dumps(manifest or NEW_MANIFEST))
    write(staging / "dados/src/config.json", '{"prefixo": "#"}')
    write(staging / "dados/src/index.js", "console.log('upstream index');\n")
    write(staging / "dados/src/.scripts/update.js", "console.log('upstream update');\n")
    write(staging / "dados/src/funcs/old.js", "module.exports = 'new';\n")
    write(staging / "dados/src/funcs/added.js", "module.exports = 'added';\n")
    return staging


def tree_digest(root: Path) -> Dict[str, str]:
    """sha256 of every file under ``root``, keyed by relative path."""
    digest = {}
    for path in sorted(root.rglob("*")):
        if path.is_file():
            digest[path.relative_to(root).as_posix()] = hashlib.sha256(path.read_bytes()).hexdigest()
    return digest


def state_digest(root: Path) -> Dict[str, str]:
    """sha256 of every file belonging to a preserved state path."""
    digest = {}
    for state in STATE_PATHS:
        target = root / state.relative_path
        if target.is_dir():
            for rel, value in tree_digest(target).items():
                digest[f"{state.relative_path}/{rel}"] = value
        elif target.is_file():
            digest[state.relative_path] = hashlib.sha256(target.read_bytes()).hexdigest()
    return digest


class FakeProcess:
    """Stand-in for asyncio.subprocess.Process."""

    def __init__(self, returncode: int = 0, on_run=None, stdout: bytes = b"", stderr: bytes = b""):
        self.returncode = returncode
        self._on_run = on_run
        self._stdout = stdout
        self._stderr = stderr

    async def communicate(self):
        if self._on_run is not None:
            self._on_run()
        return self._stdout, self._stderr
