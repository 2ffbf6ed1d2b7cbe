# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 The Nazuna Updater Authors

"""
Nazuna Updater Configuration Module

Handles loading the optional updater configuration from a YAML file.
Every setting has a default, so running without a config file performs
the standard update of the Nazuna repository.
"""

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "NAZUNA_UPDATER_CONFIG"
DEFAULT_CONFIG_PATH = "./updater.yaml"


class RemoteConfig(BaseModel):
    """Remote source repository settings."""
    repo_url: str = Field(default="https://github.com/hiudyy/nazuna.git", description="Git URL cloned on every update")
    commits_api_url: str = Field(
        default="https://api.github.com/repos/hiudyy/nazuna/commits?per_page=1",
        description="Commits API used to record the installed version",
    )
    probe_url: str = Field(default="https://github.com", description="URL probed to diagnose fetch failures")
    clone_depth: int = Field(default=1, ge=1, description="History depth of the clone")
    request_timeout: int = Field(default=30, ge=1, description="HTTP timeout for the commits API in seconds")
    probe_timeout: int = Field(default=5, ge=1, description="HTTP timeout for the connectivity probe in seconds")


class LayoutConfig(BaseModel):
    """Names of the directories created next to the installation."""
    backup_prefix: str = Field(default="backup_", description="Prefix of timestamped backup directories")
    staging_dir_name: str = Field(default="temp_nazuna", description="Directory the new version is cloned into")
    update_marker: str = Field(
        default="// --- MINHA VERSÃO PERSONALIZADA UPDATE ---",
        description="Marker expected in the customized update script",
    )
    index_marker: str = Field(
        default="// --- MINHA VERSÃO PERSONALIZADA INDEX ---",
        description="Marker expected in the customized index script",
    )


class InstallConfig(BaseModel):
    """Dependency installation settings."""
    command: List[str] = Field(
        default_factory=lambda: ["npm", "run", "config:install"],
        description="Command run when dependencies must be reinstalled",
    )
    required_tools: List[str] = Field(
        default_factory=lambda: ["git", "npm"],
        description="Executables that must be available before updating",
    )


class PromptConfig(BaseModel):
    """Interactive console settings."""
    countdown_seconds: int = Field(default=5, ge=0, description="Seconds to wait before starting (Ctrl+C cancels)")
    spinner_interval: float = Field(default=0.1, gt=0, description="Seconds between progress indicator frames")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Log level (WARNING, INFO, DEBUG)")
    file: Optional[Path] = Field(default=None, description="Log file path (null = console only)")
    format: str = Field(default="%(message)s", description="Log record format")


class Config(BaseModel):
    """Main configuration container."""
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    install: InstallConfig = Field(default_factory=InstallConfig)
    prompt: PromptConfig = Field(default_factory=PromptConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses NAZUNA_UPDATER_CONFIG env var
              or defaults to ./updater.yaml

    Returns:
        Config object with loaded settings
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)

    config_path = Path(path)

    if not config_path.exists():
        logger.debug("Config file not found at %s. Using defaults.", config_path)
        return Config()

    logger.info("Loading configuration from: %s", config_path)
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return Config(
            remote=RemoteConfig(**data.get("remote", {})),
            layout=LayoutConfig(**data.get("layout", {})),
            install=InstallConfig(**data.get("install", {})),
            prompt=PromptConfig(**data.get("prompt", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )
    except Exception as e:
        logger.warning("Failed to load config file: %s. Using defaults.", e)
        return Config()


def setup_logging(config: LoggingConfig) -> None:
    """
    Configure logging based on configuration.

    Args:
        config: Logging configuration settings
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    # Setup handlers - always include console
    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if config.file:
        try:
            config.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(config.file, encoding="utf-8"))
        except Exception as e:
            # If file logging fails, continue with console-only logging
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
        force=True,
    )

    if config.file:
        logger.debug("Logging configured: level=%s, file=%s", config.level, config.file)
    else:
        logger.debug("Logging configured: level=%s (console only)", config.level)
