"""Releases Notifier — Configuration Loader.

Loads settings.yaml, resolves ${VAR_NAME} references from the environment
(and the project .env file), validates required keys and exposes the result
as frozen dataclasses.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)

# ── Path Constants ────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
SETTINGS_PATH = CONFIG_DIR / "settings.yaml"

ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)}")


# ═══════════════════════════════════════════════════════════
# Configuration Dataclasses
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class TelegramConfig:
    """Configuration for the Telegram bot."""

    bot_token: str


@dataclass(frozen=True)
class GitHubConfig:
    """Configuration for the GitHub release client."""

    api_url: str
    token: str
    timeout_seconds: int
    max_retries: int
    request_delay_seconds: float
    initial_release_window: int = 20
    update_release_window: int = 10


@dataclass(frozen=True)
class WatcherConfig:
    """Configuration for the periodic new-release check."""

    interval_minutes: int


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration container."""

    telegram: TelegramConfig
    github: GitHubConfig
    watcher: WatcherConfig
    database_path: str
    log_level: str


# ═══════════════════════════════════════════════════════════
# YAML Loading & Environment Variable Resolution
# ═══════════════════════════════════════════════════════════


def _resolve_env_vars(value: Any) -> Any:
    """Recursively replace ${VAR_NAME} placeholders with environment values.

    Raises:
        ValueError: If a referenced environment variable is not set.
    """
    if isinstance(value, str):
        for var_name in ENV_VAR_PATTERN.findall(value):
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(
                    f"Environment variable '${{{var_name}}}' is required but not set. "
                    f"Add it to your .env file or export it in your shell."
                )
            value = value.replace(f"${{{var_name}}}", env_value)
        return value
    if isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is empty.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        raise ValueError(f"Configuration file is empty: {path}")

    logger.debug("Loaded configuration from %s", path)
    return data


def _validate_keys(data: dict[str, Any], required: list[str], section: str) -> None:
    """Raise ValueError listing any required keys missing from a section."""
    missing = [key for key in required if key not in data]
    if missing:
        raise ValueError(
            f"Missing required configuration keys in '{section}': {', '.join(missing)}"
        )


# ═══════════════════════════════════════════════════════════
# Dataclass Builders
# ═══════════════════════════════════════════════════════════


def _build_telegram_config(data: dict[str, Any]) -> TelegramConfig:
    _validate_keys(data, ["bot_token"], "telegram")
    return TelegramConfig(bot_token=data["bot_token"])


def _build_github_config(data: dict[str, Any]) -> GitHubConfig:
    """Build a GitHubConfig from the 'github' section.

    The token may be an empty string: unauthenticated requests work but
    are limited to 60 per hour by GitHub.
    """
    _validate_keys(data, ["api_url", "timeout_seconds", "max_retries"], "github")

    initial_window = int(data.get("initial_release_window", 20))
    if initial_window < 1:
        raise ValueError(
            f"github.initial_release_window must be positive, got {initial_window}"
        )

    return GitHubConfig(
        api_url=data["api_url"].rstrip("/"),
        token=data.get("token", "") or "",
        timeout_seconds=data["timeout_seconds"],
        max_retries=data["max_retries"],
        request_delay_seconds=float(data.get("request_delay_seconds", 1.0)),
        initial_release_window=initial_window,
        update_release_window=int(data.get("update_release_window", 10)),
    )


def _build_watcher_config(data: dict[str, Any]) -> WatcherConfig:
    _validate_keys(data, ["interval_minutes"], "watcher")
    return WatcherConfig(interval_minutes=data["interval_minutes"])


# ═══════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════


def load_config(
    settings_path: Path | None = None,
    env_path: Path | None = None,
) -> AppConfig:
    """Load the complete application configuration.

    Args:
        settings_path: Override path to settings.yaml. Defaults to config/settings.yaml.
        env_path: Override path to the .env file. Defaults to the project root .env.

    Returns:
        A fully validated AppConfig instance.

    Raises:
        FileNotFoundError: If the settings file is missing.
        ValueError: If required fields are missing or env vars are unset.
    """
    env_file = env_path or (PROJECT_ROOT / ".env")
    load_dotenv(env_file)
    logger.debug("Loaded environment from %s", env_file)

    raw_settings = _load_yaml(settings_path or SETTINGS_PATH)
    settings = _resolve_env_vars(raw_settings)

    _validate_keys(settings, ["telegram", "github", "watcher", "database", "logging"], "settings")

    config = AppConfig(
        telegram=_build_telegram_config(settings["telegram"]),
        github=_build_github_config(settings["github"]),
        watcher=_build_watcher_config(settings["watcher"]),
        database_path=settings["database"]["path"],
        log_level=settings["logging"]["level"],
    )

    logger.info("Configuration loaded successfully")
    logger.debug("Database path: %s", config.database_path)
    logger.debug("Watcher interval: %d minutes", config.watcher.interval_minutes)

    return config
