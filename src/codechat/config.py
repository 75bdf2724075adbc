# Purpose: Load environment and YAML settings into one immutable value.
# Why: Centralized helpers keep the CLI free of configuration plumbing.
"""Utility helpers for loading chat CLI configuration."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigError, ConfigReadError, MissingCredentialError

logger = logging.getLogger(__name__)

APP_HOME = Path.home() / ".codechat"
DEFAULT_CONFIG_PATH = APP_HOME / "settings.yaml"
DEFAULT_ENV_FILE = Path(".env")
TOKEN_VARIABLE = "GITHUB_TOKEN"
DEFAULT_BASE_URL = "https://models.inference.ai.azure.com"
DEFAULT_MODEL = "gpt-4o"

SYSTEM_PROMPT = (
    "You are an expert coding assistant with deep knowledge across multiple programming "
    "languages and software development concepts. Your role is to:\n"
    "\n"
    "- Help developers understand programming concepts clearly\n"
    "- Provide accurate, working code examples\n"
    "- Assist with debugging and troubleshooting\n"
    "- Suggest best practices and clean code principles\n"
    "- Support languages including JavaScript, Python, Java, C++, TypeScript, and more\n"
    "- Explain complex topics in a simple, easy-to-understand way\n"
    "\n"
    "Always format code examples using proper code blocks. "
    "Be concise but thorough in your explanations."
)

_DEFAULT_CONFIG: Dict[str, Any] = {
    "system_prompt": SYSTEM_PROMPT,
    "base_url": None,
    "model": None,
    "temperature": 0.7,
    "max_tokens": 1024,
}


@dataclass(frozen=True)
class Settings:
    """Resolved, read-only configuration for a chat session."""

    token: Optional[str]
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    max_tokens: int = 1024
    system_prompt: str = SYSTEM_PROMPT


def read_env_file(path: Path = DEFAULT_ENV_FILE) -> Dict[str, str]:
    """Parse KEY=VALUE lines from an env file, raising when it cannot be read.

    The key is the trimmed text before the first "=" and the value is the
    trimmed remainder, taken verbatim: no quote stripping, escapes or inline
    comments. Blank lines, "#" lines and lines without "=" are skipped.
    """
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ConfigReadError(f"Could not read {path}: {exc.strerror or exc}") from exc
    values: Dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, separator, value = stripped.partition("=")
        if not separator:
            continue
        values[key.strip()] = value.strip()
    return values


def load_env_file(path: Path = DEFAULT_ENV_FILE) -> Dict[str, str]:
    """Return env file entries, reporting an unreadable file and continuing without it."""
    try:
        values = read_env_file(path)
    except ConfigReadError as exc:
        logger.debug("Env file unavailable: %s", exc)
        print(f"Warning: {exc}", file=sys.stderr)
        return {}
    logger.debug("Loaded %d entries from %s", len(values), path)
    return values


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load the optional YAML settings file, merging in default keys."""
    if not path.exists():
        return dict(_DEFAULT_CONFIG)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Could not read settings file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping.")
    return _merge_defaults(data)


def build_settings(
    env: Mapping[str, str],
    config: Optional[Mapping[str, Any]] = None,
    *,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
) -> Settings:
    """Resolve settings prioritizing CLI values, then the config file, then the environment."""
    merged = _merge_defaults(dict(config or {}))
    try:
        temperature = float(merged["temperature"])
        max_tokens = int(merged["max_tokens"])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid sampling setting: {exc}") from exc
    return Settings(
        token=env.get(TOKEN_VARIABLE) or None,
        base_url=_resolve(base_url, merged.get("base_url"), env.get("CODECHAT_BASE_URL"), DEFAULT_BASE_URL),
        model=_resolve(model, merged.get("model"), env.get("CODECHAT_MODEL"), DEFAULT_MODEL),
        temperature=temperature,
        max_tokens=max_tokens,
        system_prompt=str(merged["system_prompt"]),
    )


def merged_environment(env_file: Path = DEFAULT_ENV_FILE) -> Dict[str, str]:
    """Overlay env file entries on the process environment without modifying it."""
    environment = dict(os.environ)
    environment.update(load_env_file(env_file))
    return environment


def require_token(settings: Settings) -> str:
    """Return the access token or raise when it is missing."""
    if not settings.token:
        raise MissingCredentialError(TOKEN_VARIABLE)
    return settings.token


def _resolve(*candidates: Any) -> str:
    """Return the first non-empty candidate as text; the last one is the built-in default."""
    for candidate in candidates[:-1]:
        if candidate:
            return str(candidate)
    return str(candidates[-1])


def _merge_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Merge defaults into a config dict without mutating the input."""
    merged = dict(_DEFAULT_CONFIG)
    merged.update({key: value for key, value in config.items() if value is not None})
    return merged
