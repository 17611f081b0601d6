"""
Configuration loader for commit_wizard.

Settings come from three places, later ones overriding earlier ones:

1. built-in defaults (see :mod:`commit_wizard.config.schema`),
2. a JSON file named ``.commit-wizardrc`` in the user's home directory,
3. a ``.commit-wizardrc`` in the current directory (or an explicit path),

followed by the environment variables ``OPENAI_API_KEY``,
``COMMIT_WIZARD_DEBUG`` and ``COMMIT_WIZARD_DRY_RUN``. Sections are merged
key by key, so an rc file only needs to name the settings it changes.
Keys may be written in camelCase (``maxTokens``) or snake_case
(``max_tokens``).

A file that cannot be read or parsed is skipped with a warning and the
remaining sources still apply. Validation is separate from loading:
:func:`validate_config` returns every violation at once and
:func:`ensure_valid` raises a :class:`ConfigError` carrying all of them.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from commit_wizard.config.schema import (
    COMMIT_STYLES,
    LOG_LEVELS,
    SECTIONS,
    SUPPORTED_LANGUAGES,
    WizardConfig,
)


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings in environments
# where the CLI has not configured logging yet.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


CONFIG_FILE_NAME = ".commit-wizardrc"


class ConfigError(Exception):
    """Raised when the configuration is invalid.

    The ``errors`` attribute lists every violation that was found.
    """

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


def _snake_case(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _normalize_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case, recursively."""
    if isinstance(data, dict):
        return {_snake_case(str(key)): _normalize_keys(value) for key, value in data.items()}
    return data


def _read_rc_file(path: Path) -> Dict[str, Any]:
    """Return the parsed content of ``path`` or an empty dict.

    Missing files are silently ignored; unreadable or malformed files are
    reported with a warning.
    """
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring configuration file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring configuration file %s: top level must be an object", path)
        return {}
    logger.debug("Loaded configuration file: %s", path)
    return _normalize_keys(data)


def merge_config(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into ``base`` section by section."""
    merged = dict(base)
    for key, value in override.items():
        if key in SECTIONS and isinstance(value, dict) and isinstance(merged.get(key), dict):
            section = dict(merged[key])
            section.update(value)
            merged[key] = section
        else:
            merged[key] = value
    return merged


def _build(data: Mapping[str, Any]) -> WizardConfig:
    kwargs: Dict[str, Any] = {}
    top_level = {f.name for f in fields(WizardConfig)}
    for key, value in data.items():
        if key not in top_level:
            logger.debug("Ignoring unknown configuration key: %s", key)
            continue
        section_cls = SECTIONS.get(key)
        if section_cls is None:
            kwargs[key] = value
            continue
        if not isinstance(value, dict):
            logger.warning("Configuration section '%s' must be an object; using defaults", key)
            continue
        allowed = {f.name for f in fields(section_cls)}
        unknown = sorted(set(value) - allowed)
        if unknown:
            logger.debug("Ignoring unknown keys in '%s': %s", key, unknown)
        kwargs[key] = section_cls(**{k: v for k, v in value.items() if k in allowed})
    return WizardConfig(**kwargs)


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() == "true"


def load_config(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> WizardConfig:
    """Load the configuration snapshot for this run.

    Parameters
    ----------
    config_path : Path, optional
        Explicit local rc file. Defaults to ``./.commit-wizardrc``.
    env : Mapping, optional
        Environment to read. Defaults to :data:`os.environ`.
    home : Path, optional
        Home directory holding the global rc file. Defaults to
        :meth:`Path.home`.

    Returns
    -------
    WizardConfig
        The merged, not yet validated configuration.
    """
    env = os.environ if env is None else env
    home = Path.home() if home is None else Path(home)
    local_path = Path(config_path) if config_path is not None else Path.cwd() / CONFIG_FILE_NAME

    data: Dict[str, Any] = {}
    global_path = home / CONFIG_FILE_NAME
    data = merge_config(data, _read_rc_file(global_path))
    if local_path.resolve() != global_path.resolve():
        data = merge_config(data, _read_rc_file(local_path))

    overrides: Dict[str, Any] = {"openai": {"api_key": env.get("OPENAI_API_KEY") or None}}
    if _env_flag(env, "COMMIT_WIZARD_DEBUG"):
        overrides["advanced"] = {"log_level": "debug"}
    if _env_flag(env, "COMMIT_WIZARD_DRY_RUN"):
        overrides["dry_run"] = True
    data = merge_config(data, overrides)

    return _build(data)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_range(errors: List[str], name: str, value: Any, low: float, high: Optional[float], message: str) -> None:
    if not _is_number(value):
        errors.append(f"{name} must be a number")
    elif value < low or (high is not None and value > high):
        errors.append(message)


def validate_config(config: WizardConfig) -> List[str]:
    """Return a list describing every problem in ``config``.

    An empty list means the configuration is usable.
    """
    errors: List[str] = []
    openai = config.openai

    if not openai.api_key:
        errors.append("OPENAI_API_KEY not found in the environment")
    if not isinstance(openai.model, str) or not openai.model.strip():
        errors.append("openai.model must be a non-empty string")
    _check_range(errors, "openai.maxTokens", openai.max_tokens, 10, 4000, "openai.maxTokens must be between 10 and 4000")
    _check_range(errors, "openai.temperature", openai.temperature, 0, 2, "openai.temperature must be between 0 and 2")
    _check_range(errors, "openai.timeout", openai.timeout, 1000, 120000, "openai.timeout must be between 1000ms and 120000ms")
    _check_range(errors, "openai.retries", openai.retries, 1, 10, "openai.retries must be between 1 and 10")

    if config.language not in SUPPORTED_LANGUAGES:
        errors.append(f"language must be one of: {', '.join(SUPPORTED_LANGUAGES)}")
    if config.commit_style not in COMMIT_STYLES:
        errors.append(f"commitStyle must be one of: {', '.join(COMMIT_STYLES)}")

    _check_range(errors, "prompt.maxDiffSize", config.prompt.max_diff_size, 100, None, "prompt.maxDiffSize must be at least 100")

    split = config.smart_split
    _check_range(errors, "smartSplit.minGroupSize", split.min_group_size, 1, None, "smartSplit.minGroupSize must be at least 1")
    _check_range(errors, "smartSplit.maxGroups", split.max_groups, 1, 10, "smartSplit.maxGroups must be between 1 and 10")
    _check_range(
        errors,
        "smartSplit.confidenceThreshold",
        split.confidence_threshold,
        0,
        1,
        "smartSplit.confidenceThreshold must be between 0 and 1",
    )

    _check_range(errors, "cache.ttl", config.cache.ttl, 1, None, "cache.ttl must be at least 1 minute")
    _check_range(errors, "cache.maxSize", config.cache.max_size, 1, None, "cache.maxSize must be at least 1")

    if config.advanced.log_level not in LOG_LEVELS:
        errors.append(f"advanced.logLevel must be one of: {', '.join(LOG_LEVELS)}")

    return errors


def ensure_valid(config: WizardConfig) -> WizardConfig:
    """Return ``config`` unchanged or raise :class:`ConfigError`."""
    errors = validate_config(config)
    if errors:
        for error in errors:
            logger.debug("Configuration error: %s", error)
        raise ConfigError(errors)
    return config


EXAMPLE_CONFIG: Dict[str, Any] = {
    "language": "en",
    "commitStyle": "conventional",
    "splitCommits": False,
    "openai": {"model": "gpt-4o", "maxTokens": 200, "temperature": 0.7, "timeout": 30000, "retries": 3},
    "prompt": {"customInstructions": "", "maxDiffSize": 8000},
    "smartSplit": {"enabled": True, "minGroupSize": 1, "maxGroups": 5, "confidenceThreshold": 0.7, "autoEdit": False},
    "cache": {"enabled": True, "ttl": 60, "maxSize": 100},
    "advanced": {"logLevel": "info"},
}


def write_example_config(path: Path) -> Path:
    """Write a starter rc file to ``path`` and return it."""
    path = Path(path)
    path.write_text(json.dumps(EXAMPLE_CONFIG, indent=2) + "\n", encoding="utf-8")
    logger.debug("Wrote example configuration to %s", path)
    return path
