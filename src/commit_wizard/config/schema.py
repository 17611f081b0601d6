"""
Configuration schema for commit_wizard.

The configuration is a tree of frozen dataclasses. One instance is built
per invocation by :func:`commit_wizard.config.loader.load_config` and is
treated as read-only for the rest of the run.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


SUPPORTED_LANGUAGES = ("pt", "en", "es", "fr", "de", "it", "ja", "ko", "zh")
COMMIT_STYLES = ("conventional", "simple", "detailed")
LOG_LEVELS = ("error", "warn", "info", "debug")


@dataclass(frozen=True)
class OpenAIConfig:
    model: str = "gpt-4o"
    max_tokens: int = 150
    temperature: float = 0.7
    # Milliseconds, as stored in the rc file.
    timeout: int = 30000
    # Maximum number of generation attempts.
    retries: int = 3
    api_key: Optional[str] = None
    base_url: str = "https://api.openai.com/v1"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000.0


@dataclass(frozen=True)
class PromptConfig:
    custom_instructions: str = ""
    max_diff_size: int = 8000


@dataclass(frozen=True)
class SmartSplitConfig:
    enabled: bool = True
    min_group_size: int = 1
    max_groups: int = 5
    confidence_threshold: float = 0.7
    auto_edit: bool = False
    heuristic_fallback: bool = True


@dataclass(frozen=True)
class CacheConfig:
    enabled: bool = True
    # Minutes.
    ttl: float = 60
    max_size: int = 100


@dataclass(frozen=True)
class AdvancedConfig:
    log_level: str = "info"


@dataclass(frozen=True)
class WizardConfig:
    """Immutable snapshot of the settings used for one run."""

    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    language: str = "pt"
    commit_style: str = "conventional"
    split_commits: bool = False
    dry_run: bool = False
    prompt: PromptConfig = field(default_factory=PromptConfig)
    smart_split: SmartSplitConfig = field(default_factory=SmartSplitConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    advanced: AdvancedConfig = field(default_factory=AdvancedConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Sections of the rc file and the dataclass that holds each of them.
SECTIONS = {
    "openai": OpenAIConfig,
    "prompt": PromptConfig,
    "smart_split": SmartSplitConfig,
    "cache": CacheConfig,
    "advanced": AdvancedConfig,
}
