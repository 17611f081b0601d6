"""
Configuration loading for commit_wizard.

See :mod:`commit_wizard.config.loader` for where settings come from and
:mod:`commit_wizard.config.schema` for the available fields.
"""

from .loader import ConfigError, ensure_valid, load_config, validate_config  # noqa: F401
from .schema import WizardConfig  # noqa: F401
