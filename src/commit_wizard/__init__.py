"""
Top-level package for commit_wizard.

This package exposes the main CLI entry point via the
``commit_wizard.cli`` module.
"""

__all__ = ["__version__"]

__version__ = "1.0.0"
