"""exitstrat exception hierarchy.

All application-specific exceptions inherit from :class:`ExitStratError`.
The calculation engines themselves never raise for bad input shapes (they
report validation results or degrade to pass-through); these types are for
the boundary around them.
"""

from __future__ import annotations


class ExitStratError(Exception):
    """Base exception for all exitstrat errors."""


# -- Configuration ----------------------------------------------------------


class ConfigError(ExitStratError):
    """Invalid or missing configuration."""


# -- Data integrity ---------------------------------------------------------


class DataCorruptionError(ExitStratError):
    """File data is corrupted or in an unexpected format."""


class SnapshotError(DataCorruptionError):
    """A holdings/strategies snapshot could not be loaded."""
