"""
Engine settings.

Numeric tolerances and the default log level live here so that every
geometric predicate in the package compares against the same epsilon.
Values can be overridden through environment variables:

    POLYHEDRA_OPS_PRECISION        tolerance for angle/distance comparisons
    POLYHEDRA_OPS_MERGE_TOLERANCE  distance under which vertices are merged
    POLYHEDRA_OPS_LOG_LEVEL        default level used by ``setup_logging``
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

ENV_PREFIX = "POLYHEDRA_OPS_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """Tolerances and logging defaults shared by the whole engine."""

    precision: float = 1e-6
    merge_tolerance: float = 1e-6
    log_level: str = "WARNING"

    def validate(self) -> None:
        if not self.precision > 0:
            raise ValueError("Precision must be positive")
        if not self.merge_tolerance > 0:
            raise ValueError("Merge tolerance must be positive")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level!r}")

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level.upper())

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``POLYHEDRA_OPS_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Validated Settings; unset variables keep their defaults
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        try:
            settings = cls(
                precision=float(env.get(ENV_PREFIX + "PRECISION", defaults.precision)),
                merge_tolerance=float(
                    env.get(ENV_PREFIX + "MERGE_TOLERANCE", defaults.merge_tolerance)
                ),
                log_level=env.get(ENV_PREFIX + "LOG_LEVEL", defaults.log_level).upper(),
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid {ENV_PREFIX}* setting: {exc}") from exc
        settings.validate()
        return settings


SETTINGS = Settings.from_env()
