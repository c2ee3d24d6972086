"""Configuration error definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """Raised when an environment setting for the digest run is invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required environment variables are absent or blank.

    ``names`` lists every missing variable so one run reports all of them.
    """

    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(sorted(names))
        super().__init__(f"Missing configuration for: {', '.join(self.names)}")
