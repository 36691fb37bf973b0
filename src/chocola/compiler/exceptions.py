"""Errors raised by the chocola compiler."""

from typing import Optional


class ChocolaError(Exception):
    """Base class for build-aborting errors."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.message = message
        self.path = path
        super().__init__(self.format())

    def format(self) -> str:
        if self.path:
            return f"{self.message} ({self.path})"
        return self.message


class ConfigError(ChocolaError):
    """chocola.config.json is missing, unreadable or invalid."""


class SourceIndexError(ChocolaError):
    """The source index page cannot be resolved."""


class MissingContainerError(ChocolaError):
    """The index page has no <app> element."""


class ComponentLoadError(ChocolaError):
    """The component library cannot be read."""


class AssetError(ChocolaError):
    """A referenced asset cannot be copied to the output directory."""


class ExpressionError(ValueError):
    """A directive expression is malformed or uses a forbidden construct."""
