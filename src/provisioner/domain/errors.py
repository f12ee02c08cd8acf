"""Domain error definitions."""

from __future__ import annotations


class ConfigParseError(ValueError):
    """Raised when the desired-state configuration cannot be parsed."""

    def __init__(self, message: str, *, field: str) -> None:
        super().__init__(message)
        self.field = field


class StructuredConfigError(ConfigParseError):
    """The JSON form was selected but is malformed or fails validation."""


class LegacyConfigError(ConfigParseError):
    """The compact ``Name:amount,currency[,interval]`` form is malformed."""


class ProviderCallError(RuntimeError):
    """Raised by provider adapters when a list or mutate call fails."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
