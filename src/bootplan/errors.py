"""Error hierarchy for bootplan.

Every failure is fatal: library code raises one of these and the CLI layer
turns it into a single diagnostic line and a nonzero exit status.
"""

from __future__ import annotations


class BootplanError(Exception):
    """Base error carrying an optional hint for the user."""

    hint: str | None

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        msg = super().__str__()
        if self.hint:
            return f"{msg}\nHint: {self.hint}"
        return msg


class ConfigError(BootplanError):
    """The requested build configuration is illegal."""


class MultipleSignatureSchemes(ConfigError):
    """More than one signature algorithm was enabled."""


class UnsupportedCombination(ConfigError):
    """A known-incompatible signature/encryption pairing was enabled."""


class UnknownFeature(ConfigError):
    """A feature name did not match any capability flag."""


class FilesystemError(BootplanError):
    """The change-tracking walk could not read a directory or name a file."""


class ToolchainError(BootplanError):
    """The compiler or archiver could not be run, or it failed."""
