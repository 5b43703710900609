"""Tests for the bootplan error hierarchy."""

from bootplan.errors import (
    BootplanError,
    ConfigError,
    FilesystemError,
    MultipleSignatureSchemes,
    ToolchainError,
    UnknownFeature,
    UnsupportedCombination,
)


class TestHierarchy:
    def test_config_errors(self) -> None:
        for cls in (MultipleSignatureSchemes, UnsupportedCombination, UnknownFeature):
            assert issubclass(cls, ConfigError)

    def test_everything_is_bootplan_error(self) -> None:
        for cls in (ConfigError, FilesystemError, ToolchainError):
            assert issubclass(cls, BootplanError)


class TestMessage:
    def test_without_hint(self) -> None:
        e = BootplanError("broken")
        assert str(e) == "broken"
        assert e.hint is None

    def test_with_hint(self) -> None:
        e = ToolchainError("cc not found", hint="install gcc")
        assert str(e) == "cc not found\nHint: install gcc"
