"""Shared CLI utilities for bootplan commands.

Provides the common Typer options, config and flag loading, and standardised
output / error helpers so that every command gets the same ``--feature`` and
``--json`` handling and reports fatal errors the same way.

Usage in a command::

    import typer
    from bootplan.cli import FeatureOption, NoEnvOption, load_build, error_exit

    app = typer.Typer()

    @app.callback(invoke_without_command=True)
    def main(features: list[str] = FeatureOption, no_env: bool = NoEnvOption) -> None:
        cfg, flags = load_build(features, no_env=no_env)
        ...
"""

from __future__ import annotations

import json
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from bootplan.config import BuildConfig, load_config
from bootplan.errors import BootplanError
from bootplan.flags import CapabilityFlags, from_env, from_features, merge

# Re-usable Typer options
FeatureOption: list[str] = typer.Option(
    [],
    "--feature",
    "-F",
    help="Enable a capability flag (e.g. sig-ecdsa, enc-kw). Repeatable.",
)

NoEnvOption: bool = typer.Option(
    False,
    "--no-env",
    help="Ignore CARGO_FEATURE_* variables in the environment.",
)

JsonOption: bool = typer.Option(False, "--json", help="Output results as JSON")

console = Console(stderr=True)


def get_config() -> BuildConfig:
    """Load the project config (defaults when there is no bootplan.toml)."""
    return load_config()


def load_flags(
    cfg: BuildConfig,
    features: list[str] | None = None,
    *,
    no_env: bool = False,
) -> CapabilityFlags:
    """Union the config file, command line and environment flag sources."""
    sources = [from_features(cfg.features), from_features(features or [])]
    if not no_env:
        sources.append(from_env(prefix=cfg.env_prefix))
    return merge(*sources)


def load_build(
    features: list[str] | None = None,
    *,
    no_env: bool = False,
    json_mode: bool = False,
) -> tuple[BuildConfig, CapabilityFlags]:
    """Load config and flags, exiting with a diagnostic on any error."""
    try:
        cfg = get_config()
        return cfg, load_flags(cfg, features, no_env=no_env)
    except (BootplanError, FileNotFoundError) as exc:
        error_exit(str(exc), json_mode=json_mode)


# ---------------------------------------------------------------------------
# Standardised output helpers
# ---------------------------------------------------------------------------


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        console.print(f"[red bold]error:[/red bold] {escape(msg)}", highlight=False, soft_wrap=True)
    raise typer.Exit(code=code)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))
