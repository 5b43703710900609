"""bootplan resolve: validate capability flags and show the resolved config.

Usage::

    bootplan resolve -F sig-ecdsa -F enc-kw
    CARGO_FEATURE_SIG_RSA=1 bootplan resolve --json
"""

import typer
from rich.console import Console
from rich.table import Table

from bootplan.cli import FeatureOption, JsonOption, NoEnvOption, error_exit, json_print, load_build
from bootplan.errors import ConfigError
from bootplan.flags import FEATURE_NAMES
from bootplan.resolver import ResolvedConfig, resolve

_EPILOG = """\
[bold]Examples:[/bold]

bootplan resolve -F sig-ecdsa             ECDSA P-256 signatures

bootplan resolve -F sig-rsa -F enc-kw     RSA-2048 with key-wrap encryption

bootplan resolve --no-env --json          Ignore CARGO_FEATURE_*, JSON output

[dim]Fails with a nonzero status when the flag combination is illegal.[/dim]"""

app = typer.Typer(
    help="Validate capability flags and show the resolved configuration.",
    rich_markup_mode="rich",
    epilog=_EPILOG,
)


def _render(console: Console, enabled: list[str], config: ResolvedConfig) -> None:
    tbl = Table(show_header=False, box=None, padding=(0, 2))
    tbl.add_column("Key", style="bold")
    tbl.add_column("Value")
    features = ", ".join(FEATURE_NAMES[name] for name in enabled) or "[dim](none)[/dim]"
    tbl.add_row("Features", features)
    sig = config.signature_backend.value if config.signature_backend else "none (digest only)"
    tbl.add_row("Signature", sig)
    enc = ", ".join(b.value for b in config.ordered_encryption_backends()) or "none"
    tbl.add_row("Encryption", enc)
    tbl.add_row("Images", str(config.image_slots.value))
    tbl.add_row("Config header", config.config_header.value)
    console.print(tbl)


@app.callback(invoke_without_command=True)
def main(
    features: list[str] = FeatureOption,
    no_env: bool = NoEnvOption,
    json_output: bool = JsonOption,
) -> None:
    """Validate capability flags and show the resolved configuration."""
    _cfg, flags = load_build(features, no_env=no_env, json_mode=json_output)
    try:
        config = resolve(flags)
    except ConfigError as exc:
        error_exit(str(exc), json_mode=json_output)

    if json_output:
        json_print({"flags": flags.to_dict(), "resolved": config.to_dict()})
    else:
        _render(Console(), flags.enabled(), config)


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
