"""main.py – Umbrella CLI entry point for bootplan.

Imports every subcommand module and registers its ``main`` as a flat
``app.command()`` entry, avoiding the Typer "group" behaviour of
``add_typer()`` which expects a ``COMMAND [ARGS]...`` token after callback
arguments.
"""

import importlib

import typer

app = typer.Typer(
    help="Resolve bootloader capability flags into a compilation plan and build it.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Typical workflow:[/bold]
  bootplan resolve -F sig-ecdsa     Check that a flag combination is legal
  bootplan plan -F sig-ecdsa        Inspect defines, includes and sources
  bootplan doctor                   Verify toolchain and source tree
  bootplan build -F sig-ecdsa       Compile libbootutil.a

[dim]Flags come from --feature, [build] features in bootplan.toml, and
CARGO_FEATURE_* environment variables. Run 'bootplan <cmd> --help' for details.[/dim]""",
)

# ---------------------------------------------------------------------------
# Subcommand registry
# ---------------------------------------------------------------------------

_SINGLE_COMMANDS: list[tuple[str, str, str]] = [
    ("resolve", "bootplan.resolve_cli", "Validate flags and show the resolved configuration."),
    ("plan", "bootplan.plan_cli", "Print the compilation plan."),
    ("build", "bootplan.build", "Compile and archive the bootutil library."),
    ("watch", "bootplan.watch_cli", "Print change-tracking lines."),
    ("doctor", "bootplan.doctor", "Diagnostic checks for build health."),
]


for _name, _module, _help in _SINGLE_COMMANDS:
    _mod = importlib.import_module(_module)
    _epilog = getattr(_mod.app.info, "epilog", None)
    if not isinstance(_epilog, str):
        _epilog = None
    app.command(name=_name, help=_help, epilog=_epilog)(_mod.main)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
