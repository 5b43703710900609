"""bootplan watch: print the change-tracking lines without building."""

import typer

from bootplan.cli import JsonOption, error_exit, get_config, json_print
from bootplan.errors import BootplanError
from bootplan.watch import format_watch_lines, watch_paths

app = typer.Typer(
    help="Print one change-tracking line per watched source or header.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

bootplan watch                Cargo-style rerun-if-changed lines

bootplan watch --json         List of watched paths

[dim]Roots, suffixes and the line format come from [watch] in bootplan.toml.[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(json_output: bool = JsonOption) -> None:
    """Print one change-tracking line per watched source or header."""
    try:
        cfg = get_config()
        paths = watch_paths(cfg.watch_roots, base_dir=cfg.root, suffixes=cfg.watch_suffixes)
        lines = format_watch_lines(paths, cfg.watch_format)
    except (BootplanError, FileNotFoundError) as exc:
        error_exit(str(exc), json_mode=json_output)

    if json_output:
        json_print(paths)
        return
    for line in lines:
        print(line)


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
