"""bootplan build: resolve flags, compile the plan, and emit watch lines.

Runs the whole pipeline for one build invocation:

1. Load ``bootplan.toml`` and collect capability flags (config file,
   ``--feature`` options, ``CARGO_FEATURE_*`` variables).
2. Validate and resolve the flags; an illegal combination stops here,
   before anything is compiled.
3. Emit the compilation plan and walk the watch roots (a read error also
   stops the build before compiling).
4. Compile every plan source and archive the objects into the library.
5. Print one change-tracking line per watched file to stdout.

Progress goes to stderr so stdout carries only the watch lines.
"""

import typer
from rich.console import Console

from bootplan.cli import FeatureOption, NoEnvOption, error_exit, load_build
from bootplan.errors import BootplanError
from bootplan.plan import emit_plan
from bootplan.resolver import resolve
from bootplan.toolchain import Toolchain
from bootplan.watch import format_watch_lines, watch_paths

console = Console(stderr=True)

app = typer.Typer(
    help="Build the bootutil static library for the requested flags.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

bootplan build -F sig-ecdsa               Build with ECDSA P-256

CARGO_FEATURE_SIG_RSA=1 bootplan build    Flags from the environment

bootplan build --no-watch                 Skip change-tracking output

[dim]Toolchain and watch roots come from bootplan.toml.[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    features: list[str] = FeatureOption,
    no_env: bool = NoEnvOption,
    no_watch: bool = typer.Option(False, "--no-watch", help="Do not print watch lines"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output"),
) -> None:
    """Build the bootutil static library for the requested flags."""
    cfg, flags = load_build(features, no_env=no_env)

    try:
        config = resolve(flags)
        plan = emit_plan(config)
        watched = (
            []
            if no_watch
            else watch_paths(cfg.watch_roots, base_dir=cfg.root, suffixes=cfg.watch_suffixes)
        )
        watch_lines = format_watch_lines(watched, cfg.watch_format)

        toolchain = Toolchain(
            out_dir=cfg.out_dir, cc=cfg.cc, ar=cfg.ar, timeout=cfg.compile_timeout
        )

        def _progress(source: str) -> None:
            if not quiet:
                console.print(f"[dim]cc[/dim] {source}", highlight=False)

        library = toolchain.build(plan, cfg.root, cfg.library, on_compile=_progress)
    except BootplanError as exc:
        error_exit(str(exc))

    if not quiet:
        console.print(
            f"[green]Built[/green] {library} ({len(plan.sources)} sources, "
            f"fingerprint {plan.fingerprint()[:12]})",
            highlight=False,
        )
    for line in watch_lines:
        print(line)


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
