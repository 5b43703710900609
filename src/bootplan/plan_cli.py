"""bootplan plan: print the compilation plan for the requested flags.

The plan is what ``bootplan build`` hands to the compiler: defines, include
directories, sources in compile order, and compiler flags.  The fingerprint
is stable for a given flag set, so two machines can compare plans without
diffing them.
"""

import typer
from rich.console import Console
from rich.table import Table

from bootplan.cli import FeatureOption, JsonOption, NoEnvOption, error_exit, json_print, load_build
from bootplan.errors import ConfigError
from bootplan.plan import CompilationPlan, emit_plan
from bootplan.resolver import resolve

app = typer.Typer(
    help="Print the compilation plan for the requested flags.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

bootplan plan -F sig-ed25519              Plan for Ed25519 signatures

bootplan plan -F sig-ecdsa --json         Machine-readable plan

[dim]Paths are relative to [build] root in bootplan.toml.[/dim]""",
)


def _render(console: Console, plan: CompilationPlan) -> None:
    defines = Table(title="Defines", show_header=False, box=None, padding=(0, 2))
    defines.add_column("Name", style="bold")
    defines.add_column("Value")
    for name, value in plan.defines:
        defines.add_row(name, value if value is not None else "")
    console.print(defines)

    console.print("\n[bold]Include directories[/bold]")
    for path in plan.include_dirs:
        console.print(f"  {path}", highlight=False)

    console.print(f"\n[bold]Sources[/bold] ({len(plan.sources)})")
    for path in plan.sources:
        console.print(f"  {path}", highlight=False)

    console.print(f"\n[bold]Flags[/bold]  {' '.join(plan.compiler_flags)}", highlight=False)
    console.print(f"[dim]fingerprint {plan.fingerprint()}[/dim]")


@app.callback(invoke_without_command=True)
def main(
    features: list[str] = FeatureOption,
    no_env: bool = NoEnvOption,
    json_output: bool = JsonOption,
) -> None:
    """Print the compilation plan for the requested flags."""
    _cfg, flags = load_build(features, no_env=no_env, json_mode=json_output)
    try:
        config = resolve(flags)
    except ConfigError as exc:
        error_exit(str(exc), json_mode=json_output)

    plan = emit_plan(config)
    if json_output:
        json_print(
            {
                "resolved": config.to_dict(),
                "plan": plan.to_dict(),
                "fingerprint": plan.fingerprint(),
            }
        )
    else:
        _render(Console(), plan)


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
