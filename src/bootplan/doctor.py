"""doctor.py – Diagnostic command for bootplan build health.

Validates everything a build needs in a single command: config file, flag
combination, compiler and archiver, watch roots, and the presence of every
source file the plan would compile.  Prints a checklist with actionable fix
suggestions.

Usage::

    bootplan doctor
    bootplan doctor -F sig-ecdsa
    bootplan doctor --json
"""

import shlex
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import typer

from bootplan.cli import FeatureOption, JsonOption, NoEnvOption, get_config, json_print, load_flags
from bootplan.config import BuildConfig
from bootplan.errors import BootplanError
from bootplan.plan import CompilationPlan, emit_plan
from bootplan.resolver import resolve

# ---------------------------------------------------------------------------
# Check result data
# ---------------------------------------------------------------------------

_PASS = "pass"
_FAIL = "fail"
_WARN = "warn"
_SKIP = "skip"


@dataclass
class CheckResult:
    """Result of a single diagnostic check."""

    name: str
    status: str  # "pass", "fail", "warn", "skip"
    message: str
    fix: str = ""

    def to_dict(self) -> dict[str, str]:
        """Serialize to a plain dict for JSON output."""
        d: dict[str, str] = {
            "name": self.name,
            "status": self.status,
            "message": self.message,
        }
        if self.fix:
            d["fix"] = self.fix
        return d


@dataclass
class DoctorReport:
    """Aggregated results from all diagnostic checks."""

    checks: list[CheckResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True if no checks failed."""
        return all(c.status != _FAIL for c in self.checks)

    def count(self, status: str) -> int:
        return sum(1 for c in self.checks if c.status == status)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for JSON output."""
        return {
            "passed": self.passed,
            "summary": {
                "pass": self.count(_PASS),
                "fail": self.count(_FAIL),
                "warn": self.count(_WARN),
            },
            "checks": [c.to_dict() for c in self.checks],
        }


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def check_config_parse() -> tuple[CheckResult, BuildConfig | None]:
    """Check that bootplan.toml parses, or that defaults are in use."""
    try:
        cfg = get_config()
    except (BootplanError, FileNotFoundError) as e:
        return (
            CheckResult(
                name="bootplan.toml",
                status=_FAIL,
                message=str(e).splitlines()[0],
                fix="Fix the reported value in bootplan.toml (must be valid TOML).",
            ),
            None,
        )
    if not cfg.from_file:
        return (
            CheckResult(
                name="bootplan.toml",
                status=_PASS,
                message=f"Not found, using defaults rooted at {cfg.root}",
            ),
            cfg,
        )
    return (
        CheckResult(
            name="bootplan.toml",
            status=_PASS,
            message=f"Parsed {cfg.project_root / 'bootplan.toml'}",
        ),
        cfg,
    )


def check_flags(
    cfg: BuildConfig, features: list[str], no_env: bool
) -> tuple[CheckResult, CompilationPlan | None]:
    """Check that the requested capability flags form a legal combination."""
    try:
        flags = load_flags(cfg, features, no_env=no_env)
        config = resolve(flags)
    except BootplanError as e:
        return (
            CheckResult(
                name="Capability flags",
                status=_FAIL,
                message=str(e).splitlines()[0],
                fix=e.hint or "Adjust the enabled features.",
            ),
            None,
        )
    sig = config.signature_backend.value if config.signature_backend else "digest-only"
    enabled = ", ".join(flags.enabled()) or "none"
    return (
        CheckResult(
            name="Capability flags",
            status=_PASS,
            message=f"{enabled} -> {sig}, header {config.config_header.value}",
        ),
        emit_plan(config),
    )


def check_executable(name: str, command: str, setting: str) -> CheckResult:
    """Check that the first token of *command* is on PATH."""
    try:
        parts = shlex.split(command)
    except ValueError:
        parts = command.split()
    exe = parts[0] if parts else ""
    if not exe:
        return CheckResult(
            name=name,
            status=_FAIL,
            message="No command configured",
            fix=f"Set {setting} in bootplan.toml.",
        )
    found = shutil.which(exe)
    if found is None:
        return CheckResult(
            name=name,
            status=_FAIL,
            message=f"Executable '{exe}' not found in PATH",
            fix=f"Install '{exe}' or update {setting} in bootplan.toml.",
        )
    return CheckResult(name=name, status=_PASS, message=f"Found: {found}")


def check_watch_roots(cfg: BuildConfig) -> CheckResult:
    """Check that every change-tracking root is a readable directory."""
    if not cfg.watch_roots:
        return CheckResult(
            name="Watch roots",
            status=_WARN,
            message="No watch roots configured",
            fix="Add [watch] roots to bootplan.toml so edits trigger rebuilds.",
        )
    missing = [r for r in cfg.watch_roots if not (cfg.root / r).is_dir()]
    if missing:
        return CheckResult(
            name="Watch roots",
            status=_FAIL,
            message=f"Missing: {', '.join(missing)}",
            fix="Check out the MCUboot tree with submodules, or fix [watch] roots.",
        )
    return CheckResult(
        name="Watch roots",
        status=_PASS,
        message=f"{len(cfg.watch_roots)} root(s) present",
    )


def check_plan_sources(cfg: BuildConfig, plan: CompilationPlan) -> CheckResult:
    """Check that every source the plan compiles exists under the build root."""
    missing = [s for s in plan.sources if not (cfg.root / s).is_file()]
    if missing:
        shown = ", ".join(missing[:3])
        more = f" (+{len(missing) - 3} more)" if len(missing) > 3 else ""
        return CheckResult(
            name="Plan sources",
            status=_FAIL,
            message=f"{len(missing)} of {len(plan.sources)} missing: {shown}{more}",
            fix="Set [build] root to the simulator crate directory (sim/mcuboot-sys).",
        )
    return CheckResult(
        name="Plan sources",
        status=_PASS,
        message=f"All {len(plan.sources)} source(s) present under {cfg.root}",
    )


# ---------------------------------------------------------------------------
# Main diagnostic runner
# ---------------------------------------------------------------------------


def run_doctor(features: list[str] | None = None, no_env: bool = False) -> DoctorReport:
    """Run all diagnostic checks and return a report."""
    report = DoctorReport()

    config_result, cfg = check_config_parse()
    report.checks.append(config_result)
    if cfg is None:
        return report

    flags_result, plan = check_flags(cfg, features or [], no_env)
    report.checks.append(flags_result)

    report.checks.append(check_executable("Compiler", cfg.cc, "[toolchain] cc"))
    report.checks.append(check_executable("Archiver", cfg.ar, "[toolchain] ar"))
    report.checks.append(check_watch_roots(cfg))

    if plan is None:
        report.checks.append(
            CheckResult(name="Plan sources", status=_SKIP, message="No plan (flags invalid)")
        )
    else:
        report.checks.append(check_plan_sources(cfg, plan))

    return report


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

_EPILOG = """\
[bold]Example:[/bold]

bootplan doctor                    Check the default build

bootplan doctor -F sig-ed25519     Check an Ed25519 build

bootplan doctor --json             Machine-readable output

[dim]Validates: bootplan.toml, flag combination, compiler and archiver,
watch roots, and plan sources.[/dim]"""

_STATUS_ICONS = {
    _PASS: "✅",
    _FAIL: "❌",
    _WARN: "⚠️",
    _SKIP: "⏭️",
}

app = typer.Typer(
    help="Diagnostic checks for bootplan build health.",
    rich_markup_mode="rich",
    epilog=_EPILOG,
)


@app.callback(invoke_without_command=True)
def main(
    features: list[str] = FeatureOption,
    no_env: bool = NoEnvOption,
    json_output: bool = JsonOption,
) -> None:
    """Run diagnostic checks on the bootplan build."""
    report = run_doctor(features=features, no_env=no_env)

    if json_output:
        json_print(report.to_dict())
    else:
        print("\nBootplan Doctor")
        print("=" * 60)

        for check in report.checks:
            icon = _STATUS_ICONS.get(check.status, "?")
            print(f"  {icon}  {check.name}: {check.message}")
            if check.fix:
                print(f"       Fix: {check.fix}")

        print("=" * 60)
        parts = []
        for status, label in ((_PASS, "passed"), (_FAIL, "failed"), (_WARN, "warnings")):
            if report.count(status):
                parts.append(f"{report.count(status)} {label}")
        print(f"  {', '.join(parts)}")

        if report.passed:
            print("\n  Build looks healthy!\n")
        else:
            print("\n  Issues found. Fix the failures above and re-run.\n")

    if not report.passed:
        raise typer.Exit(code=1)


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
