"""Native toolchain driver: compile a plan's sources and archive them.

Architecture
~~~~~~~~~~~~
``Toolchain.compile_command(plan, source, obj)``
    Builds ``[cc, <flags>, -D..., -I..., -c, <source>, -o, <obj>]``.

``Toolchain.compile(plan, base_dir)``
    Runs the compiler once per plan source, in plan order, from
    ``base_dir`` (the directory plan paths are relative to).  Object names
    carry a short hash of the source path because different libraries ship
    files with the same name (``sha256.c`` exists in both mbedTLS and
    TinyCrypt).

``Toolchain.archive(objects, library)``
    Packs the objects into one static library with ``ar crs``.

Any failure raises :class:`~bootplan.errors.ToolchainError` carrying the
command and the first part of the tool's output.
"""

from __future__ import annotations

import hashlib
import shlex
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from bootplan.errors import ToolchainError
from bootplan.plan import CompilationPlan

# Characters of tool output kept in error messages.
_OUTPUT_LIMIT = 400


def _run(cmd: list[str], cwd: Path, timeout: int, what: str) -> None:
    try:
        r = subprocess.run(cmd, capture_output=True, cwd=str(cwd), timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise ToolchainError(f"{what} timed out after {timeout}s: {shlex.join(cmd)}") from e
    except FileNotFoundError as e:
        raise ToolchainError(
            f"{what} not found: {cmd[0]}",
            hint="Install it or set [toolchain] cc/ar in bootplan.toml.",
        ) from e
    except OSError as e:
        raise ToolchainError(f"Failed to run {what.lower()}: {e}") from e

    if r.returncode != 0:
        output = (r.stdout + r.stderr).decode("utf-8", errors="replace")[:_OUTPUT_LIMIT]
        raise ToolchainError(
            f"{what} failed (exit {r.returncode}): {shlex.join(cmd)}\n{output}".rstrip()
        )


@dataclass
class Toolchain:
    """A C compiler plus archiver, invoked as subprocesses."""

    out_dir: Path
    cc: str = "cc"
    ar: str = "ar"
    timeout: int = 120

    def __post_init__(self) -> None:
        # Compiles run from the plan root, so object paths must not be relative.
        self.out_dir = Path(self.out_dir).resolve()

    def object_path(self, source: str) -> Path:
        digest = hashlib.sha256(source.encode("utf-8")).hexdigest()[:16]
        return self.out_dir / f"{digest}-{Path(source).stem}.o"

    def compile_command(self, plan: CompilationPlan, source: str, obj: Path) -> list[str]:
        return [
            *shlex.split(self.cc),
            *plan.compiler_flags,
            *plan.define_args(),
            *plan.include_args(),
            "-c",
            source,
            "-o",
            str(obj),
        ]

    def compile(
        self,
        plan: CompilationPlan,
        base_dir: Path,
        on_compile: Callable[[str], None] | None = None,
    ) -> list[Path]:
        """Compile every source of *plan*; returns the object paths in order."""
        self.out_dir.mkdir(parents=True, exist_ok=True)
        objects: list[Path] = []
        for source in plan.sources:
            if on_compile is not None:
                on_compile(source)
            obj = self.object_path(source)
            _run(self.compile_command(plan, source, obj), base_dir, self.timeout, "Compiler")
            objects.append(obj)
        return objects

    def archive(self, objects: Sequence[Path], library: str) -> Path:
        """Archive *objects* into ``out_dir/library``, replacing any old archive."""
        lib_path = self.out_dir / library
        if lib_path.exists():
            lib_path.unlink()
        cmd = [*shlex.split(self.ar), "crs", str(lib_path), *(str(o) for o in objects)]
        _run(cmd, self.out_dir, self.timeout, "Archiver")
        return lib_path

    def build(
        self,
        plan: CompilationPlan,
        base_dir: Path,
        library: str,
        on_compile: Callable[[str], None] | None = None,
    ) -> Path:
        """Compile and archive; returns the path of the static library."""
        return self.archive(self.compile(plan, base_dir, on_compile), library)
