"""Change-tracking walk.

Lists every C source and header under a fixed set of roots so the build
orchestrator knows when to rebuild.  The walk ignores which files the plan
actually selected: it watches more than is compiled, so a spurious rebuild
is possible but a missed one is not.

Entries are visited in sorted order, which keeps the emitted dependency
list stable between runs.
"""

from __future__ import annotations

import os
import warnings
from collections.abc import Iterable, Iterator
from pathlib import Path

from bootplan.errors import FilesystemError

DEFAULT_ROOTS: tuple[str, ...] = (
    "../../boot",
    "../../ext/tinycrypt/lib/source",
    "../../ext/mbedtls",
    "csupport",
    "mbedtls/include",
    "mbedtls/library",
)

DEFAULT_SUFFIXES: tuple[str, ...] = (".c", ".h")

DEFAULT_FORMAT = "cargo:rerun-if-changed={path}"


def _checked_name(path: Path) -> str:
    name = str(path)
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        raise FilesystemError(
            f"File name is not valid UTF-8: {os.fsencode(name)!r}",
            hint="Rename the file or remove it from the watched tree.",
        ) from None
    return name


def walk_dir(root: Path, suffixes: Iterable[str] = DEFAULT_SUFFIXES) -> Iterator[str]:
    """Yield every file under *root* whose name ends in one of *suffixes*.

    Raises:
        FilesystemError: a directory cannot be read or a name is not UTF-8.
    """
    wanted = tuple(suffixes)
    try:
        entries = sorted(root.iterdir())
    except OSError as e:
        raise FilesystemError(
            f"Cannot read directory {root}: {e.strerror or e}",
            hint="Check that the MCUboot tree is checked out with its submodules.",
        ) from e

    for entry in entries:
        # Symlinked directories are not followed; a link loop would never end.
        if entry.is_symlink() and entry.is_dir():
            continue
        if entry.is_dir():
            yield from walk_dir(entry, wanted)
            continue
        name = _checked_name(entry)
        if name.endswith(wanted):
            yield name


def watch_paths(
    roots: Iterable[str | Path],
    base_dir: Path | None = None,
    suffixes: Iterable[str] = DEFAULT_SUFFIXES,
) -> list[str]:
    """Collect watch paths for all *roots*, resolved against *base_dir*.

    Paths are reported the way the roots were written, so relative roots
    give relative paths.
    """
    roots = list(roots)
    if not roots:
        warnings.warn("No watch roots configured; nothing will trigger a rebuild.", stacklevel=2)
    wanted = tuple(suffixes)
    paths: list[str] = []
    for root in roots:
        root_path = Path(root)
        if base_dir is not None and not root_path.is_absolute():
            found = walk_dir(base_dir / root_path, wanted)
            prefix = str(base_dir / root_path)
            paths.extend(str(root_path / Path(p).relative_to(prefix)) for p in found)
        else:
            paths.extend(walk_dir(root_path, wanted))
    return paths


def format_watch_lines(paths: Iterable[str], fmt: str = DEFAULT_FORMAT) -> list[str]:
    """Render one "watch this path" declaration per path."""
    return [fmt.format(path=path) for path in paths]
