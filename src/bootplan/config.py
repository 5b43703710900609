"""Project configuration loader for bootplan.

Reads ``bootplan.toml`` from the project root (found by walking up from the
current directory, the way ``git`` finds ``.git/``) and exposes every setting
as a plain attribute.  All settings are optional; without a config file the
defaults reproduce the simulator crate's own build.

Usage::

    from bootplan.config import load_config

    cfg = load_config()
    cfg.root          # Path that plan paths are relative to
    cfg.cc            # "cc"
    cfg.watch_roots   # ["../../boot", "csupport", ...]

Example ``bootplan.toml``::

    [build]
    root = "sim/mcuboot-sys"
    features = ["sig-ecdsa", "enc-kw"]

    [toolchain]
    cc = "clang"
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path

from bootplan.errors import ConfigError
from bootplan.flags import DEFAULT_ENV_PREFIX, flag_for_feature
from bootplan.watch import DEFAULT_FORMAT, DEFAULT_ROOTS, DEFAULT_SUFFIXES

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CONFIG_NAME = "bootplan.toml"


@dataclass
class BuildConfig:
    """Parsed project configuration with computed paths."""

    # Directory where bootplan.toml lives (or cwd without one)
    project_root: Path

    # --- [build] ---
    root: Path = field(default_factory=lambda: Path())
    out_dir: Path = field(default_factory=lambda: Path("target/bootplan"))
    library: str = "libbootutil.a"
    features: list[str] = field(default_factory=list)
    env_prefix: str = DEFAULT_ENV_PREFIX

    # --- [toolchain] ---
    cc: str = "cc"
    ar: str = "ar"
    compile_timeout: int = 120

    # --- [watch] ---
    watch_roots: list[str] = field(default_factory=lambda: list(DEFAULT_ROOTS))
    watch_suffixes: list[str] = field(default_factory=lambda: list(DEFAULT_SUFFIXES))
    watch_format: str = DEFAULT_FORMAT

    # True when loaded from a file rather than defaulted
    from_file: bool = False


def _resolve(root: Path, rel: str | None) -> Path | None:
    """Resolve a path relative to the project root."""
    if rel is None:
        return None
    p = Path(rel)
    if p.is_absolute():
        return p
    return root / p


def _find_root(start: Path | None = None) -> Path | None:
    """Walk up from *start* (or cwd) to the nearest directory with bootplan.toml."""
    if start is not None:
        return start
    candidate = Path.cwd().resolve()
    while candidate != candidate.parent:
        if (candidate / CONFIG_NAME).exists():
            return candidate
        candidate = candidate.parent
    return None


def _table(raw: dict, key: str) -> dict:
    value = raw.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"{CONFIG_NAME}: '[{key}]' must be a table")
    return value


def _string(section: dict, key: str, default: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str):
        raise ConfigError(f"{CONFIG_NAME}: '{key}' must be a string")
    return value


def _string_list(section: dict, key: str, default: list[str]) -> list[str]:
    value = section.get(key, default)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{CONFIG_NAME}: '{key}' must be a list of strings")
    return list(value)


def _watch_format(section: dict) -> str:
    fmt = _string(section, "format", DEFAULT_FORMAT)
    try:
        fmt.format(path="x")
    except (KeyError, IndexError, ValueError, AttributeError) as e:
        raise ConfigError(
            f"{CONFIG_NAME}: 'watch.format' is not a valid line template: {fmt!r}",
            hint="Use {path} as the only placeholder; write {{ and }} for literal braces.",
        ) from e
    return fmt


def load_config(root: Path | None = None) -> BuildConfig:
    """Load bootplan.toml.

    Args:
        root: Project root directory.  Auto-detected if ``None``; when no
              config file is found anywhere above the current directory,
              defaults rooted at the current directory are returned.

    Raises:
        FileNotFoundError: *root* was given but holds no bootplan.toml.
        ConfigError: the file is not valid TOML, has a mistyped value, or
                     names an unknown feature.
    """
    found = _find_root(root)
    if found is None:
        cwd = Path.cwd()
        return BuildConfig(project_root=cwd, root=cwd, out_dir=cwd / "target" / "bootplan")

    toml_path = found / CONFIG_NAME
    if not toml_path.exists():
        raise FileNotFoundError(f"Config not found: {toml_path}")

    try:
        with open(toml_path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{toml_path}: {e}", hint="Check the TOML syntax.") from e

    build = _table(raw, "build")
    toolchain = _table(raw, "toolchain")
    watch = _table(raw, "watch")

    features = _string_list(build, "features", [])
    for name in features:
        flag_for_feature(name)

    timeout = toolchain.get("timeout", 120)
    # bool is an int subclass; `timeout = true` is still a typo.
    if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0:
        raise ConfigError(f"{CONFIG_NAME}: 'toolchain.timeout' must be a positive integer")

    return BuildConfig(
        project_root=found,
        root=_resolve(found, _string(build, "root", ".")),
        out_dir=_resolve(found, _string(build, "out_dir", "target/bootplan")),
        library=_string(build, "library", "libbootutil.a"),
        features=features,
        env_prefix=_string(build, "env_prefix", DEFAULT_ENV_PREFIX),
        cc=_string(toolchain, "cc", "cc"),
        ar=_string(toolchain, "ar", "ar"),
        compile_timeout=timeout,
        watch_roots=_string_list(watch, "roots", list(DEFAULT_ROOTS)),
        watch_suffixes=_string_list(watch, "suffixes", list(DEFAULT_SUFFIXES)),
        watch_format=_watch_format(watch),
        from_file=True,
    )
