"""Compilation plan emitter.

Walks a :class:`~bootplan.resolver.ResolvedConfig` and the tables in
:mod:`bootplan.backends` to produce a :class:`CompilationPlan`: the complete
set of defines, include directories, sources and compiler flags needed to
build the bootutil library.

The emitter is a pure function.  The same config always yields the same
plan, byte for byte, in the same order; :meth:`CompilationPlan.fingerprint`
hashes the canonical form so reproducibility can be checked cheaply.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from bootplan import backends
from bootplan.backends import BackendInputs, Define
from bootplan.resolver import ResolvedConfig

# Bump when the canonical form hashed by fingerprint() changes.
PLAN_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class CompilationPlan:
    """Resolved build inputs for one static library."""

    defines: tuple[Define, ...]
    include_dirs: tuple[str, ...]
    sources: tuple[str, ...]
    compiler_flags: tuple[str, ...]

    def define_map(self) -> dict[str, str | None]:
        """Defines as an insertion-ordered dict."""
        return dict(self.defines)

    def define_args(self) -> list[str]:
        """Defines rendered as ``-DNAME`` / ``-DNAME=VALUE`` arguments."""
        return [
            f"-D{name}" if value is None else f"-D{name}={value}" for name, value in self.defines
        ]

    def include_args(self) -> list[str]:
        return [f"-I{path}" for path in self.include_dirs]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for JSON output."""
        return {
            "defines": [[name, value] for name, value in self.defines],
            "include_dirs": list(self.include_dirs),
            "sources": list(self.sources),
            "compiler_flags": list(self.compiler_flags),
        }

    def fingerprint(self) -> str:
        """SHA-256 over the canonical plan; equal plans give equal digests."""
        h = hashlib.sha256()
        h.update(f"v{PLAN_SCHEMA_VERSION}\0".encode())
        h.update(json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8"))
        return h.hexdigest()


class PlanBuilder:
    """Accumulates plan inputs, dropping repeats while keeping first order.

    A define keeps the value it was first given.  A source listed twice
    would be compiled twice and clash at archive time, so repeats are
    dropped as well.
    """

    def __init__(self) -> None:
        self._defines: dict[str, str | None] = {}
        self._include_dirs: dict[str, None] = {}
        self._sources: dict[str, None] = {}
        self._flags: list[str] = []

    def define(self, name: str, value: str | None = None) -> None:
        self._defines.setdefault(name, value)

    def add_defines(self, defines: Iterable[Define]) -> None:
        for name, value in defines:
            self.define(name, value)

    def add_include_dirs(self, paths: Iterable[str]) -> None:
        for path in paths:
            self._include_dirs.setdefault(path, None)

    def add_sources(self, paths: Iterable[str]) -> None:
        for path in paths:
            self._sources.setdefault(path, None)

    def add_flags(self, flags: Iterable[str]) -> None:
        self._flags.extend(flags)

    def add(self, inputs: BackendInputs) -> None:
        self.add_defines(inputs.defines)
        self.add_include_dirs(inputs.include_dirs)
        self.add_sources(inputs.sources)

    def build(self) -> CompilationPlan:
        return CompilationPlan(
            defines=tuple(self._defines.items()),
            include_dirs=tuple(self._include_dirs),
            sources=tuple(self._sources),
            compiler_flags=tuple(self._flags),
        )


# ---------------------------------------------------------------------------
# Independent derivations
# ---------------------------------------------------------------------------


def base_defines(config: ResolvedConfig) -> list[Define]:
    """Platform defines plus the pass-through toggles."""
    defines = list(backends.BASE_DEFINES)
    defines.append((backends.IMAGE_NUMBER_DEFINE, backends.IMAGE_NUMBERS[config.image_slots]))
    if config.bootstrap:
        defines.extend(backends.BOOTSTRAP_DEFINES)
    if config.validate_primary_slot:
        defines.extend(backends.VALIDATE_PRIMARY_SLOT_DEFINES)
    return defines


def exclusive_inputs(config: ResolvedConfig) -> list[BackendInputs]:
    """Entries for the signature backend that apply only without a given encryption."""
    signature = config.signature_backend
    if signature is None:
        return []
    return [
        inputs
        for (sig, enc), inputs in backends.EXCLUSIVE_INPUTS.items()
        if sig is signature and not config.encrypts_with(enc)
    ]


def backend_inputs(config: ResolvedConfig) -> list[BackendInputs]:
    """Table entries selected by the signature and encryption backends."""
    signature = config.signature_backend
    selected = [backends.SIGNATURE_INPUTS[signature], *exclusive_inputs(config)]
    for enc in config.ordered_encryption_backends():
        selected.append(backends.ENCRYPTION_INPUTS[enc])
        if signature is not None:
            paired = backends.PAIRED_INPUTS.get((signature, enc))
            if paired is not None:
                selected.append(paired)
    return selected


def update_policy_defines(config: ResolvedConfig) -> list[Define]:
    return list(backends.OVERWRITE_ONLY_DEFINES) if config.overwrite_only else []


def config_header_defines(config: ResolvedConfig) -> list[Define]:
    header = backends.CONFIG_HEADERS[config.config_header]
    if header is None:
        return []
    return [(backends.CONFIG_FILE_DEFINE, header)]


def core_sources(config: ResolvedConfig) -> list[str]:
    """Bootutil sources compiled into every build, verification source included."""
    return [
        *backends.CORE_SOURCES_HEAD,
        *backends.VERIFY_SOURCES[config.signature_backend],
        *backends.CORE_SOURCES_TAIL,
    ]


def emit_plan(config: ResolvedConfig) -> CompilationPlan:
    """Compose every derivation into one plan."""
    builder = PlanBuilder()
    builder.add_defines(base_defines(config))
    # Exclusive include dirs are searched ahead of the backend's own.
    for inputs in exclusive_inputs(config):
        builder.add_include_dirs(inputs.include_dirs)
    for inputs in backend_inputs(config):
        builder.add(inputs)
    builder.add_defines(update_policy_defines(config))
    builder.add_defines(config_header_defines(config))
    builder.add_sources(core_sources(config))
    builder.add_include_dirs(backends.CORE_INCLUDE_DIRS)
    builder.add_flags(backends.COMPILER_FLAGS)
    return builder.build()
