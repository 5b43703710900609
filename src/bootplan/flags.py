"""Capability flags: the ten boolean inputs of a bootloader build.

Each flag is simply present or absent.  Flags can come from the environment
(Cargo-style ``CARGO_FEATURE_<NAME>`` variables), from the command line, or
from the ``features`` list in ``bootplan.toml``; the sources are unioned into
a single immutable :class:`CapabilityFlags` value at process entry and passed
explicitly to the resolver from there on.

Feature names are accepted in either spelling::

    sig_rsa2048      # field name
    sig-rsa          # simulator crate feature name
    SIG_RSA          # environment suffix
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields

from bootplan.errors import UnknownFeature

DEFAULT_ENV_PREFIX = "CARGO_FEATURE_"

# Field name -> feature name of the simulator crate.
FEATURE_NAMES: dict[str, str] = {
    "sig_rsa2048": "sig-rsa",
    "sig_rsa3072": "sig-rsa3072",
    "sig_ecdsa_p256": "sig-ecdsa",
    "sig_ed25519": "sig-ed25519",
    "overwrite_only": "overwrite-only",
    "validate_primary_slot": "validate-primary-slot",
    "encrypt_rsa": "enc-rsa",
    "encrypt_key_wrap": "enc-kw",
    "bootstrap": "bootstrap",
    "multi_image": "multiimage",
}

SIGNATURE_FLAGS: tuple[str, ...] = (
    "sig_rsa2048",
    "sig_rsa3072",
    "sig_ecdsa_p256",
    "sig_ed25519",
)


@dataclass(frozen=True)
class CapabilityFlags:
    """Immutable set of capability flags for one build invocation."""

    sig_rsa2048: bool = False
    sig_rsa3072: bool = False
    sig_ecdsa_p256: bool = False
    sig_ed25519: bool = False
    overwrite_only: bool = False
    validate_primary_slot: bool = False
    encrypt_rsa: bool = False
    encrypt_key_wrap: bool = False
    bootstrap: bool = False
    multi_image: bool = False

    def enabled(self) -> list[str]:
        """Names of the flags that are set, in declaration order."""
        return [f.name for f in fields(self) if getattr(self, f.name)]

    def signature_flags(self) -> list[str]:
        """Names of the signature-algorithm flags that are set."""
        return [name for name in SIGNATURE_FLAGS if getattr(self, name)]

    def to_dict(self) -> dict[str, bool]:
        """Serialize to a plain dict for JSON output."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _normalize(name: str) -> str:
    return name.strip().lower().replace("-", "_")


_LOOKUP: dict[str, str] = {}
for _field, _feature in FEATURE_NAMES.items():
    _LOOKUP[_normalize(_field)] = _field
    _LOOKUP[_normalize(_feature)] = _field


def flag_for_feature(name: str) -> str:
    """Map a feature name in any accepted spelling to its flag field.

    Raises:
        UnknownFeature: if *name* matches no flag.
    """
    try:
        return _LOOKUP[_normalize(name)]
    except KeyError:
        raise UnknownFeature(
            f"Unknown feature {name!r}",
            hint=f"Known features: {', '.join(FEATURE_NAMES.values())}",
        ) from None


def env_var_name(flag: str, prefix: str = DEFAULT_ENV_PREFIX) -> str:
    """Return the environment variable that enables *flag*."""
    return prefix + FEATURE_NAMES[flag].upper().replace("-", "_")


def from_env(
    environ: Mapping[str, str] | None = None,
    prefix: str = DEFAULT_ENV_PREFIX,
) -> CapabilityFlags:
    """Read flags from variable presence; the value is never inspected."""
    env = os.environ if environ is None else environ
    return CapabilityFlags(**{name: env_var_name(name, prefix) in env for name in FEATURE_NAMES})


def from_features(names: Iterable[str]) -> CapabilityFlags:
    """Build flags from a list of feature names.

    Raises:
        UnknownFeature: on the first name that matches no flag.
    """
    enabled = {flag_for_feature(name) for name in names}
    return CapabilityFlags(**{name: True for name in enabled})


def merge(*sources: CapabilityFlags) -> CapabilityFlags:
    """Union several flag sources: a flag is set if any source sets it."""
    return CapabilityFlags(
        **{f.name: any(getattr(s, f.name) for s in sources) for f in fields(CapabilityFlags)}
    )
