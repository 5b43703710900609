"""Constraint validator and resolver.

Validates a :class:`~bootplan.flags.CapabilityFlags` value against the
illegal-combination rules and derives the :class:`ResolvedConfig` that the
plan emitter consumes.

Architecture
~~~~~~~~~~~~
``RULES``
    Ordered list of every illegal-combination check.  Each rule inspects the
    flags and raises a :class:`~bootplan.errors.ConfigError` subclass.  New
    restrictions are added here and nowhere else.

``resolve(flags)``
    Runs all rules, then maps the flags onto backends, image topology and
    the mbedTLS config-header variant.  Nothing is returned on failure.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from bootplan.errors import MultipleSignatureSchemes, UnsupportedCombination
from bootplan.flags import FEATURE_NAMES, CapabilityFlags


class SignatureBackend(str, Enum):
    """Algorithm used to verify image signatures."""

    RSA2048 = "rsa2048"
    RSA3072 = "rsa3072"
    ECDSA_P256 = "ecdsa-p256"
    ED25519 = "ed25519"


class EncryptionBackend(str, Enum):
    """Mechanism protecting the image encryption key."""

    RSA = "rsa"
    KEY_WRAP = "key-wrap"


class ImageSlots(Enum):
    """Number of independently updatable images."""

    SINGLE = 1
    DUAL = 2


class ConfigHeader(str, Enum):
    """mbedTLS configuration header selected for the build."""

    RSA = "rsa"
    RSA_KEY_WRAP = "rsa-kw"
    ASN1 = "asn1"
    ED25519 = "ed25519"
    KEY_WRAP = "kw"
    DEFAULT = "default"


_SIGNATURE_BY_FLAG: dict[str, SignatureBackend] = {
    "sig_rsa2048": SignatureBackend.RSA2048,
    "sig_rsa3072": SignatureBackend.RSA3072,
    "sig_ecdsa_p256": SignatureBackend.ECDSA_P256,
    "sig_ed25519": SignatureBackend.ED25519,
}

_RSA_SIGNATURES = frozenset({SignatureBackend.RSA2048, SignatureBackend.RSA3072})


@dataclass(frozen=True)
class ResolvedConfig:
    """Validated build configuration derived from capability flags."""

    signature_backend: SignatureBackend | None
    encryption_backends: frozenset[EncryptionBackend]
    image_slots: ImageSlots
    config_header: ConfigHeader
    bootstrap: bool = False
    validate_primary_slot: bool = False
    overwrite_only: bool = False

    def encrypts_with(self, backend: EncryptionBackend) -> bool:
        return backend in self.encryption_backends

    def ordered_encryption_backends(self) -> list[EncryptionBackend]:
        """Active encryption backends in declaration order."""
        return [b for b in EncryptionBackend if b in self.encryption_backends]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for JSON output."""
        return {
            "signature_backend": self.signature_backend.value if self.signature_backend else None,
            "encryption_backends": [b.value for b in self.ordered_encryption_backends()],
            "image_slots": self.image_slots.name.lower(),
            "image_count": self.image_slots.value,
            "config_header": self.config_header.value,
            "bootstrap": self.bootstrap,
            "validate_primary_slot": self.validate_primary_slot,
            "overwrite_only": self.overwrite_only,
        }


# ---------------------------------------------------------------------------
# Illegal-combination rules
# ---------------------------------------------------------------------------


def _at_most_one_signature(flags: CapabilityFlags) -> None:
    active = flags.signature_flags()
    if len(active) > 1:
        names = ", ".join(FEATURE_NAMES[name] for name in active)
        raise MultipleSignatureSchemes(
            f"mcuboot does not support more than one signature type at the same time ({names})",
            hint="Enable exactly one of sig-rsa, sig-rsa3072, sig-ecdsa, sig-ed25519.",
        )


def _ed25519_excludes_key_wrap(flags: CapabilityFlags) -> None:
    if flags.sig_ed25519 and flags.encrypt_key_wrap:
        raise UnsupportedCombination(
            "ed25519 signatures are not compatible with key-wrap image encryption",
            hint="Drop enc-kw or pick another signature type.",
        )


RULES: list[Callable[[CapabilityFlags], None]] = [
    _at_most_one_signature,
    _ed25519_excludes_key_wrap,
]


def validate(flags: CapabilityFlags) -> None:
    """Run every rule in order; the first violation raises."""
    for rule in RULES:
        rule(flags)


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------


def select_config_header(
    signature: SignatureBackend | None,
    encryption: frozenset[EncryptionBackend],
) -> ConfigHeader:
    """Pick the mbedTLS config header; the first matching case wins."""
    key_wrap = EncryptionBackend.KEY_WRAP in encryption
    if signature in _RSA_SIGNATURES and key_wrap:
        return ConfigHeader.RSA_KEY_WRAP
    if signature in _RSA_SIGNATURES or EncryptionBackend.RSA in encryption:
        return ConfigHeader.RSA
    if signature is SignatureBackend.ECDSA_P256 and not key_wrap:
        return ConfigHeader.ASN1
    if signature is SignatureBackend.ED25519:
        return ConfigHeader.ED25519
    if key_wrap:
        return ConfigHeader.KEY_WRAP
    return ConfigHeader.DEFAULT


def resolve(flags: CapabilityFlags) -> ResolvedConfig:
    """Validate *flags* and derive the build configuration.

    Raises:
        MultipleSignatureSchemes: more than one signature flag is set.
        UnsupportedCombination: ed25519 together with key-wrap encryption.
    """
    validate(flags)

    active = flags.signature_flags()
    signature = _SIGNATURE_BY_FLAG[active[0]] if active else None

    encryption: set[EncryptionBackend] = set()
    if flags.encrypt_rsa:
        encryption.add(EncryptionBackend.RSA)
    if flags.encrypt_key_wrap:
        encryption.add(EncryptionBackend.KEY_WRAP)
    frozen = frozenset(encryption)

    return ResolvedConfig(
        signature_backend=signature,
        encryption_backends=frozen,
        image_slots=ImageSlots.DUAL if flags.multi_image else ImageSlots.SINGLE,
        config_header=select_config_header(signature, frozen),
        bootstrap=flags.bootstrap,
        validate_primary_slot=flags.validate_primary_slot,
        overwrite_only=flags.overwrite_only,
    )
