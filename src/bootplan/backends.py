"""Backend tables: the authoritative mapping from backend to build inputs.

Every signature and encryption backend known to :mod:`bootplan.resolver`
has exactly one entry here.  Paths are relative to the simulator crate
directory (``sim/mcuboot-sys``), so the MCUboot tree is ``../..``.

Tables
~~~~~~
``SIGNATURE_INPUTS``
    Keyed by :class:`SignatureBackend`, plus ``None`` for digest-only builds
    that verify nothing but a SHA-256 hash.

``ENCRYPTION_INPUTS``
    Keyed by :class:`EncryptionBackend`.

``PAIRED_INPUTS``
    Extra inputs needed only when a signature backend and an encryption
    backend are both active.

``EXCLUSIVE_INPUTS``
    Extra inputs needed only when a signature backend is active and the
    encryption backend is *not* (key-wrap brings its own parsing path, so
    ECDSA only needs the standalone ASN.1 parser without it).

``VERIFY_SOURCES``
    The bootutil image-verification source for each signature backend.
"""

from __future__ import annotations

from dataclasses import dataclass

from bootplan.resolver import ConfigHeader, EncryptionBackend, ImageSlots, SignatureBackend

Define = tuple[str, str | None]

_MBEDTLS = "mbedtls"
_EXT = "../../ext"
_BOOTUTIL = "../../boot/bootutil"
_TINYCRYPT = f"{_EXT}/tinycrypt/lib"
_KEYS = "csupport/keys.c"


def _mbedtls(*names: str) -> tuple[str, ...]:
    return tuple(f"{_MBEDTLS}/library/{name}.c" for name in names)


def _tinycrypt(*names: str) -> tuple[str, ...]:
    return tuple(f"{_TINYCRYPT}/source/{name}.c" for name in names)


@dataclass(frozen=True)
class BackendInputs:
    """Defines, include directories and sources contributed by one backend."""

    defines: tuple[Define, ...] = ()
    include_dirs: tuple[str, ...] = ()
    sources: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Always-on inputs
# ---------------------------------------------------------------------------

MAX_IMG_SECTORS = "128"

BASE_DEFINES: tuple[Define, ...] = (
    ("__BOOTSIM__", None),
    ("MCUBOOT_HAVE_LOGGING", None),
    ("MCUBOOT_USE_FLASH_AREA_GET_SECTORS", None),
    ("MCUBOOT_HAVE_ASSERT_H", None),
    ("MCUBOOT_MAX_IMG_SECTORS", MAX_IMG_SECTORS),
)

IMAGE_NUMBER_DEFINE = "MCUBOOT_IMAGE_NUMBER"

IMAGE_NUMBERS: dict[ImageSlots, str] = {
    ImageSlots.SINGLE: "1",
    ImageSlots.DUAL: "2",
}

BOOTSTRAP_DEFINES: tuple[Define, ...] = (("MCUBOOT_BOOTSTRAP", None),)

VALIDATE_PRIMARY_SLOT_DEFINES: tuple[Define, ...] = (("MCUBOOT_VALIDATE_PRIMARY_SLOT", None),)

OVERWRITE_ONLY_DEFINES: tuple[Define, ...] = (
    ("MCUBOOT_OVERWRITE_ONLY", None),
    ("MCUBOOT_OVERWRITE_ONLY_FAST", None),
)

CORE_SOURCES_HEAD: tuple[str, ...] = (f"{_BOOTUTIL}/src/image_validate.c",)

CORE_SOURCES_TAIL: tuple[str, ...] = (
    f"{_BOOTUTIL}/src/loader.c",
    f"{_BOOTUTIL}/src/caps.c",
    f"{_BOOTUTIL}/src/bootutil_misc.c",
    f"{_BOOTUTIL}/src/tlv.c",
    "csupport/run.c",
)

CORE_INCLUDE_DIRS: tuple[str, ...] = (
    f"{_BOOTUTIL}/include",
    "csupport",
    "../../boot/zephyr/include",
)

# The C sources are still built as C99 for older compilers.
COMPILER_FLAGS: tuple[str, ...] = ("-g", "-Wall", "-Werror", "-std=c99")

CONFIG_FILE_DEFINE = "MBEDTLS_CONFIG_FILE"

# DEFAULT has no entry: the configuration bundled with mbedTLS is enough.
CONFIG_HEADERS: dict[ConfigHeader, str | None] = {
    ConfigHeader.RSA_KEY_WRAP: "<config-rsa-kw.h>",
    ConfigHeader.RSA: "<config-rsa.h>",
    ConfigHeader.ASN1: "<config-asn1.h>",
    ConfigHeader.ED25519: "<config-ed25519.h>",
    ConfigHeader.KEY_WRAP: "<config-kw.h>",
    ConfigHeader.DEFAULT: None,
}


# ---------------------------------------------------------------------------
# Signature backends
# ---------------------------------------------------------------------------


def _rsa_inputs(bits: int) -> BackendInputs:
    # The Kconfig-style define is read by config-rsa.h itself.
    return BackendInputs(
        defines=(
            ("MCUBOOT_SIGN_RSA", None),
            ("MCUBOOT_SIGN_RSA_LEN", str(bits)),
            (f"CONFIG_BOOT_SIGNATURE_TYPE_RSA_{bits}", None),
            ("MCUBOOT_USE_MBED_TLS", None),
        ),
        include_dirs=(f"{_MBEDTLS}/include",),
        sources=(
            *_mbedtls("sha256"),
            _KEYS,
            *_mbedtls("rsa", "bignum", "platform", "platform_util", "asn1parse"),
        ),
    )


SIGNATURE_INPUTS: dict[SignatureBackend | None, BackendInputs] = {
    None: BackendInputs(
        defines=(("MCUBOOT_USE_MBED_TLS", None),),
        include_dirs=(f"{_MBEDTLS}/include",),
        sources=_mbedtls("sha256"),
    ),
    SignatureBackend.RSA2048: _rsa_inputs(2048),
    SignatureBackend.RSA3072: _rsa_inputs(3072),
    SignatureBackend.ECDSA_P256: BackendInputs(
        defines=(
            ("MCUBOOT_SIGN_EC256", None),
            ("MCUBOOT_USE_TINYCRYPT", None),
        ),
        include_dirs=(f"{_TINYCRYPT}/include",),
        sources=(
            _KEYS,
            *_tinycrypt("utils", "sha256", "ecc", "ecc_dsa", "ecc_platform_specific"),
            f"{_EXT}/mbedtls/src/platform_util.c",
        ),
    ),
    SignatureBackend.ED25519: BackendInputs(
        defines=(
            ("MCUBOOT_SIGN_ED25519", None),
            ("MCUBOOT_USE_MBED_TLS", None),
        ),
        include_dirs=(f"{_MBEDTLS}/include",),
        sources=(
            *_mbedtls("sha256", "sha512"),
            _KEYS,
            f"{_EXT}/fiat/src/curve25519.c",
            *_mbedtls("platform", "platform_util", "asn1parse"),
        ),
    ),
}

VERIFY_SOURCES: dict[SignatureBackend | None, tuple[str, ...]] = {
    None: (),
    SignatureBackend.RSA2048: (f"{_BOOTUTIL}/src/image_rsa.c",),
    SignatureBackend.RSA3072: (f"{_BOOTUTIL}/src/image_rsa.c",),
    SignatureBackend.ECDSA_P256: (f"{_BOOTUTIL}/src/image_ec256.c",),
    SignatureBackend.ED25519: (f"{_BOOTUTIL}/src/image_ed25519.c",),
}


# ---------------------------------------------------------------------------
# Encryption backends
# ---------------------------------------------------------------------------

ENCRYPTION_INPUTS: dict[EncryptionBackend, BackendInputs] = {
    EncryptionBackend.RSA: BackendInputs(
        defines=(
            ("MCUBOOT_ENCRYPT_RSA", None),
            ("MCUBOOT_ENC_IMAGES", None),
            ("MCUBOOT_USE_MBED_TLS", None),
        ),
        include_dirs=(f"{_MBEDTLS}/include",),
        sources=(
            f"{_BOOTUTIL}/src/encrypted.c",
            _KEYS,
            *_mbedtls(
                "sha256",
                "platform",
                "platform_util",
                "rsa",
                "rsa_internal",
                "md",
                "md_wrap",
                "aes",
                "bignum",
                "asn1parse",
            ),
        ),
    ),
    # The simulator uses mbedTLS to wrap keys.
    EncryptionBackend.KEY_WRAP: BackendInputs(
        defines=(
            ("MCUBOOT_ENCRYPT_KW", None),
            ("MCUBOOT_ENC_IMAGES", None),
        ),
        include_dirs=(f"{_MBEDTLS}/include",),
        sources=(
            f"{_BOOTUTIL}/src/encrypted.c",
            _KEYS,
            *_mbedtls("platform", "platform_util", "nist_kw", "cipher", "cipher_wrap", "aes"),
        ),
    ),
}


# ---------------------------------------------------------------------------
# Combination-dependent inputs
# ---------------------------------------------------------------------------

PAIRED_INPUTS: dict[tuple[SignatureBackend, EncryptionBackend], BackendInputs] = {
    (SignatureBackend.ECDSA_P256, EncryptionBackend.KEY_WRAP): BackendInputs(
        defines=(("MCUBOOT_USE_TINYCRYPT", None),),
        include_dirs=(f"{_TINYCRYPT}/include",),
        sources=_tinycrypt("utils", "sha256", "aes_encrypt", "aes_decrypt"),
    ),
}

EXCLUSIVE_INPUTS: dict[tuple[SignatureBackend, EncryptionBackend], BackendInputs] = {
    (SignatureBackend.ECDSA_P256, EncryptionBackend.KEY_WRAP): BackendInputs(
        include_dirs=(f"{_EXT}/mbedtls/include",),
        sources=(f"{_EXT}/mbedtls/src/asn1parse.c",),
    ),
}
