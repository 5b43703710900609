"""bootplan: build-plan resolver for the MCUboot simulator library.

Turns a set of capability flags (signature algorithm, image encryption,
update policy, image topology) into a validated, deterministic compilation
plan and drives a native C toolchain with it.
"""

__version__ = "0.1.0"
