"""Seals --- signed attestations of reproduced builds.

- ``models``: ``Seal`` and the canonical manifest helpers.
- ``signing``: the ``Signer`` protocol, ``HmacSigner``, ``Ed25519Signer``.
- ``issuer``: ``SealIssuer`` and ``verify_seal``.
"""

from appseal.core.seal.issuer import SealIssuer, verify_seal
from appseal.core.seal.models import (
    MANIFEST_VERSION,
    Seal,
    build_manifest,
    canonical_json,
    digest_manifest,
    manifest_digest,
)
from appseal.core.seal.signing import Ed25519Signer, HmacSigner, Signer

__all__ = [
    "Ed25519Signer",
    "HmacSigner",
    "MANIFEST_VERSION",
    "Seal",
    "SealIssuer",
    "Signer",
    "build_manifest",
    "canonical_json",
    "digest_manifest",
    "manifest_digest",
    "verify_seal",
]
