"""Pluggable signing capabilities for seals.

A signer is passed explicitly to the ``SealIssuer``; nothing in appseal
keeps a process-wide key. Two implementations ship:

- ``HmacSigner``: HMAC-SHA256 over the canonical payload with a shared
  secret. Deterministic.
- ``Ed25519Signer``: detached Ed25519 signatures via ``cryptography``.
  A signer built from a public key alone can verify but not sign.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Signer(Protocol):
    """Signing capability used by the seal issuer and verifier."""

    algorithm: str

    def sign(self, payload: bytes) -> bytes:
        """Return a detached signature for *payload*."""
        ...

    def verify(self, payload: bytes, signature: bytes) -> bool:
        """Return True if *signature* is valid for *payload*."""
        ...


class HmacSigner:
    """HMAC-SHA256 signer over a shared secret key.

    Args:
        key: Secret key bytes. Must not be empty.
    """

    algorithm = "hmac-sha256"

    def __init__(self, key: bytes) -> None:
        if not key:
            raise ValueError("HMAC signing key must not be empty")
        self._key = bytes(key)

    def sign(self, payload: bytes) -> bytes:
        return hmac.new(self._key, payload, hashlib.sha256).digest()

    def verify(self, payload: bytes, signature: bytes) -> bool:
        return hmac.compare_digest(self.sign(payload), signature)

    def __repr__(self) -> str:
        return "HmacSigner(<redacted>)"


def _ensure_cryptography() -> Any:  # noqa: ANN401
    """Lazily import the Ed25519 primitives and raise a friendly error if missing.

    Raises:
        SystemExit: If cryptography is not installed.
    """
    try:
        from cryptography.hazmat.primitives.asymmetric import ed25519

        return ed25519
    except ImportError:
        raise SystemExit(
            "cryptography is required for Ed25519 seals.\n"
            "Install it with: pip install appseal[ed25519]"
        )


class Ed25519Signer:
    """Ed25519 signer backed by ``cryptography``.

    Build instances with ``from_private_bytes``, ``from_public_bytes``,
    ``from_pem``, or ``generate``.
    """

    algorithm = "ed25519"

    def __init__(self, private_key: Any = None, public_key: Any = None) -> None:
        if private_key is None and public_key is None:
            raise ValueError("Ed25519Signer needs a private or a public key")
        self._private_key = private_key
        self._public_key = public_key if public_key is not None else private_key.public_key()

    @classmethod
    def generate(cls) -> Ed25519Signer:
        ed25519 = _ensure_cryptography()
        return cls(private_key=ed25519.Ed25519PrivateKey.generate())

    @classmethod
    def from_private_bytes(cls, seed: bytes) -> Ed25519Signer:
        """Build a signer from a raw 32-byte private key seed."""
        ed25519 = _ensure_cryptography()
        return cls(private_key=ed25519.Ed25519PrivateKey.from_private_bytes(seed))

    @classmethod
    def from_public_bytes(cls, raw: bytes) -> Ed25519Signer:
        """Build a verify-only signer from a raw 32-byte public key."""
        ed25519 = _ensure_cryptography()
        return cls(public_key=ed25519.Ed25519PublicKey.from_public_bytes(raw))

    @classmethod
    def from_pem(cls, blob: bytes) -> Ed25519Signer:
        """Load a PEM private key, or a PEM public key for verify-only use."""
        ed25519 = _ensure_cryptography()
        from cryptography.hazmat.primitives import serialization

        if b"PRIVATE KEY" in blob:
            key = serialization.load_pem_private_key(blob, password=None)
            if not isinstance(key, ed25519.Ed25519PrivateKey):
                raise ValueError("Private key is not Ed25519")
            return cls(private_key=key)
        key = serialization.load_pem_public_key(blob)
        if not isinstance(key, ed25519.Ed25519PublicKey):
            raise ValueError("Public key is not Ed25519")
        return cls(public_key=key)

    @property
    def can_sign(self) -> bool:
        return self._private_key is not None

    def public_bytes(self) -> bytes:
        from cryptography.hazmat.primitives import serialization

        return self._public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    def sign(self, payload: bytes) -> bytes:
        if self._private_key is None:
            raise ValueError("This Ed25519Signer holds only a public key")
        return self._private_key.sign(payload)

    def verify(self, payload: bytes, signature: bytes) -> bool:
        from cryptography.exceptions import InvalidSignature

        try:
            self._public_key.verify(signature, payload)
        except InvalidSignature:
            return False
        return True
