"""Seal data model and the canonical manifest.

A seal never embeds or references the raw archive. It references the
*manifest digest*: the digest of a canonical JSON document listing every
verified entry (path, size, hash) sorted by path. Two artifacts with the
same content therefore share a manifest digest even when their zip
containers differ in timestamps or compression.

Canonical JSON here means sorted keys, compact separators, UTF-8, which is
the same canonical form the signature covers.
"""

from __future__ import annotations

import base64
import hashlib
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from appseal.core.archive.models import DIGEST_ALGORITHM, ArchiveEntry, Artifact
from appseal.core.timestamps import format_timestamp, parse_timestamp

MANIFEST_VERSION: int = 1


def canonical_json(value: Any) -> bytes:
    """Serialize *value* to canonical JSON bytes."""
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def build_manifest(
    entries: Iterable[ArchiveEntry], algorithm: str = DIGEST_ALGORITHM
) -> bytes:
    """Build the canonical manifest document for a set of entries."""
    ordered = sorted(entries, key=lambda entry: entry.path)
    return canonical_json({
        "algorithm": algorithm,
        "manifestVersion": MANIFEST_VERSION,
        "entries": [
            {"path": e.path, "size": e.size, "hash": e.content_hash}
            for e in ordered
        ],
    })


def digest_manifest(manifest: bytes) -> str:
    return f"{DIGEST_ALGORITHM}:{hashlib.sha256(manifest).hexdigest()}"


def manifest_digest(artifact: Artifact) -> str:
    """Digest of the canonical manifest covering every entry of *artifact*."""
    return digest_manifest(build_manifest(artifact, artifact.algorithm))


@dataclass(frozen=True)
class Seal:
    """A signed attestation that an untrusted build reproduces a trusted one.

    Attributes:
        algorithm: Content digest algorithm of the sealed manifest.
        manifest_digest: Digest of the canonical manifest; the seal's subject.
        issuer: Identity of the party that issued the seal.
        timestamp: Issue time (UTC, whole seconds).
        signature: Detached signature over ``signed_payload()``.
        signature_algorithm: Identifier of the signing primitive
            (``"hmac-sha256"`` or ``"ed25519"``).
    """

    algorithm: str
    manifest_digest: str
    issuer: str
    timestamp: datetime
    signature: bytes
    signature_algorithm: str

    @property
    def subject_artifact_hash(self) -> str:
        return self.manifest_digest

    def signed_payload(self) -> bytes:
        """The exact bytes covered by ``signature``."""
        return signing_payload(
            algorithm=self.algorithm,
            manifest_digest=self.manifest_digest,
            issuer=self.issuer,
            timestamp=self.timestamp,
            signature_algorithm=self.signature_algorithm,
        )

    # -- Serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "manifestDigest": self.manifest_digest,
            "issuer": self.issuer,
            "timestamp": format_timestamp(self.timestamp),
            "signature": base64.b64encode(self.signature).decode("ascii"),
            "signatureAlgorithm": self.signature_algorithm,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Seal:
        """Deserialize a seal document.

        Raises:
            ValueError: If a required field is missing or malformed.
        """
        try:
            return cls(
                algorithm=data["algorithm"],
                manifest_digest=data["manifestDigest"],
                issuer=data["issuer"],
                timestamp=parse_timestamp(data["timestamp"]),
                signature=base64.b64decode(data["signature"], validate=True),
                signature_algorithm=data.get("signatureAlgorithm", "hmac-sha256"),
            )
        except KeyError as exc:
            raise ValueError(f"Seal document is missing field {exc.args[0]!r}") from exc
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Malformed seal document: {exc}") from exc

    @classmethod
    def from_json(cls, text: str) -> Seal:
        return cls.from_dict(json.loads(text))


def signing_payload(
    *,
    algorithm: str,
    manifest_digest: str,
    issuer: str,
    timestamp: datetime,
    signature_algorithm: str,
) -> bytes:
    """Canonical bytes a signer signs: the manifest digest plus metadata."""
    return canonical_json({
        "algorithm": algorithm,
        "issuer": issuer,
        "manifestDigest": manifest_digest,
        "signatureAlgorithm": signature_algorithm,
        "timestamp": format_timestamp(timestamp),
    })
