"""Seal issuance and verification.

``SealIssuer.issue`` turns a fully matching ``ComparisonResult`` into a
signed ``Seal``. Anything short of a full match raises
``VerificationFailed`` carrying exactly the result's mismatches and
one-sided paths, no more and no fewer.

Re-issuing over the same result and key reproduces the same *payload*
(manifest digest and metadata, given the same timestamp). Signatures are
only guaranteed to re-verify, not to be byte-identical, since a signing
primitive may be randomized.
"""

from __future__ import annotations

import logging
from datetime import datetime

from appseal.core.archive.models import Artifact
from appseal.core.cancellation import CancellationToken, check
from appseal.core.compare.models import ComparisonResult
from appseal.core.seal.models import (
    Seal,
    build_manifest,
    digest_manifest,
    manifest_digest,
    signing_payload,
)
from appseal.core.seal.signing import Signer
from appseal.core.timestamps import utc_now
from appseal.exceptions import SealMismatch, SealSignatureError, VerificationFailed

logger = logging.getLogger(__name__)


class SealIssuer:
    """Issues seals for verified comparisons.

    Args:
        signer: The signing capability (``HmacSigner``, ``Ed25519Signer``,
            or any ``Signer``).
        issuer: Identity recorded in every seal (e.g. ``"appfair.net"``).
    """

    def __init__(self, signer: Signer, issuer: str) -> None:
        if not issuer:
            raise ValueError("Seal issuer identity must not be empty")
        self.signer = signer
        self.issuer = issuer

    def issue(
        self,
        result: ComparisonResult,
        *,
        timestamp: datetime | None = None,
        cancel: CancellationToken | None = None,
    ) -> Seal:
        """Issue a seal for *result*.

        Args:
            result: A comparison with no mismatches and no one-sided paths.
            timestamp: Issue time; defaults to now (UTC, whole seconds).
            cancel: Optional token checked before signing.

        Returns:
            A new, signed ``Seal``.

        Raises:
            VerificationFailed: If *result* is not a full match.
            Cancelled: If *cancel* is tripped before the seal is signed.
        """
        if not result.is_match:
            raise VerificationFailed(
                mismatches=result.mismatch_tuples(),
                trusted_only=result.trusted_only_paths,
                untrusted_only=result.untrusted_only_paths,
            )

        manifest = build_manifest(result.verified_entries, result.algorithm)
        digest = digest_manifest(manifest)
        issued_at = (timestamp or utc_now()).replace(microsecond=0)

        check(cancel)
        payload = signing_payload(
            algorithm=result.algorithm,
            manifest_digest=digest,
            issuer=self.issuer,
            timestamp=issued_at,
            signature_algorithm=self.signer.algorithm,
        )
        signature = self.signer.sign(payload)
        logger.info(
            "Issued %s seal for %s (%d entries)",
            self.signer.algorithm, digest, len(result.verified_entries),
        )
        return Seal(
            algorithm=result.algorithm,
            manifest_digest=digest,
            issuer=self.issuer,
            timestamp=issued_at,
            signature=signature,
            signature_algorithm=self.signer.algorithm,
        )


def verify_seal(
    seal: Seal, verifier: Signer, *, artifact: Artifact | None = None
) -> None:
    """Check a seal's signature and, optionally, that it covers *artifact*.

    Args:
        seal: The seal to check.
        verifier: Signer holding the verification key.
        artifact: When given, the artifact the seal must cover.

    Raises:
        SealSignatureError: If the signature algorithm differs from the
            verifier's or the signature does not verify.
        SealMismatch: If *artifact* has a different manifest digest.
    """
    if seal.signature_algorithm != verifier.algorithm:
        raise SealSignatureError(
            f"seal signed with {seal.signature_algorithm}, "
            f"verifier uses {verifier.algorithm}"
        )
    if not verifier.verify(seal.signed_payload(), seal.signature):
        raise SealSignatureError(f"signature does not verify for {seal.manifest_digest}")
    if artifact is not None:
        actual = manifest_digest(artifact)
        if actual != seal.manifest_digest:
            raise SealMismatch(expected=seal.manifest_digest, actual=actual)
