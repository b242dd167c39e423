"""appseal exception hierarchy.

All public exceptions inherit from AppSealError, giving callers a single
base class to catch when they want to handle any appseal-specific failure
without swallowing unrelated errors.

The core never formats diagnostics for humans. Every error carries the
structured detail (offending paths, hash pairs, placeholder names) that a
CLI or GUI layer needs to render its own message, and exposes it through
``to_dict()`` for JSON output.
"""

from __future__ import annotations

from typing import Any, Mapping


class AppSealError(Exception):
    """Base exception for all appseal errors."""

    kind: str = "error"

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable description of the error."""
        return {"error": self.kind, "message": str(self)}


class MalformedArchive(AppSealError):
    """Raised when archive bytes cannot be turned into an Artifact.

    Covers unparseable zip data, undecompressable entries, entry paths that
    escape the archive root, and entries that normalize to the same path.

    Attributes:
        reason: Short machine-readable reason ("unreadable", "traversal",
            "duplicate", "corrupt-entry").
        path: The offending entry path, when one is known.
    """

    kind = "malformed-archive"

    def __init__(self, reason: str, path: str | None = None, detail: str = "") -> None:
        self.reason = reason
        self.path = path
        self.detail = detail
        message = reason if path is None else f"{reason}: {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.kind,
            "reason": self.reason,
            "path": self.path,
            "detail": self.detail,
        }


class IdenticalArtifactsError(AppSealError):
    """Raised when the trusted and untrusted artifacts are the same source.

    Comparing an artifact with itself always "matches", so such a
    verification would prove nothing.
    """

    kind = "identical-artifacts"


class VerificationFailed(AppSealError):
    """Raised when a seal is requested for a comparison that did not match.

    Attributes:
        mismatches: Mapping of path to ``(trusted_hash, untrusted_hash)``.
        trusted_only: Paths present only in the trusted artifact.
        untrusted_only: Paths present only in the untrusted artifact.
    """

    kind = "verification-failed"

    def __init__(
        self,
        mismatches: Mapping[str, tuple[str, str]],
        trusted_only: frozenset[str] | set[str],
        untrusted_only: frozenset[str] | set[str],
    ) -> None:
        self.mismatches = dict(sorted(mismatches.items()))
        self.trusted_only = frozenset(trusted_only)
        self.untrusted_only = frozenset(untrusted_only)
        super().__init__(
            f"{len(self.mismatches)} mismatched, "
            f"{len(self.trusted_only)} trusted-only, "
            f"{len(self.untrusted_only)} untrusted-only paths"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.kind,
            "mismatches": [
                {"path": path, "trusted": pair[0], "untrusted": pair[1]}
                for path, pair in self.mismatches.items()
            ],
            "trusted_only": sorted(self.trusted_only),
            "untrusted_only": sorted(self.untrusted_only),
        }


class InvalidMetadata(AppSealError):
    """Raised when an app metadata record fails schema validation.

    Attributes:
        field: The offending metadata key.
    """

    kind = "invalid-metadata"

    def __init__(self, field: str, detail: str) -> None:
        self.field = field
        self.detail = detail
        super().__init__(f"{field}: {detail}")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "field": self.field, "detail": self.detail}


class MissingIdentifier(InvalidMetadata):
    """Raised when app metadata has no bundle identifier."""

    kind = "missing-identifier"

    def __init__(self, detail: str = "metadata has no bundle identifier") -> None:
        super().__init__("bundleIdentifier", detail)


class SealMismatch(AppSealError):
    """Raised when a seal does not cover the artifact it is presented with.

    Attributes:
        expected: Manifest digest recorded in the seal.
        actual: Manifest digest computed from the artifact.
    """

    kind = "seal-mismatch"

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"seal covers {expected}, artifact is {actual}")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "expected": self.expected, "actual": self.actual}


class SealMissing(AppSealError):
    """Raised when a catalog build requires a seal and none was supplied."""

    kind = "seal-missing"


class SealSignatureError(AppSealError):
    """Raised when a seal's signature does not verify under the given key."""

    kind = "seal-signature"


class TemplateSubstitutionError(AppSealError):
    """Raised when a news template references placeholders with no value.

    Attributes:
        placeholders: Sorted names of the unresolved placeholders.
        template: The template text that failed to render.
    """

    kind = "template-substitution"

    def __init__(self, placeholders: list[str], template: str) -> None:
        self.placeholders = sorted(set(placeholders))
        self.template = template
        super().__init__("unresolved placeholders: " + ", ".join(self.placeholders))

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.kind,
            "placeholders": self.placeholders,
            "template": self.template,
        }


class Cancelled(AppSealError):
    """Raised when a stage observes a cancelled token.

    A cancelled stage never returns a partial Artifact, Seal, or Catalog.
    """

    kind = "cancelled"


class ConfigError(AppSealError):
    """Raised for unreadable or invalid ``appseal.yaml`` configuration."""

    kind = "config"


class FetchError(AppSealError):
    """Raised when an artifact cannot be fetched from a URL or read from disk.

    Attributes:
        source: The URL or path that could not be resolved.
    """

    kind = "fetch"

    def __init__(self, source: str, detail: str) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"{source}: {detail}")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "source": self.source, "detail": self.detail}
