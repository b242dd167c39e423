"""Semantic version parsing and precedence.

Ordering follows SemVer 2.0.0 section 11: major, minor, and patch compare
numerically; a pre-release has lower precedence than the associated
release; pre-release identifiers compare numerically when both are
numeric, lexically otherwise, and numeric identifiers sort before
alphanumeric ones; build metadata is ignored.

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass

_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?$"
)


@functools.total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    """A parsed semantic version.

    Equality and ordering both follow precedence, so ``1.0.0+a`` equals
    ``1.0.0+b``. ``raw`` keeps the original spelling for display.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()
    raw: str = ""

    @classmethod
    def parse(cls, version: str) -> SemanticVersion:
        """Parse *version*.

        Raises:
            ValueError: If the string is not a semantic version.
        """
        if not isinstance(version, str):
            raise ValueError(f"Invalid semantic version: {version!r}")
        m = _SEMVER_RE.match(version.strip())
        if not m:
            raise ValueError(f"Invalid semantic version: {version!r}")
        pre = m.group("pre")
        build = m.group("build")
        return cls(
            major=int(m.group("major")),
            minor=int(m.group("minor")),
            patch=int(m.group("patch")),
            prerelease=tuple(pre.split(".")) if pre else (),
            build=tuple(build.split(".")) if build else (),
            raw=version.strip(),
        )

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def _precedence_key(self) -> tuple:
        # A release sorts after every pre-release of the same core version.
        pre_key: tuple = (1,) if not self.prerelease else (
            0,
            tuple(
                (0, int(ident), "") if ident.isdigit() else (1, 0, ident)
                for ident in self.prerelease
            ),
        )
        return (self.major, self.minor, self.patch, pre_key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._precedence_key() == other._precedence_key()

    def __lt__(self, other: SemanticVersion) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._precedence_key() < other._precedence_key()

    def __hash__(self) -> int:
        return hash(self._precedence_key())

    def __str__(self) -> str:
        if self.raw:
            return self.raw
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text


def parse_version(version: str) -> SemanticVersion:
    return SemanticVersion.parse(version)


def is_valid_version(version: str) -> bool:
    try:
        SemanticVersion.parse(version)
    except ValueError:
        return False
    return True


def compare_versions(left: str, right: str) -> int:
    """Return -1, 0, or 1 as *left* has lower, equal, or higher precedence."""
    a = SemanticVersion.parse(left)
    b = SemanticVersion.parse(right)
    if a == b:
        return 0
    return -1 if a < b else 1
