"""News templates with ``#(name)`` placeholders.

A template is plain text in which ``#(appname)``, ``#(appversion)`` and
friends are replaced by values taken from a release diff. Substitution is
all-or-nothing: if any placeholder has no value the whole render fails with
``TemplateSubstitutionError``. Half-rendered text never reaches a feed.

Available variables:

- ``appname``: app display name
- ``appname_hyphenated``: display name with spaces as hyphens
- ``appbundleid``: bundle identifier
- ``appversion``: the new version
- ``oldappversion``: the previous version (updates only)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from appseal.core.news.differ import ReleaseDiff
from appseal.exceptions import TemplateSubstitutionError

PLACEHOLDER_RE = re.compile(r"#\(([A-Za-z_][A-Za-z0-9_]*)\)")

DEFAULT_TITLE = "New Release: #(appname) #(appversion)"


@dataclass(frozen=True)
class NewsTemplate:
    """Title and caption templates for new releases and updates.

    ``title_update`` and ``caption_update`` fall back to ``title`` and
    ``caption`` when unset; an unset ``title`` falls back to
    ``DEFAULT_TITLE``; an unset ``caption`` falls back to the app's
    subtitle.
    """

    title: str | None = None
    title_update: str | None = None
    caption: str | None = None
    caption_update: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NewsTemplate:
        return cls(
            title=data.get("title"),
            title_update=data.get("title_update"),
            caption=data.get("caption"),
            caption_update=data.get("caption_update"),
        )

    def title_for(self, release: ReleaseDiff) -> str:
        if release.is_update and self.title_update:
            return self.title_update
        return self.title or DEFAULT_TITLE

    def caption_for(self, release: ReleaseDiff) -> str | None:
        if release.is_update and self.caption_update:
            return self.caption_update
        return self.caption


def placeholders(template: str) -> list[str]:
    """Names referenced by *template*, in order of first appearance."""
    seen: dict[str, None] = {}
    for match in PLACEHOLDER_RE.finditer(template):
        seen.setdefault(match.group(1), None)
    return list(seen)


def substitute(template: str, variables: Mapping[str, str]) -> str:
    """Replace every ``#(name)`` in *template* with ``variables[name]``.

    Raises:
        TemplateSubstitutionError: Naming every placeholder without a value.
    """
    missing = [name for name in placeholders(template) if name not in variables]
    if missing:
        raise TemplateSubstitutionError(missing, template)
    return PLACEHOLDER_RE.sub(lambda m: variables[m.group(1)], template)


def release_variables(release: ReleaseDiff) -> dict[str, str]:
    """Template variables for one release diff.

    ``oldappversion`` is only defined for updates, so a new-release template
    that mentions it fails loudly instead of rendering an empty version.
    """
    entry = release.new
    variables = {
        "appname": entry.name,
        "appname_hyphenated": entry.app_name_hyphenated,
        "appbundleid": entry.bundle_identifier,
        "appversion": entry.version,
    }
    if release.old is not None:
        variables["oldappversion"] = release.old.version
    return variables
