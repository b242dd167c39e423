"""Cooperative cancellation for long-running pipeline stages.

Each stage polls a ``CancellationToken`` between archive entries or between
catalog entries and raises ``Cancelled`` when the token has been tripped.
Raising (rather than returning early) guarantees that no partial Artifact,
Seal, or Catalog escapes a cancelled stage.
"""

from __future__ import annotations

import threading

from appseal.exceptions import Cancelled


class CancellationToken:
    """A thread-safe, one-way cancellation flag.

    The token may be shared between the thread that requests cancellation
    and any number of worker threads that poll it.

    Example::

        token = CancellationToken()
        executor.submit(read_archive, data, cancel=token)
        token.cancel("user pressed stop")
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = ""

    def cancel(self, reason: str = "") -> None:
        """Trip the token. Subsequent ``raise_if_cancelled`` calls raise."""
        self._reason = reason
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """Return True once ``cancel`` has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def raise_if_cancelled(self) -> None:
        """Raise ``Cancelled`` if the token has been tripped."""
        if self._event.is_set():
            raise Cancelled(self._reason or "operation cancelled")


def check(token: CancellationToken | None) -> None:
    """Poll an optional token; a missing token never cancels."""
    if token is not None:
        token.raise_if_cancelled()
