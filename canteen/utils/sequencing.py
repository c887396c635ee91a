"""Revision tokens used to drop server responses that arrive out of order."""

from __future__ import annotations


class RevisionGate:
    """Hands out increasing tokens; only the newest token may apply its response.

    Every request that would overwrite local state takes a token before it is
    sent. When the response arrives the caller checks ``is_current``; if any
    newer request was issued in the meantime the response is stale and must
    be discarded.
    """

    def __init__(self) -> None:
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest
