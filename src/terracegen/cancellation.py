"""Cooperative cancellation for generation runs."""

from __future__ import annotations

import threading
from typing import List

from .errors import GenerationCancelled


class CancellationToken:
    """Thread-safe cancellation flag.

    A token built with :meth:`linked` also reports cancelled as soon as
    any of its sources is cancelled.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._sources: List["CancellationToken"] = []

    @classmethod
    def linked(cls, *tokens: "CancellationToken") -> "CancellationToken":
        token = cls()
        token._sources = [t for t in tokens if t is not None]
        return token

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or any(t.cancelled for t in self._sources)

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise GenerationCancelled("Terrain generation was cancelled")

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
