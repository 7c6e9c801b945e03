"""Cooperative cancellation shared by all pipeline stages."""

from __future__ import annotations

import threading
from typing import Optional

from .errors import PipelineCancelled


class CancelToken:
    """
    Thread-safe flag checked between pages and between stages.
    Cancelling never interrupts a page that is already being processed.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, where: str = ""):
        if self._event.is_set():
            raise PipelineCancelled(f"Cancelled{' during ' + where if where else ''}")


def check(token: Optional[CancelToken], where: str = ""):
    """No-op when no token was supplied."""
    if token is not None:
        token.raise_if_cancelled(where)
