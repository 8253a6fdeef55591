"""Cooperative cancellation token for translation work."""

from __future__ import annotations

import itertools
from typing import ClassVar

__all__: list[str] = ["CancellationToken"]


class CancellationToken:
    """Marks a unit of work as superseded.

    Cancelling never interrupts anything by itself; work holding the token checks it before
    applying results and discards them once it is cancelled.

    Args:
        language (str): Target language the work was started for.
    """

    _serial: ClassVar[itertools.count[int]] = itertools.count(1)

    def __init__(self, language: str = "") -> None:
        self.language: str = language
        self.serial: int = next(self._serial)
        self._cancelled: bool = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __repr__(self) -> str:
        state: str = "cancelled" if self._cancelled else "active"
        return f"CancellationToken(#{self.serial}, language={self.language!r}, {state})"
