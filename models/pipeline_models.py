"""Models describing translation cycle progress and outcome."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

__all__: list[str] = ["CyclePhase", "CycleReport", "ProgressEvent"]


class CyclePhase(StrEnum):
    IDLE = "idle"
    SCANNING = "scanning"
    BATCHING = "batching"
    TRANSLATING = "translating"
    APPLYING = "applying"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressEvent:
    """Cycle-local progress notification.

    Attributes:
        phase (CyclePhase): Phase the cycle just entered.
        processed (int): Distinct texts handled so far.
        total (int): Distinct texts in this cycle.
        target_language (str): Target language of the cycle.
        error (str | None): Error description for the ERROR phase.
    """

    phase: CyclePhase
    processed: int
    total: int
    target_language: str
    error: str | None = None


@dataclass
class CycleReport:
    """Counters describing one completed cycle.

    Attributes:
        target_language (str): Target language of the cycle.
        detected (int): Items returned by the scanner.
        requested (int): Distinct texts resolved in this cycle.
        cache_hits (int): Distinct texts served by the cache store.
        translated (int): Distinct texts obtained from the provider.
        applied (int): Items written to the document.
        failed (int): Distinct texts left untranslated because of errors.
        skipped (int): Items whose node was gone or changed before applying.
        stale (bool): True if the cycle's token was cancelled, so nothing was applied after that point.
        restored (int): Items reverted to their original text before scanning.
    """

    target_language: str
    detected: int = 0
    requested: int = 0
    cache_hits: int = 0
    translated: int = 0
    applied: int = 0
    failed: int = 0
    skipped: int = 0
    stale: bool = False
    restored: int = 0
