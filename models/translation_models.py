"""Models for translation-related data.

Defines the provider request/reply payloads, the results handed back to callers,
and the per-cycle queue state used by the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "ClientStatistics",
    "InvokeResult",
    "ProviderReply",
    "QueueState",
    "SettledResult",
    "TranslationRequest",
    "TranslationResult",
]


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class TranslationRequest(DataClassJsonMixin):
    """Translation request as sent to the provider.

    ``to_dict()`` yields the provider body ``{text, sourceLang, targetLang, context, translationType}``.

    Attributes:
        text (str): Trimmed source text.
        source_lang (str): Source language code.
        target_lang (str): Target language code.
        context (str | None): Free-form hint for the provider (element kind, surrounding section).
        translation_type (str | None): "marketing", "technical", "cultural" or "standard".
    """

    text: str
    source_lang: str
    target_lang: str
    context: str | None = None
    translation_type: str | None = None

    @property
    def identity_key(self) -> str:
        """Identity key ``text|source_lang|target_lang|context`` used for queue deduplication."""
        return f"{self.text}|{self.source_lang}|{self.target_lang}|{self.context or ''}"


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class ProviderReply(DataClassJsonMixin):
    """Reply body returned by the translation provider."""

    translated_text: str = ""
    confidence: float | None = None


@dataclass
class TranslationResult:
    """Translation outcome handed back to callers.

    Attributes:
        translated_text (str): Translated text.
        confidence (float | None): Provider-reported confidence, if any.
        cached (bool): True if the value came from the cache store or the request cache.
        duration (float): Seconds spent obtaining the value.
    """

    translated_text: str
    confidence: float | None = None
    cached: bool = False
    duration: float = 0.0


@dataclass
class InvokeResult:
    """Raw outcome of a single request client invocation.

    Attributes:
        data (Any): Decoded provider response.
        cached (bool): True if served from the short-lived result cache.
        duration (float): Seconds spent, 0.0 for cached values.
    """

    data: Any
    cached: bool = False
    duration: float = 0.0


@dataclass
class SettledResult:
    """Settled outcome of one request within a batch.

    Exactly one of ``value`` or ``error`` is meaningful, selected by ``ok``.
    """

    ok: bool
    value: InvokeResult | None = None
    error: BaseException | None = None


@dataclass
class ClientStatistics:
    """Request client counters.

    Attributes:
        cached (int): Live entries in the result cache.
        in_flight (int): Requests currently awaiting the transport.
        cache_hits (int): Invocations served from the result cache.
        deduplicated (int): Invocations that joined an identical in-flight request.
        network_calls (int): Invocations that reached the transport.
        failures (int): Network invocations that ended in an error.
    """

    cached: int = 0
    in_flight: int = 0
    cache_hits: int = 0
    deduplicated: int = 0
    network_calls: int = 0
    failures: int = 0


@dataclass
class QueueState:
    """Ordered pending requests plus results already obtained in the current cycle.

    A key present in ``completed`` is never queued again, and a key appears in ``pending`` at most once.
    """

    pending: list[TranslationRequest] = field(default_factory=list)
    completed: dict[str, TranslationResult] = field(default_factory=dict)
    _queued: set[str] = field(default_factory=set, repr=False)

    def enqueue(self, request: TranslationRequest) -> bool:
        """Queue a request unless its identity key is already pending or completed.

        Returns:
            bool: True if the request was added.
        """
        key: str = request.identity_key
        if key in self.completed or key in self._queued:
            return False
        self._queued.add(key)
        self.pending.append(request)
        return True

    def take(self, size: int) -> list[TranslationRequest]:
        """Remove and return up to ``size`` requests from the head of the queue."""
        batch: list[TranslationRequest] = self.pending[:size]
        del self.pending[:size]
        return batch

    def complete(self, request: TranslationRequest, result: TranslationResult) -> None:
        self.completed[request.identity_key] = result

    def __len__(self) -> int:
        return len(self.pending)
