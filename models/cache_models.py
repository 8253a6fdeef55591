"""Models for translation cache data.

Defines the cache entry persisted in the local store blob and the derived cache statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "CacheBlob",
    "CacheEntry",
    "CacheStatistics",
    "RemoteTranslationRow",
]


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CacheEntry(DataClassJsonMixin):
    """Translation cache entry.

    Keyed by ``(normalized original, target_language)``. ``hit_count`` only ever grows
    while the entry lives; it is dropped together with the entry on eviction.

    Attributes:
        original (str): Trimmed, NFC-normalized source text.
        translated (str): Translated text.
        target_language (str): Target language code.
        timestamp (float): Epoch seconds of the last write.
        hit_count (int): Number of cache hits.
    """

    original: str
    translated: str
    target_language: str
    timestamp: float
    hit_count: int = 0


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CacheBlob(DataClassJsonMixin):
    """Serialized form of the whole cache as written to the local store."""

    version: str
    entries: list[CacheEntry] = field(default_factory=list)


@dataclass
class CacheStatistics:
    """Cache usage statistics computed from running counters.

    Attributes:
        size (int): Total number of entries across all languages.
        hit_rate (float): hits / (hits + misses), 0.0 when nothing was looked up yet.
        last_fetch_per_language (dict[str, float]): Epoch seconds of the last remote warm per language.
        hits (int): Total hits since the last clear.
        misses (int): Total misses since the last clear.
        size_per_language (dict[str, int]): Entry count per language bucket.
    """

    size: int = 0
    hit_rate: float = 0.0
    last_fetch_per_language: dict[str, float] = field(default_factory=dict)
    hits: int = 0
    misses: int = 0
    size_per_language: dict[str, int] = field(default_factory=dict)


@dataclass_json
@dataclass
class RemoteTranslationRow(DataClassJsonMixin):
    """Row of the remote ``translation_cache`` table.

    Attributes:
        original (str): Source text.
        translated (str): Translated text.
        target_lang (str): Target language code.
    """

    original: str
    translated: str
    target_lang: str = ""
