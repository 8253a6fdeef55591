"""Configuration data models for the translation pipeline.

Each data class mirrors one section of the INI file. Field defaults double as the type
information the loader uses to coerce raw INI strings, so every field must have a default
of its final type.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = [
    "Backend",
    "Cache",
    "Config",
    "General",
    "Scanner",
    "Switch",
    "Translation",
]


@dataclass
class General:
    DEBUG: bool = False
    LOG_FILE: str = ""
    SOURCE_LANGUAGE: str = "en"
    SUPPORTED_LANGUAGES: list[str] = field(default_factory=lambda: ["en"])


@dataclass
class Backend:
    TRANSPORT: str = "edge_function"
    BASE_URL: str = ""
    TRANSLATE_ENDPOINT: str = "ai-translate"
    CACHE_TABLE: str = "translation_cache"
    TIMEOUT: float = 30.0
    # Never read from the INI file. Filled from the BACKEND_API_KEY environment variable.
    API_KEY: str = ""


@dataclass
class Translation:
    BATCH_SIZE: int = 5
    MAX_ATTEMPTS: int = 3
    BASE_DELAY: float = 1.0
    MAX_JITTER: float = 1.0
    RESULT_TTL: float = 30.0


@dataclass
class Cache:
    PATH: str = "translation_cache.db"
    FORMAT_VERSION: str = "translation-cache-v2"
    TTL_HOURS: float = 24.0
    CAPACITY: int = 1000
    EVICTION_RATIO: float = 0.2
    WARM_COOLDOWN: float = 30.0
    WARM_LIMIT: int = 500


@dataclass
class Scanner:
    MIN_LENGTH: int = 3
    EXCLUDE_SELECTORS: list[str] = field(default_factory=lambda: [".no-translate", "[data-no-translate]"])
    ATTRIBUTES: list[str] = field(default_factory=lambda: ["title", "alt", "placeholder", "aria-label", "data-tooltip"])
    SKIP_TAGS: list[str] = field(default_factory=lambda: ["script", "style", "noscript", "meta", "title"])


@dataclass
class Switch:
    DEBOUNCE: float = 0.3
    SWEEP_INTERVAL: float = 10.0
    MUTATION_DEBOUNCE: float = 0.5


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    BACKEND: Backend = field(default_factory=Backend)
    TRANSLATION: Translation = field(default_factory=Translation)
    CACHE: Cache = field(default_factory=Cache)
    SCANNER: Scanner = field(default_factory=Scanner)
    SWITCH: Switch = field(default_factory=Switch)
