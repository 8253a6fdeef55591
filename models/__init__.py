"""Data models for the translation pipeline.

This package contains dataclass definitions for configuration, cache entries, translation
requests and results, detected content, cycle progress, and the regular expression
patterns used throughout the application.
"""

from __future__ import annotations

from models.cache_models import CacheBlob, CacheEntry, CacheStatistics, RemoteTranslationRow
from models.config_models import Config
from models.content_models import ContentAnalysis, DetectedItem, NodeRef
from models.pipeline_models import CyclePhase, CycleReport, ProgressEvent
from models.re_models import (
    CONSTANT_PATTERN,
    CULTURAL_PATTERN,
    LANGUAGE_CODE_PATTERN,
    SYMBOLS_ONLY_PATTERN,
    TECHNICAL_PATTERN,
    URL_PATTERN,
)
from models.translation_models import (
    ClientStatistics,
    InvokeResult,
    ProviderReply,
    QueueState,
    SettledResult,
    TranslationRequest,
    TranslationResult,
)

__all__: list[str] = [
    "CONSTANT_PATTERN",
    "CULTURAL_PATTERN",
    "LANGUAGE_CODE_PATTERN",
    "SYMBOLS_ONLY_PATTERN",
    "TECHNICAL_PATTERN",
    "URL_PATTERN",
    "CacheBlob",
    "CacheEntry",
    "CacheStatistics",
    "ClientStatistics",
    "Config",
    "ContentAnalysis",
    "CyclePhase",
    "CycleReport",
    "DetectedItem",
    "InvokeResult",
    "NodeRef",
    "ProgressEvent",
    "ProviderReply",
    "QueueState",
    "RemoteTranslationRow",
    "SettledResult",
    "TranslationRequest",
    "TranslationResult",
]
