"""Translation cycles, language switching and rescan triggers.

Modules:
- cancellation: Cooperative cancellation token
- orchestrator: Queue and cycle state machine
- coordinator: Debounced, optimistic language switching
- scheduler: Periodic sweep and mutation/navigation rescans
"""

from core.pipeline.cancellation import CancellationToken
from core.pipeline.coordinator import LanguageSwitchCoordinator
from core.pipeline.orchestrator import TranslationOrchestrator
from core.pipeline.scheduler import AutoTranslateScheduler

__all__: list[str] = [
    "AutoTranslateScheduler",
    "CancellationToken",
    "LanguageSwitchCoordinator",
    "TranslationOrchestrator",
]
