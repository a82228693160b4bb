"""Translation - engine interface and cached, model-gated orchestration."""

from kickfeed.translation.engine import (
    Language,
    SimulatedTranslationEngine,
    TranslationEngine,
)
from kickfeed.translation.orchestrator import (
    ModelUnavailableError,
    TranslationError,
    TranslationOrchestrator,
)

__all__ = [
    "Language",
    "ModelUnavailableError",
    "SimulatedTranslationEngine",
    "TranslationEngine",
    "TranslationError",
    "TranslationOrchestrator",
]
