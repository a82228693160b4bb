"""
Translation engine interface and language codes.

The on-device engine is an external collaborator. The orchestrator only
needs three capabilities from it, captured by the TranslationEngine
protocol. SimulatedTranslationEngine is a stand-in used in development
and tests: it marks translated text with a prefix instead of calling a
real model.
"""

import asyncio
import re
from collections.abc import Callable
from enum import Enum
from typing import Protocol, runtime_checkable

ProgressCallback = Callable[[float], None]


class Language(str, Enum):
    """Languages the translation engine supports."""

    ENGLISH = "en"
    CHINESE_SIMPLIFIED = "zh"
    SPANISH = "es"
    FRENCH = "fr"
    GERMAN = "de"
    ITALIAN = "it"
    PORTUGUESE = "pt"
    JAPANESE = "ja"
    KOREAN = "ko"
    RUSSIAN = "ru"
    AUTO = "auto"

    @classmethod
    def parse(cls, code: "str | Language") -> "Language":
        """Map a language code to a Language, falling back to AUTO."""
        try:
            return cls(code)
        except ValueError:
            return cls.AUTO


@runtime_checkable
class TranslationEngine(Protocol):
    """Capabilities the orchestrator needs from a translation engine."""

    async def model_available(self, language: Language) -> bool: ...

    async def download_model(
        self,
        language: Language,
        progress: ProgressCallback | None = None,
    ) -> None: ...

    async def translate_text(self, text: str, source: Language, target: Language) -> str: ...


_LATIN = re.compile(r"[a-zA-Z]")
_HAN = re.compile(r"[一-鿿]")


class SimulatedTranslationEngine:
    """
    In-process engine that fakes downloads and translations.

    Downloads report progress in ``step`` increments, sleeping
    ``step_delay`` seconds between updates. Translating into Chinese
    prefixes text containing Latin letters, translating into English
    prefixes text containing Han characters, anything else is returned
    unchanged.
    """

    def __init__(
        self,
        installed: set[Language] | None = None,
        step: float = 0.1,
        step_delay: float = 0.5,
    ) -> None:
        if installed is None:
            installed = {Language.CHINESE_SIMPLIFIED, Language.ENGLISH}
        self._installed = set(installed) | {Language.AUTO}
        self._step = step
        self._step_delay = step_delay

    async def model_available(self, language: Language) -> bool:
        return language in self._installed

    async def download_model(
        self,
        language: Language,
        progress: ProgressCallback | None = None,
    ) -> None:
        steps = max(1, round(1.0 / self._step))
        for i in range(steps):
            if progress:
                progress(i / steps)
            await asyncio.sleep(self._step_delay)
        self._installed.add(language)
        if progress:
            progress(1.0)

    async def translate_text(self, text: str, source: Language, target: Language) -> str:
        if target is Language.CHINESE_SIMPLIFIED and _LATIN.search(text):
            return "这是翻译后的中文内容: " + text
        if target is Language.ENGLISH and _HAN.search(text):
            return "This is translated English: " + text
        return text
