"""Tests for language codes and the simulated translation engine."""

import pytest

from kickfeed.translation.engine import Language, SimulatedTranslationEngine, TranslationEngine


class TestLanguage:
    def test_parse_known_code(self):
        assert Language.parse("zh") is Language.CHINESE_SIMPLIFIED
        assert Language.parse(Language.ENGLISH) is Language.ENGLISH

    def test_parse_unknown_falls_back_to_auto(self):
        assert Language.parse("xx") is Language.AUTO


class TestSimulatedTranslationEngine:
    def test_satisfies_protocol(self):
        assert isinstance(SimulatedTranslationEngine(), TranslationEngine)

    @pytest.mark.asyncio
    async def test_default_installed_models(self):
        engine = SimulatedTranslationEngine()

        assert await engine.model_available(Language.CHINESE_SIMPLIFIED) is True
        assert await engine.model_available(Language.ENGLISH) is True
        assert await engine.model_available(Language.AUTO) is True
        assert await engine.model_available(Language.SPANISH) is False

    @pytest.mark.asyncio
    async def test_download_reports_progress_and_installs(self):
        engine = SimulatedTranslationEngine(step=0.25, step_delay=0)
        progress: list[float] = []

        await engine.download_model(Language.SPANISH, progress=progress.append)

        assert progress == [0.0, 0.25, 0.5, 0.75, 1.0]
        assert await engine.model_available(Language.SPANISH) is True

    @pytest.mark.asyncio
    async def test_translate_latin_to_chinese(self):
        engine = SimulatedTranslationEngine()

        result = await engine.translate_text("Goal!", Language.ENGLISH, Language.CHINESE_SIMPLIFIED)

        assert result == "这是翻译后的中文内容: Goal!"

    @pytest.mark.asyncio
    async def test_translate_han_to_english(self):
        engine = SimulatedTranslationEngine()

        result = await engine.translate_text("梅西进球", Language.AUTO, Language.ENGLISH)

        assert result == "This is translated English: 梅西进球"

    @pytest.mark.asyncio
    async def test_other_pairs_are_identity(self):
        engine = SimulatedTranslationEngine()

        assert await engine.translate_text("Hola", Language.SPANISH, Language.FRENCH) == "Hola"
