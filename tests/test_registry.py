"""Tests for the engine registry and factory."""

import pytest

from cryptobreaker.models.schemas import CipherFamily, CipherType
from cryptobreaker.services.engines import registry
from cryptobreaker.services.engines.base import CipherEngine
from cryptobreaker.services.engines.monoalphabetic import CaesarEngine, SubstitutionEngine
from cryptobreaker.services.engines.polyalphabetic import VigenereEngine
from cryptobreaker.services.engines.registry import EngineRegistry, create_engine


class TestEngineRegistry:
    """Test suite for looking up cipher engines."""

    @pytest.mark.parametrize(
        "name, engine_class",
        [
            ("caesar", CaesarEngine),
            ("substitution", SubstitutionEngine),
            ("vigenere", VigenereEngine),
            ("VIGENERE", VigenereEngine),
            (CipherType.CAESAR, CaesarEngine),
        ],
    )
    def test_create_engine(self, name, engine_class):
        engine = create_engine(name)

        assert isinstance(engine, engine_class)
        assert isinstance(engine, CipherEngine)

    def test_unknown_engine_is_none(self):
        assert create_engine("playfair") is None
        assert create_engine("") is None

    def test_fresh_instance_per_call(self):
        first = create_engine("caesar")
        second = create_engine("caesar")

        assert first is not second
        first.set_verbose(True)
        assert second.verbose is False

    def test_constructor_options_are_forwarded(self):
        engine = create_engine("vigenere", max_key_length=8, min_text_length=30)

        assert engine.max_key_length == 8
        assert engine.min_text_length == 30

    def test_unknown_option_raises_type_error(self):
        with pytest.raises(TypeError):
            create_engine("caesar", rounds=3)

    def test_list_registered(self):
        assert set(EngineRegistry.list_registered()) == {
            CipherType.CAESAR,
            CipherType.SUBSTITUTION,
            CipherType.VIGENERE,
        }

    def test_is_registered(self):
        assert EngineRegistry.is_registered(CipherType.SUBSTITUTION)

    def test_engines_by_family(self):
        mono = EngineRegistry.get_engines_by_family(CipherFamily.MONOALPHABETIC)
        poly = EngineRegistry.get_engines_by_family(CipherFamily.POLYALPHABETIC)

        assert {type(e) for e in mono} == {CaesarEngine, SubstitutionEngine}
        assert [type(e) for e in poly] == [VigenereEngine]

    def test_engine_metadata(self):
        for cipher_type in EngineRegistry.list_registered():
            engine = create_engine(cipher_type)
            assert engine.cipher_type == cipher_type
            assert engine.name
            assert engine.description

    def test_failed_engine_import_is_retried(self, monkeypatch):
        modules = registry.ENGINE_MODULES
        monkeypatch.setattr(registry, "_loaded", False)
        monkeypatch.setattr(
            registry,
            "ENGINE_MODULES",
            modules + ("cryptobreaker.services.engines.monoalphabetic.missing",),
        )

        with pytest.raises(ModuleNotFoundError):
            EngineRegistry.list_registered()
        assert registry._loaded is False

        monkeypatch.setattr(registry, "ENGINE_MODULES", modules)
        assert isinstance(create_engine("caesar"), CaesarEngine)
        assert registry._loaded is True
