"""Tests for Caesar cipher engine."""

import logging
import random

import pytest

from cryptobreaker.core.exceptions import InvalidKeyError
from cryptobreaker.models.schemas import CipherType
from cryptobreaker.services.engines.monoalphabetic.caesar import CaesarEngine
from cryptobreaker.services.preprocessing.normalizer import normalize_text


class TestCaesarEngine:
    """Test suite for Caesar cipher engine."""

    @pytest.fixture
    def engine(self):
        return CaesarEngine()

    @pytest.fixture
    def sample_plaintext(self):
        return "HELLOWORLD"

    def test_encrypt_decrypt_roundtrip(self, engine, sample_plaintext):
        """Test that encrypt followed by decrypt returns original."""
        for shift in range(26):
            ciphertext = engine.encrypt(sample_plaintext, shift)
            assert engine.decrypt(ciphertext, shift) == normalize_text(sample_plaintext)

    def test_encrypt_shift_7(self, engine):
        """Test specific encryption with shift 7."""
        assert engine.encrypt("HELLO", 7) == "OLSSV"

    def test_decrypt_shift_7(self, engine):
        """Test specific decryption with shift 7."""
        assert engine.decrypt_with_key("OLSSV", "7") == "HELLO"

    def test_case_and_punctuation_preserved(self, engine):
        assert engine.encrypt("Hello, World!", 3) == "Khoor, Zruog!"
        assert engine.decrypt_with_key("Khoor, Zruog!", 3) == "Hello, World!"

    def test_rot13_scenario(self, engine):
        plaintext = engine.decrypt_with_key("URYYB JBEYQ", 13)
        assert normalize_text(plaintext) == "HELLOWORLD"

    def test_break_hello_world(self, engine):
        assert engine.break_cipher("KHOOR ZRUOG") == "HELLOWORLD"
        assert engine.find_best_key("KHOOR ZRUOG") == 3

    @pytest.mark.parametrize("shift", [3, 7, 13])
    def test_break_long_text(self, engine, english_passage, shift):
        """Test automatic key finding."""
        ciphertext = engine.encrypt(english_passage, shift)

        result = engine.analyze(ciphertext)

        assert result.key == shift
        assert result.cipher_type == CipherType.CAESAR
        assert result.plaintext == normalize_text(english_passage)
        assert result.formatted_plaintext == english_passage
        assert result.confidence > 50.0
        assert engine.confidence == result.confidence
        assert engine.analysis_time_ms == result.elapsed_ms >= 0.0

    def test_find_possible_keys(self, engine, english_passage):
        ciphertext = engine.encrypt(english_passage, 5)

        ranked = engine.find_possible_keys(ciphertext)

        assert len(ranked) == 26
        assert ranked[0][0] == 5
        scores = [score for _, score in ranked]
        assert scores == sorted(scores, reverse=True)
        assert engine.confidence > 50.0

    def test_parallel_matches_sequential(self, english_passage):
        ciphertext = CaesarEngine.shift_text(english_passage, 11)

        sequential = CaesarEngine(max_workers=1).rank_keys(ciphertext)
        parallel = CaesarEngine(max_workers=4).rank_keys(ciphertext)

        assert parallel == sequential

    def test_rank_keys_leaves_state_alone(self, engine, english_passage):
        engine.rank_keys(english_passage)

        assert engine.confidence == 0.0
        assert engine.last_scores == {}

    def test_detailed_analysis(self, engine, english_passage):
        detail = engine.get_detailed_analysis(english_passage)

        assert sorted(detail) == list(range(26))
        assert max(detail, key=detail.get) == 0

    def test_get_possible_solutions(self, engine, english_passage):
        ciphertext = engine.encrypt(english_passage, 9)

        solutions = engine.get_possible_solutions(ciphertext)

        assert len(solutions) == 5
        assert solutions[0] == normalize_text(english_passage)

    def test_short_text_scores_zero(self, engine):
        assert engine.score_plaintext("HELLO") == 0.0

    def test_short_text_still_answers(self, engine):
        """Too short to rank: the top shift is returned with no confidence."""
        result = engine.analyze("KHOOR")

        assert result.valid is True
        assert result.plaintext == "KHOOR"
        assert result.key == 0
        assert result.confidence == 0.0
        assert "at least 10" in result.explanation

    def test_non_ascii_letters_keep_alignment(self, engine, english_passage):
        original = "Kırmızı " + english_passage
        ciphertext = engine.encrypt(original, 3)

        result = engine.analyze(ciphertext)

        assert result.key == 3
        assert result.formatted_plaintext == original
        assert normalize_text(result.formatted_plaintext) == result.plaintext

    def test_invalid_input(self, engine):
        result = engine.analyze("1234567890 !!")

        assert result.valid is False
        assert result.plaintext == ""
        assert engine.get_possible_solutions("") == []

    def test_min_text_length_override(self):
        engine = CaesarEngine(min_text_length=3)
        assert engine.score_plaintext("HELLO") > 0.0

    def test_unknown_language_scores_low(self, english_passage):
        engine = CaesarEngine(language="klingon")
        english = CaesarEngine()

        assert engine.score_plaintext(english_passage) < english.score_plaintext(english_passage)

    def test_generate_random_key(self, engine):
        """Test random key generation."""
        rng = random.Random(7)
        for _ in range(100):
            key = engine.generate_random_key(rng)
            assert engine.validate_key(key)
            assert 1 <= key <= 25  # Excludes 0 (no encryption)

    def test_validate_key(self, engine):
        """Test key validation."""
        for i in range(26):
            assert engine.validate_key(i) is True
            assert engine.validate_key(str(i)) is True

        assert engine.validate_key("D") is True
        assert engine.validate_key(26) is False
        assert engine.validate_key("abc") is False
        assert engine.validate_key(None) is False

    def test_invalid_key_raises(self, engine):
        with pytest.raises(InvalidKeyError):
            engine.encrypt("HELLO", "abc")

    def test_letter_key(self, engine):
        assert engine.encrypt("HELLO", "D") == engine.encrypt("HELLO", 3)

    def test_explain(self, engine):
        """Test explanation generation."""
        explanation = engine.explain("OLSSV", "HELLO", 7)

        assert "7" in explanation
        assert "shift" in explanation.lower()

    def test_verbose_narration(self, english_passage):
        records = []

        class Collector(logging.Handler):
            def emit(self, record):
                records.append(record)

        logger = logging.getLogger(CaesarEngine.__module__)
        handler = Collector(level=logging.INFO)
        previous_level = logger.level
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        try:
            engine = CaesarEngine()
            engine.set_verbose(True)
            engine.analyze(english_passage)
        finally:
            logger.removeHandler(handler)
            logger.setLevel(previous_level)

        assert any(r.levelno == logging.INFO for r in records)
