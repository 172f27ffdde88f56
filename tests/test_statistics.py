"""Tests for frequency statistics and the language registry."""

import math

import pytest

from cryptobreaker.core.exceptions import ValidationError
from cryptobreaker.services.analysis.statistics import (
    CHI_SQUARED_SENTINEL,
    FrequencyStatistics,
)
from cryptobreaker.services.engines.monoalphabetic.caesar import CaesarEngine
from cryptobreaker.services.preprocessing.language_detector import (
    ENGLISH_FREQ,
    LanguageRegistry,
    parse_frequency_table,
)
from cryptobreaker.services.preprocessing.normalizer import (
    is_valid_input,
    normalize_text,
    split_words,
)


class TestNormalizer:
    """Test suite for text normalization helpers."""

    def test_normalize_strips_non_letters(self):
        assert normalize_text("Hello, World! 123") == "HELLOWORLD"

    def test_normalize_ignores_non_ascii_letters(self):
        """Letters that uppercase into ASCII ("ß" -> "SS", "ı" -> "I") are dropped."""
        assert normalize_text("Straße ﬁx ı") == "STRAEX"
        assert normalize_text("Kırmızı") == "KRMZ"

    def test_is_valid_input(self):
        assert is_valid_input("HELLO WORLD") is True
        assert is_valid_input("") is False
        assert is_valid_input("12345 !!! ab") is False

    def test_split_words(self):
        assert split_words("the  quick, brown\nfox") == ["THE", "QUICK", "BROWN", "FOX"]


class TestFrequencyStatistics:
    """Test suite for the statistical measures."""

    @pytest.fixture
    def analyzer(self):
        return FrequencyStatistics()

    def test_letter_frequency_covers_alphabet(self, analyzer, english_passage):
        freq = analyzer.letter_frequency(english_passage)

        assert list(freq) == list(FrequencyStatistics.ALPHABET)
        assert math.isclose(sum(freq.values()), 100.0)

    def test_letter_frequency_is_read_only(self, analyzer):
        freq = analyzer.letter_frequency("ABC")
        with pytest.raises(TypeError):
            freq["A"] = 0.0

    def test_letter_frequency_without_letters(self, analyzer):
        freq = analyzer.letter_frequency("123 !?")
        assert all(v == 0.0 for v in freq.values())

    def test_ioc_of_repeated_letter_is_one(self, analyzer):
        assert analyzer.index_of_coincidence("AAAAAAAA") == 1.0

    def test_ioc_degenerate_inputs(self, analyzer):
        assert analyzer.index_of_coincidence("") == 0.0
        assert analyzer.index_of_coincidence("A") == 0.0
        assert analyzer.index_of_coincidence("1234 ..") == 0.0

    def test_ioc_english_range(self, analyzer, english_passage):
        ioc = analyzer.index_of_coincidence(english_passage)
        assert 0.060 < ioc < 0.080

    def test_chi_squared_identical_is_zero(self, analyzer, english_passage):
        observed = analyzer.letter_frequency(english_passage)

        assert analyzer.chi_squared(observed, observed) == 0.0
        assert analyzer.chi_squared(ENGLISH_FREQ, ENGLISH_FREQ) == 0.0

    def test_chi_squared_skips_zero_expected(self, analyzer):
        expected = {"A": 50.0, "B": 50.0, "C": 0.0}
        observed = {"A": 50.0, "B": 40.0, "C": 10.0}

        assert analyzer.chi_squared(observed, expected) == pytest.approx(2.0)

    def test_chi_squared_without_reference(self, analyzer):
        observed = analyzer.letter_frequency("HELLO")

        assert analyzer.chi_squared(observed, {}) == CHI_SQUARED_SENTINEL
        assert analyzer.chi_squared(observed, {"A": 0.0}) == CHI_SQUARED_SENTINEL

    def test_englishness_prefers_plaintext(self, analyzer, english_passage):
        shifted = CaesarEngine.shift_text(english_passage, 7)

        plain_score = analyzer.englishness(english_passage)
        shifted_score = analyzer.englishness(shifted)

        assert 0.0 < shifted_score < plain_score <= 1.0

    def test_englishness_unknown_language(self, analyzer, english_passage):
        score = analyzer.englishness(english_passage, "klingon")
        assert score == pytest.approx(1.0 / (1.0 + CHI_SQUARED_SENTINEL))

    def test_top_ngrams_ordering(self, analyzer):
        assert analyzer.top_ngrams("ABAB", 2, 5) == [
            ("AB", pytest.approx(200 / 3)),
            ("BA", pytest.approx(100 / 3)),
        ]

    def test_top_ngrams_ties_keep_first_seen(self, analyzer):
        ngrams = [ngram for ngram, _ in analyzer.top_ngrams("ABCD", 2, 3)]
        assert ngrams == ["AB", "BC", "CD"]

    def test_top_ngrams_english(self, analyzer, english_passage):
        ngrams = [ngram for ngram, _ in analyzer.top_ngrams(english_passage, 2, 2)]
        assert ngrams == ["TH", "HE"]

    def test_entropy(self, analyzer):
        assert analyzer.entropy("AAAA") == 0.0
        assert analyzer.entropy("ABAB") == pytest.approx(1.0)

    def test_find_repeated_substrings(self, analyzer):
        repeats = analyzer.find_repeated_substrings("ABCXYZABC", 3, 3)
        assert repeats == {"ABC": [0, 6]}

    def test_analyze_profile(self, analyzer, english_passage):
        profile = analyzer.analyze(english_passage)

        assert profile.length == len(normalize_text(english_passage))
        assert profile.character_frequencies[0].character == "E"
        assert profile.bigram_frequencies[0].ngram == "TH"
        assert profile.englishness > 0.1
        assert profile.repeated_sequences
        assert profile.kasiski_distances == sorted(set(profile.kasiski_distances))

    def test_analyze_empty(self, analyzer):
        profile = analyzer.analyze("12345")

        assert profile.length == 0
        assert profile.chi_squared is None

    def test_detect_language(self, analyzer, english_passage):
        result = analyzer.detect_language(english_passage)

        assert result.language == "english"
        assert 0.0 < result.confidence <= 1.0

    def test_supported_languages(self, analyzer):
        assert {"english", "turkish"} <= set(analyzer.supported_languages())


class TestLanguageRegistry:
    """Test suite for registering reference languages."""

    @pytest.fixture
    def registry(self):
        return LanguageRegistry()

    def test_builtins(self, registry):
        assert registry.supported() == ["english", "turkish"]
        assert registry.get("English").expected_ioc == pytest.approx(0.0667)
        assert registry.distribution("turkish")["W"] == 0.0

    def test_unknown_language_is_empty(self, registry):
        assert registry.get("klingon") is None
        assert len(registry.distribution("klingon")) == 0

    def test_register_fills_missing_letters(self, registry):
        profile = registry.register("vowels", {"a": 50, "e": 50})

        assert "vowels" in registry
        assert profile.letter_frequencies["A"] == 50.0
        assert profile.letter_frequencies["Z"] == 0.0
        assert profile.expected_ioc == pytest.approx(0.5)

    def test_registered_language_is_used_for_scoring(self, registry):
        registry.register("vowels", {"A": 50, "E": 50})
        analyzer = FrequencyStatistics(registry)

        assert analyzer.englishness("AEAEAEAE", "vowels") == 1.0

    @pytest.mark.parametrize(
        "table",
        [
            {"AB": 1.0},
            {"A": -1.0},
            {"A": float("nan")},
            {"A": 0.0, "B": 0.0},
        ],
    )
    def test_register_rejects_malformed_tables(self, registry, table):
        with pytest.raises(ValidationError):
            registry.register("broken", table)

    def test_parse_frequency_table(self):
        text = "# letter,frequency\nA,8.12\n\nb, 1.49\nmalformed\nC,2.78\n"
        assert parse_frequency_table(text) == {"A": 8.12, "B": 1.49, "C": 2.78}

    def test_parse_frequency_table_bad_number(self):
        with pytest.raises(ValidationError):
            parse_frequency_table("A,lots")
