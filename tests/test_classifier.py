"""Tests for cipher type classification."""

import pytest

from cryptobreaker.models.schemas import DetectionLabel
from cryptobreaker.services.detection.cipher_detector import CipherClassifier
from cryptobreaker.services.engines.monoalphabetic.caesar import CaesarEngine
from cryptobreaker.services.engines.polyalphabetic.vigenere import VigenereEngine


class TestCipherClassifier:
    """Test suite for the heuristic classifier."""

    @pytest.fixture
    def classifier(self):
        return CipherClassifier()

    def test_plaintext(self, classifier, english_passage):
        result = classifier.detect(english_passage)

        assert result.label == DetectionLabel.PLAINTEXT
        assert result.confidence > 0.8

    def test_caesar_ciphertext(self, classifier, english_passage):
        ciphertext = CaesarEngine.shift_text(english_passage, 3)

        result = classifier.detect(ciphertext)
        scores = result.scores

        assert result.label in (DetectionLabel.CAESAR, DetectionLabel.SUBSTITUTION)
        assert scores["plaintext"] < scores[result.label.value]
        assert scores["vigenere"] < scores[result.label.value]

    def test_vigenere_ciphertext(self, classifier, english_passage):
        ciphertext = VigenereEngine().encrypt(english_passage, "LEMON")

        result = classifier.detect(ciphertext)

        assert result.label == DetectionLabel.VIGENERE
        assert "repeated trigrams" in result.rationale

    @pytest.mark.parametrize("text", ["KHOOR ZRUOG", "", "1234 5678 90!!"])
    def test_unusable_input_is_unknown(self, classifier, text):
        result = classifier.detect(text)

        assert result.label == DetectionLabel.UNKNOWN
        assert result.confidence == 0.0

    def test_min_text_length_override(self):
        classifier = CipherClassifier(min_text_length=5)
        assert classifier.detect("KHOOR ZRUOG").label != DetectionLabel.UNKNOWN

    def test_get_all_scores(self, classifier, english_passage):
        scores = classifier.get_all_scores(english_passage)

        assert set(scores) == {"plaintext", "caesar", "substitution", "vigenere"}
        assert all(0.0 <= value <= 1.0 for value in scores.values())

    def test_get_all_scores_short_text(self, classifier):
        scores = classifier.get_all_scores("SHORT")
        assert set(scores.values()) == {0.0}

    def test_rationale_mentions_evidence(self, classifier, english_passage):
        result = classifier.detect(english_passage)

        assert "Index of Coincidence" in result.rationale
        assert "englishness" in result.rationale
        assert set(result.statistics) >= {"ic", "englishness", "freq_range"}

    def test_frequency_patterns(self, classifier, english_passage):
        patterns = classifier.analyze_frequency_patterns(english_passage)

        assert patterns["most_frequent"] == "E"
        assert patterns["freq_range"] > 5.0
        assert patterns["shape_correlation"] > 0.9

    def test_shape_survives_substitution(self, classifier, english_passage):
        shifted = CaesarEngine.shift_text(english_passage, 11)
        plain = classifier.analyze_frequency_patterns(english_passage)
        cipher = classifier.analyze_frequency_patterns(shifted)

        assert cipher["shape_correlation"] == pytest.approx(plain["shape_correlation"])

    def test_flat_distribution_has_no_shape(self, classifier):
        patterns = classifier.analyze_frequency_patterns("ABCDEFGHIJKLMNOPQRSTUVWXYZ")
        assert patterns["shape_correlation"] == 0.0
