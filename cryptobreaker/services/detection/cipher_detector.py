import logging
import math
import statistics as pystats
from dataclasses import dataclass
from typing import ClassVar

from scipy import stats

from cryptobreaker.core.config import Settings, get_settings
from cryptobreaker.models.schemas import DetectionLabel, DetectionResult
from cryptobreaker.services.analysis.statistics import FrequencyStatistics
from cryptobreaker.services.preprocessing.normalizer import is_valid_input, normalize_text

logger = logging.getLogger(__name__)


@dataclass
class DetectionThresholds:
    """Thresholds for cipher type detection."""

    # Index of Coincidence thresholds
    ioc_english: float = 0.0667  # Expected IOC for English
    ioc_mono: float = 0.060      # At or above: full monoalphabetic credit
    ioc_poly_low: float = 0.038  # Polyalphabetic band lower edge
    ioc_poly_high: float = 0.055  # Polyalphabetic band upper edge
    ioc_poly_falloff: float = 0.02  # Width of the decay above the band

    # Englishness (1 / (1 + chi-squared)) between these maps onto 0..1
    englishness_floor: float = 0.01
    englishness_ceiling: float = 0.05

    # Frequency shape
    range_full: float = 5.0      # Max-min letter percentage for full credit
    variance_full: float = 10.0  # Letter percentage variance for full credit

    # Repeated trigrams for full Vigenère repeat credit
    repeats_full: int = 2


class CipherClassifier:
    """
    Heuristic cipher type classification.

    Scores the ciphertext against four hypotheses (plaintext, Caesar,
    substitution, Vigenère) from the same handful of statistics and returns
    the best one. Stateless apart from configuration, so one instance can
    be shared.
    """

    THRESHOLDS: ClassVar[DetectionThresholds] = DetectionThresholds()

    # Common English bigrams credited in the plaintext score
    PLAINTEXT_BIGRAMS: ClassVar[frozenset[str]] = frozenset({"TH", "HE", "IN", "ER", "AN"})

    # Evaluation order; earlier labels win ties
    LABELS: ClassVar[tuple[DetectionLabel, ...]] = (
        DetectionLabel.PLAINTEXT,
        DetectionLabel.CAESAR,
        DetectionLabel.SUBSTITUTION,
        DetectionLabel.VIGENERE,
    )

    def __init__(
        self,
        analyzer: FrequencyStatistics | None = None,
        language: str | None = None,
        min_text_length: int | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.analyzer = analyzer or FrequencyStatistics()
        self.language = language or settings.default_language
        self.min_text_length = (
            min_text_length
            if min_text_length is not None
            else settings.classifier_min_text_length
        )

    def detect(self, text: str) -> DetectionResult:
        """
        Classify the ciphertext.

        Args:
            text: Ciphertext in any form

        Returns:
            DetectionResult with the winning label, its score as confidence,
            every label's score and a rationale. Short or invalid input is
            labelled unknown with confidence 0.
        """
        normalized = normalize_text(text)

        if not is_valid_input(text):
            return DetectionResult(
                label=DetectionLabel.UNKNOWN,
                confidence=0.0,
                rationale="Input is empty or less than half alphabetic.",
            )

        if len(normalized) < self.min_text_length:
            return DetectionResult(
                label=DetectionLabel.UNKNOWN,
                confidence=0.0,
                rationale=(
                    f"Only {len(normalized)} letters; at least "
                    f"{self.min_text_length} are needed to classify."
                ),
            )

        measures = self._measures(normalized)
        scores = self._score(normalized, measures)

        label = self.LABELS[0]
        for candidate in self.LABELS[1:]:
            if scores[candidate.value] > scores[label.value]:
                label = candidate

        logger.debug("Classified as %s with scores %s", label.value, scores)

        return DetectionResult(
            label=label,
            confidence=max(0.0, min(1.0, scores[label.value])),
            scores=scores,
            rationale=self._rationale(label, measures),
            statistics=measures,
        )

    def get_all_scores(self, text: str) -> dict[str, float]:
        """Score of every label; all zero for unusable input."""
        normalized = normalize_text(text)
        if not is_valid_input(text) or len(normalized) < self.min_text_length:
            return {label.value: 0.0 for label in self.LABELS}
        return self._score(normalized, self._measures(normalized))

    def analyze_frequency_patterns(self, text: str) -> dict[str, float | str]:
        """
        Describe the shape of the letter distribution.

        Returns:
            Range and variance of letter percentages, the most and least
            frequent letters, and the correlation of the sorted frequency
            curve with the reference language's curve
        """
        frequencies = self.analyzer.letter_frequency(text)
        values = list(frequencies.values())

        return {
            "freq_range": max(values) - min(values),
            "freq_variance": pystats.pvariance(values),
            "most_frequent": max(frequencies, key=frequencies.get),
            "least_frequent": min(frequencies, key=frequencies.get),
            "shape_correlation": self._shape_correlation(values),
        }

    def _shape_correlation(self, observed: list[float]) -> float:
        """
        Compare frequency curve shape to the reference language.

        Both distributions are sorted descending before correlating, so a
        permuted alphabet (any monoalphabetic cipher) still matches.
        """
        expected = list(self.analyzer.reference_distribution(self.language).values())
        if len(expected) != len(observed):
            return 0.0

        observed_sorted = sorted(observed, reverse=True)
        expected_sorted = sorted(expected, reverse=True)
        if len(set(observed_sorted)) < 2 or len(set(expected_sorted)) < 2:
            return 0.0

        corr, _ = stats.pearsonr(observed_sorted, expected_sorted)
        return 0.0 if math.isnan(corr) else float(corr)

    def _measures(self, normalized: str) -> dict[str, float]:
        patterns = self.analyze_frequency_patterns(normalized)
        repeats = self.analyzer.find_repeated_substrings(normalized, 3, 3)

        return {
            "ic": self.analyzer.index_of_coincidence(normalized),
            "englishness": self.analyzer.englishness(normalized, self.language),
            "freq_range": patterns["freq_range"],
            "freq_variance": patterns["freq_variance"],
            "repeat_count": float(len(repeats)),
            "shape_correlation": patterns["shape_correlation"],
        }

    def _score(self, normalized: str, m: dict[str, float]) -> dict[str, float]:
        t = self.THRESHOLDS
        ic = m["ic"]

        language_signal = (m["englishness"] - t.englishness_floor) / (
            t.englishness_ceiling - t.englishness_floor
        )
        language_signal = max(0.0, min(1.0, language_signal))
        cipher_signal = 1.0 - language_signal

        ic_close = max(0.0, 1.0 - abs(ic - t.ioc_english) * 10)
        top_bigrams = self.analyzer.top_ngrams(normalized, 2, 5)
        bigram_signal = 0.2 * sum(1 for bg, _ in top_bigrams if bg in self.PLAINTEXT_BIGRAMS)

        ic_mono = min(1.0, ic / t.ioc_mono)
        range_signal = min(1.0, m["freq_range"] / t.range_full)
        variance_signal = min(1.0, m["freq_variance"] / t.variance_full)

        if ic < t.ioc_poly_low:
            ic_band = ic / t.ioc_poly_low
        elif ic <= t.ioc_poly_high:
            ic_band = 1.0
        else:
            ic_band = max(0.0, 1.0 - (ic - t.ioc_poly_high) / t.ioc_poly_falloff)
        repeat_signal = min(1.0, m["repeat_count"] / t.repeats_full)

        return {
            DetectionLabel.PLAINTEXT.value: (
                0.5 * language_signal + 0.3 * ic_close + 0.2 * bigram_signal
            ),
            DetectionLabel.CAESAR.value: (
                0.4 * ic_mono + 0.3 * range_signal + 0.3 * cipher_signal
            ),
            DetectionLabel.SUBSTITUTION.value: (
                0.4 * ic_mono + 0.3 * variance_signal + 0.3 * cipher_signal
            ),
            DetectionLabel.VIGENERE.value: (
                0.5 * ic_band + 0.2 * repeat_signal + 0.3 * cipher_signal
            ),
        }

    def _rationale(self, label: DetectionLabel, m: dict[str, float]) -> str:
        reasons = [
            f"Index of Coincidence {m['ic']:.4f} "
            f"(English ~{self.THRESHOLDS.ioc_english:.4f}, random ~0.0385)",
            f"englishness {m['englishness']:.4f}",
            f"letter frequency range {m['freq_range']:.2f}%",
        ]

        if label == DetectionLabel.PLAINTEXT:
            summary = "Letter statistics already match the reference language"
        elif label in (DetectionLabel.CAESAR, DetectionLabel.SUBSTITUTION):
            summary = (
                "High IOC with a language-like frequency shape "
                f"(correlation {m['shape_correlation']:.2f}) but poor letter match "
                "suggests a monoalphabetic cipher"
            )
        else:
            summary = (
                f"IOC in the polyalphabetic band and {int(m['repeat_count'])} "
                "repeated trigrams suggest a repeating-key cipher"
            )

        return f"{summary}: " + "; ".join(reasons) + "."
