import math
from collections import Counter
from collections.abc import Mapping
from types import MappingProxyType
from typing import ClassVar

from cryptobreaker.models.schemas import (
    FrequencyData,
    NGramFrequency,
    RepeatedSequence,
    StatisticsProfile,
)
from cryptobreaker.services.preprocessing.language_detector import (
    LanguageDetectionResult,
    LanguageDetector,
    LanguageRegistry,
    default_registry,
)
from cryptobreaker.services.preprocessing.normalizer import ALPHABET, normalize_text

# Returned by chi_squared when there is nothing to compare against
CHI_SQUARED_SENTINEL = 1000.0


class FrequencyStatistics:
    """
    Comprehensive statistical analysis for cryptanalysis.

    Computes the statistics every engine scores with:
    - Letter frequencies (percent)
    - Bigram/trigram frequencies
    - Index of Coincidence (IOC)
    - Entropy
    - Chi-squared against a reference language
    - Repeated substrings (Kasiski examination)

    All methods are pure functions of their input and the language registry.
    """

    ALPHABET: ClassVar[str] = ALPHABET

    def __init__(self, registry: LanguageRegistry | None = None):
        self.registry = registry if registry is not None else default_registry

    # ------------------------------------------------------------------
    # Core measures
    # ------------------------------------------------------------------

    def letter_frequency(self, text: str) -> Mapping[str, float]:
        """
        Get letter frequencies as a read-only mapping over A-Z.

        Returns frequencies as percentages (0-100). Text without letters
        yields all zeros.
        """
        filtered = normalize_text(text)
        n = len(filtered)

        if n == 0:
            return MappingProxyType({letter: 0.0 for letter in self.ALPHABET})

        counter = Counter(filtered)
        return MappingProxyType({
            letter: (counter.get(letter, 0) / n) * 100
            for letter in self.ALPHABET
        })

    def index_of_coincidence(self, text: str) -> float:
        """
        Calculate Index of Coincidence.

        IOC measures how likely two randomly chosen letters are the same.
        - English text: ~0.0667
        - Random text: ~0.0385 (1/26)
        """
        filtered = normalize_text(text)
        n = len(filtered)
        if n <= 1:
            return 0.0

        counter = Counter(filtered)
        numerator = sum(f * (f - 1) for f in counter.values())
        return numerator / (n * (n - 1))

    def chi_squared(
        self,
        observed: Mapping[str, float],
        expected: Mapping[str, float],
    ) -> float:
        """
        Calculate chi-squared distance between two distributions.

        Letters with a zero expected frequency are skipped. An empty
        reference (unregistered language) returns CHI_SQUARED_SENTINEL.

        Lower values indicate a closer match.
        """
        if not expected or not any(v > 0 for v in expected.values()):
            return CHI_SQUARED_SENTINEL

        chi_squared = 0.0
        for letter in self.ALPHABET:
            exp = expected.get(letter, 0.0)
            if exp <= 0:
                continue
            obs = observed.get(letter, 0.0)
            chi_squared += ((obs - exp) ** 2) / exp

        return chi_squared

    def englishness(self, text: str, language: str = "english") -> float:
        """
        Score how closely text matches a language's letter distribution.

        Returns 1 / (1 + chi-squared), in (0, 1]; higher is closer.
        """
        return 1.0 / (
            1.0 + self.chi_squared(
                self.letter_frequency(text), self.reference_distribution(language)
            )
        )

    def top_ngrams(self, text: str, n: int, count: int) -> list[tuple[str, float]]:
        """
        Most frequent n-grams of the normalized text.

        Args:
            text: Any text; only letters are considered
            n: N-gram length
            count: Maximum number of entries to return

        Returns:
            (ngram, frequency percent) pairs, most frequent first; equal
            counts keep first-seen order
        """
        filtered = normalize_text(text)
        if n <= 0 or len(filtered) < n or count <= 0:
            return []

        counter = Counter(filtered[i:i + n] for i in range(len(filtered) - n + 1))
        total = sum(counter.values())

        ranked = sorted(counter.items(), key=lambda item: item[1], reverse=True)
        return [(ngram, c / total * 100) for ngram, c in ranked[:count]]

    def entropy(self, text: str) -> float:
        """
        Calculate Shannon entropy (bits per letter).

        Lower entropy suggests more structure (like natural language).
        """
        filtered = normalize_text(text)
        n = len(filtered)
        if n == 0:
            return 0.0

        entropy = 0.0
        for count in Counter(filtered).values():
            p = count / n
            entropy -= p * math.log2(p)

        return entropy

    def find_repeated_substrings(
        self,
        text: str,
        min_length: int = 3,
        max_length: int = 10,
    ) -> dict[str, list[int]]:
        """
        Find repeated substrings of the normalized text.

        Used for Kasiski examination of polyalphabetic ciphers.

        Returns:
            Substring -> ascending start offsets, for every substring of
            length min_length..max_length occurring at least twice
        """
        filtered = normalize_text(text)
        repeated: dict[str, list[int]] = {}

        for length in range(min_length, max_length + 1):
            if length > len(filtered) // 2:
                break

            seen: dict[str, list[int]] = {}
            for i in range(len(filtered) - length + 1):
                seen.setdefault(filtered[i:i + length], []).append(i)

            for seq, positions in seen.items():
                if len(positions) > 1:
                    repeated[seq] = positions

        return repeated

    # ------------------------------------------------------------------
    # Reference languages
    # ------------------------------------------------------------------

    def reference_distribution(self, language: str) -> Mapping[str, float]:
        """Reference frequencies for a language, empty when unregistered."""
        return self.registry.distribution(language)

    def expected_ioc(self, language: str) -> float | None:
        profile = self.registry.get(language)
        return profile.expected_ioc if profile else None

    def supported_languages(self) -> list[str]:
        return self.registry.supported()

    def detect_language(self, text: str) -> LanguageDetectionResult:
        """Registered language with the lowest chi-squared distance."""
        return LanguageDetector(self).detect(text)

    # ------------------------------------------------------------------
    # Full profile
    # ------------------------------------------------------------------

    def analyze(self, text: str, language: str = "english") -> StatisticsProfile:
        """
        Perform complete statistical analysis on text.

        Args:
            text: Ciphertext in any form; only letters are analyzed
            language: Reference language for chi-squared and englishness

        Returns:
            StatisticsProfile with all computed statistics
        """
        filtered = normalize_text(text)

        if not filtered:
            return self._empty_profile()

        frequencies = self.letter_frequency(filtered)
        counter = Counter(filtered)
        char_freqs = [
            FrequencyData(
                character=letter,
                count=counter.get(letter, 0),
                frequency=frequencies[letter],
            )
            for letter in self.ALPHABET
        ]
        # Sort by frequency descending
        char_freqs.sort(key=lambda x: x.frequency, reverse=True)

        repeated = self._repeated_sequences(filtered)

        return StatisticsProfile(
            length=len(filtered),
            unique_chars=len(counter),
            character_frequencies=char_freqs,
            bigram_frequencies=self._ngram_frequencies(filtered, 2),
            trigram_frequencies=self._ngram_frequencies(filtered, 3),
            index_of_coincidence=self.index_of_coincidence(filtered),
            entropy=self.entropy(filtered),
            chi_squared=self.chi_squared(
                frequencies, self.reference_distribution(language)
            ),
            englishness=self.englishness(filtered, language),
            repeated_sequences=repeated,
            kasiski_distances=self._kasiski_distances(repeated),
        )

    def _empty_profile(self) -> StatisticsProfile:
        """Return an empty statistics profile."""
        return StatisticsProfile(
            length=0,
            unique_chars=0,
            character_frequencies=[],
            bigram_frequencies=[],
            trigram_frequencies=[],
            index_of_coincidence=0.0,
            entropy=0.0,
            chi_squared=None,
            repeated_sequences=[],
            kasiski_distances=[],
        )

    def _ngram_frequencies(self, text: str, n: int) -> list[NGramFrequency]:
        """Top 50 n-grams with counts."""
        total = max(len(text) - n + 1, 0)
        return [
            NGramFrequency(
                ngram=ngram,
                count=round(freq * total / 100),
                frequency=freq,
            )
            for ngram, freq in self.top_ngrams(text, n, 50)
        ]

    def _repeated_sequences(self, text: str) -> list[RepeatedSequence]:
        repeated = [
            RepeatedSequence(
                sequence=seq,
                positions=positions,
                distances=[b - a for a, b in zip(positions, positions[1:])],
                count=len(positions),
            )
            for seq, positions in self.find_repeated_substrings(text).items()
        ]

        # Sort by count and length
        repeated.sort(key=lambda x: (-x.count, -len(x.sequence)))
        return repeated[:20]

    def _kasiski_distances(self, repeated: list[RepeatedSequence]) -> list[int]:
        """
        Distinct distances between consecutive repeats.

        The GCD of these distances often reveals the key length.
        """
        all_distances: set[int] = set()
        for seq in repeated:
            all_distances.update(seq.distances)
        return sorted(all_distances)
