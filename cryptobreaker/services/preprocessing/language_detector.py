import math
import string
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, ClassVar

from cryptobreaker.core.exceptions import ValidationError

if TYPE_CHECKING:
    from cryptobreaker.services.analysis.statistics import FrequencyStatistics

ALPHABET = string.ascii_uppercase

_EMPTY_DISTRIBUTION: Mapping[str, float] = MappingProxyType({})


@dataclass(frozen=True)
class LanguageProfile:
    """Statistical profile for a language."""

    name: str
    letter_frequencies: Mapping[str, float]
    expected_ioc: float
    common_bigrams: tuple[str, ...] = field(default_factory=tuple)
    common_trigrams: tuple[str, ...] = field(default_factory=tuple)


@dataclass
class LanguageDetectionResult:
    """Result of language detection."""

    language: str
    confidence: float
    chi_squared: float


ENGLISH_FREQ: Mapping[str, float] = MappingProxyType({
    "A": 8.12, "B": 1.49, "C": 2.78, "D": 4.25, "E": 12.02,
    "F": 2.23, "G": 2.02, "H": 6.09, "I": 6.97, "J": 0.15,
    "K": 0.77, "L": 4.03, "M": 2.41, "N": 6.75, "O": 7.51,
    "P": 1.93, "Q": 0.10, "R": 5.99, "S": 6.33, "T": 9.06,
    "U": 2.76, "V": 0.98, "W": 2.36, "X": 0.15, "Y": 1.97,
    "Z": 0.07,
})

# Dotted/cedilla letters fold into their ASCII base, so J, Q, W, X never occur
TURKISH_FREQ: Mapping[str, float] = MappingProxyType({
    "A": 11.92, "B": 2.65, "C": 0.96, "D": 4.87, "E": 8.91,
    "F": 0.41, "G": 1.24, "H": 1.16, "I": 8.60, "J": 0.00,
    "K": 4.68, "L": 5.92, "M": 3.75, "N": 7.23, "O": 2.72,
    "P": 0.84, "Q": 0.00, "R": 6.92, "S": 3.01, "T": 5.71,
    "U": 3.39, "V": 0.95, "W": 0.00, "X": 0.00, "Y": 3.34,
    "Z": 1.52,
})

BUILTIN_PROFILES: tuple[LanguageProfile, ...] = (
    LanguageProfile(
        name="english",
        letter_frequencies=ENGLISH_FREQ,
        expected_ioc=0.0667,
        common_bigrams=("TH", "HE", "IN", "ER", "AN", "RE", "ED", "ND", "ON", "EN"),
        common_trigrams=("THE", "AND", "ING", "HER", "HAT", "HIS"),
    ),
    LanguageProfile(
        name="turkish",
        letter_frequencies=TURKISH_FREQ,
        expected_ioc=0.0590,
        common_bigrams=("LA", "AR", "IN", "LE", "ER", "AN", "EN", "DE"),
        common_trigrams=("LAR", "LER", "BIR", "ARI", "INI", "YOR"),
    ),
)


def expected_ioc_from(frequencies: Mapping[str, float]) -> float:
    """Index of Coincidence a long text with these frequencies would show."""
    total = sum(frequencies.values())
    if total <= 0:
        return 0.0
    return sum((f / total) ** 2 for f in frequencies.values())


def parse_frequency_table(text: str) -> dict[str, float]:
    """
    Parse a letter frequency table held in memory.

    One ``letter,frequency`` pair per line; blank lines and lines starting
    with ``#`` are skipped.

    Raises:
        ValidationError: If a frequency is not a number
    """
    frequencies: dict[str, float] = {}

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        parts = [p.strip() for p in line.split(",") if p.strip()]
        if len(parts) < 2:
            continue

        try:
            frequencies[parts[0][0].upper()] = float(parts[1])
        except ValueError as e:
            raise ValidationError(
                f"Line {line_no}: frequency '{parts[1]}' is not a number",
                {"line": line_no},
            ) from e

    return frequencies


class LanguageRegistry:
    """
    Named reference letter distributions.

    Seeded with the built-in English and Turkish tables. Lookups of an
    unregistered language return an empty distribution, which scorers treat
    as "no signal".
    """

    def __init__(self, profiles: Iterable[LanguageProfile] | None = None):
        self._profiles: dict[str, LanguageProfile] = {}
        for profile in BUILTIN_PROFILES if profiles is None else profiles:
            self._profiles[profile.name.lower()] = profile

    def register(
        self,
        name: str,
        frequencies: Mapping[str, float],
        expected_ioc: float | None = None,
        common_bigrams: Iterable[str] = (),
        common_trigrams: Iterable[str] = (),
    ) -> LanguageProfile:
        """
        Register (or replace) a language.

        Letters missing from ``frequencies`` get frequency 0. When
        ``expected_ioc`` is omitted it is derived from the table.

        Raises:
            ValidationError: On a non-letter key, a negative or non-finite
                frequency, or a table without any positive frequency
        """
        if not name or not name.strip():
            raise ValidationError("Language name must not be empty")

        table: dict[str, float] = {letter: 0.0 for letter in ALPHABET}
        for key, value in frequencies.items():
            letter = str(key).strip().upper()
            if len(letter) != 1 or letter not in ALPHABET:
                raise ValidationError(
                    f"'{key}' is not a letter A-Z", {"language": name}
                )
            value = float(value)
            if value < 0 or not math.isfinite(value):
                raise ValidationError(
                    f"Frequency for '{letter}' must be a non-negative number",
                    {"language": name, "letter": letter},
                )
            table[letter] = value

        if not any(v > 0 for v in table.values()):
            raise ValidationError(
                "Frequency table has no positive entries", {"language": name}
            )

        profile = LanguageProfile(
            name=name.strip().lower(),
            letter_frequencies=MappingProxyType(table),
            expected_ioc=(
                expected_ioc if expected_ioc is not None else expected_ioc_from(table)
            ),
            common_bigrams=tuple(b.upper() for b in common_bigrams),
            common_trigrams=tuple(t.upper() for t in common_trigrams),
        )
        self._profiles[profile.name] = profile
        return profile

    def get(self, language: str) -> LanguageProfile | None:
        """Get the statistical profile for a language."""
        return self._profiles.get(language.lower())

    def distribution(self, language: str) -> Mapping[str, float]:
        """Reference letter frequencies (percent), empty when unregistered."""
        profile = self.get(language)
        if profile is None:
            return _EMPTY_DISTRIBUTION
        return profile.letter_frequencies

    def supported(self) -> list[str]:
        return sorted(self._profiles)

    def __contains__(self, language: object) -> bool:
        return isinstance(language, str) and language.lower() in self._profiles


# Shared registry used when an analyzer is not given its own
default_registry = LanguageRegistry()


class LanguageDetector:
    """
    Detects the language of plaintext based on statistical analysis.

    Uses letter frequency analysis and chi-squared testing to identify
    the most likely registered language.
    """

    # chi-squared value at which confidence drops to one half
    CONFIDENCE_SCALE: ClassVar[float] = 100.0

    def __init__(self, analyzer: "FrequencyStatistics | None" = None):
        from cryptobreaker.services.analysis.statistics import FrequencyStatistics

        self.analyzer = analyzer or FrequencyStatistics()

    def detect(self, text: str) -> LanguageDetectionResult:
        """
        Detect the language of the given text.

        Args:
            text: Text to analyze (should be plaintext)

        Returns:
            LanguageDetectionResult with language and confidence
        """
        frequencies = self.analyzer.letter_frequency(text)

        best_language = "unknown"
        best_chi_squared = float("inf")

        for language in self.analyzer.registry.supported():
            chi_squared = self.analyzer.chi_squared(
                frequencies, self.analyzer.reference_distribution(language)
            )
            if chi_squared < best_chi_squared:
                best_chi_squared = chi_squared
                best_language = language

        if best_language == "unknown":
            return LanguageDetectionResult(
                language="unknown",
                confidence=0.0,
                chi_squared=float("inf"),
            )

        confidence = 1.0 / (1.0 + best_chi_squared / self.CONFIDENCE_SCALE)

        return LanguageDetectionResult(
            language=best_language,
            confidence=confidence,
            chi_squared=best_chi_squared,
        )
