from collections.abc import Mapping
from types import MappingProxyType
from typing import ClassVar

from cryptobreaker.services.analysis.statistics import FrequencyStatistics
from cryptobreaker.services.preprocessing.normalizer import normalize_text, split_words


class LanguageScorer:
    """
    Scores candidate plaintexts for the substitution search.

    Combines four signals, each in [0, 1]:
    - Englishness (inverse chi-squared of letter frequencies)
    - Bigram table hits
    - Trigram table hits
    - Common word detection

    Decrypted text keeps its spacing, so word detection sees real tokens.
    """

    # Relative frequency of the most common English bigrams
    ENGLISH_BIGRAMS: ClassVar[Mapping[str, float]] = MappingProxyType({
        "TH": 0.0271, "HE": 0.0233, "IN": 0.0203, "ER": 0.0178, "AN": 0.0161,
        "RE": 0.0141, "ED": 0.0117, "ND": 0.0107, "ON": 0.0106, "EN": 0.0105,
        "AT": 0.0103, "OU": 0.0102, "IT": 0.0100, "IS": 0.0098, "OR": 0.0091,
        "TI": 0.0089, "AS": 0.0087, "TE": 0.0087, "ET": 0.0076, "NG": 0.0076,
        "OF": 0.0075, "AL": 0.0074, "DE": 0.0070, "SE": 0.0068, "LE": 0.0066,
        "SA": 0.0063, "SI": 0.0062, "AR": 0.0062, "VE": 0.0058, "RA": 0.0057,
        "LD": 0.0057, "UR": 0.0056, "TA": 0.0056, "RI": 0.0055, "NE": 0.0055,
    })

    ENGLISH_TRIGRAMS: ClassVar[Mapping[str, float]] = MappingProxyType({
        "THE": 0.0181, "AND": 0.0073, "ING": 0.0072, "HER": 0.0036, "HAT": 0.0031,
        "HIS": 0.0031, "THA": 0.0031, "ERE": 0.0031, "FOR": 0.0028, "ENT": 0.0028,
        "ION": 0.0027, "TER": 0.0024, "HAS": 0.0024, "YOU": 0.0024, "ITH": 0.0023,
        "VER": 0.0022, "ALL": 0.0022, "WIT": 0.0021, "THI": 0.0021, "TIO": 0.0021,
        "EST": 0.0020, "ARE": 0.0019, "HEN": 0.0019, "RST": 0.0019, "OUR": 0.0018,
        "OUT": 0.0018, "HAV": 0.0018, "ATE": 0.0017, "STH": 0.0017, "VED": 0.0017,
    })

    # Common English words for quick detection
    COMMON_WORDS: ClassVar[frozenset[str]] = frozenset({
        "THE", "AND", "FOR", "ARE", "BUT", "NOT", "YOU", "ALL", "CAN", "HER",
        "WAS", "ONE", "OUR", "OUT", "DAY", "GET", "HAS", "HIM", "HIS", "HOW",
        "ITS", "MAY", "NEW", "NOW", "OLD", "SEE", "TWO", "WHO", "BOY", "DID",
        "MAN", "OWN", "SAY", "SHE", "TOO", "USE", "THAT", "WITH", "FROM", "THIS",
        "HAVE", "WILL", "WHAT", "WHEN", "WHERE", "WHICH", "THERE", "WOULD",
        "ABOUT", "AFTER", "FIRST", "NEVER", "THESE", "THINK", "BEING", "EVERY",
        "GREAT", "MIGHT", "SHALL", "STILL", "THOSE", "UNDER", "WHILE", "COULD",
    })

    WEIGHTS: ClassVar[tuple[float, float, float, float]] = (0.3, 0.3, 0.2, 0.2)

    def __init__(
        self,
        analyzer: FrequencyStatistics | None = None,
        language: str = "english",
        min_text_length: int = 20,
    ):
        self.analyzer = analyzer or FrequencyStatistics()
        self.language = language
        self.min_text_length = min_text_length

    def _table_score(self, text: str, table: Mapping[str, float], n: int) -> float:
        """Mean table frequency over every n-gram, scaled by the table's top entry."""
        filtered = normalize_text(text)
        total = len(filtered) - n + 1
        if total <= 0:
            return 0.0

        hits = sum(table.get(filtered[i:i + n], 0.0) for i in range(total))
        return hits / total / max(table.values())

    def bigram_score(self, text: str) -> float:
        return self._table_score(text, self.ENGLISH_BIGRAMS, 2)

    def trigram_score(self, text: str) -> float:
        return self._table_score(text, self.ENGLISH_TRIGRAMS, 3)

    def word_score(self, text: str) -> float:
        """
        Share of space-delimited words (3+ letters) that are common words.

        Higher score = more recognizable words.
        """
        words = [w for w in split_words(text) if len(w) >= 3]
        if not words:
            return 0.0

        common_count = sum(1 for word in words if word in self.COMMON_WORDS)
        return common_count / len(words)

    def score(self, text: str) -> float:
        """
        Fitness function for optimization algorithms.

        Returns a value in [0, 1] where higher = more English-like. Texts
        shorter than ``min_text_length`` letters score 0.
        """
        if len(normalize_text(text)) < self.min_text_length:
            return 0.0

        w_freq, w_bigram, w_trigram, w_word = self.WEIGHTS
        return (
            w_freq * self.analyzer.englishness(text, self.language)
            + w_bigram * self.bigram_score(text)
            + w_trigram * self.trigram_score(text)
            + w_word * self.word_score(text)
        )
