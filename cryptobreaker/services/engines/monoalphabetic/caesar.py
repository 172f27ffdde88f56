import math
import os
import random
import string
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, ClassVar

from cryptobreaker.core.config import Settings
from cryptobreaker.core.exceptions import InvalidKeyError
from cryptobreaker.models.schemas import AnalysisResult, CipherFamily, CipherType
from cryptobreaker.services.analysis.statistics import FrequencyStatistics
from cryptobreaker.services.engines.base import CipherEngine
from cryptobreaker.services.engines.registry import EngineRegistry
from cryptobreaker.services.preprocessing.normalizer import normalize_text


@EngineRegistry.register
class CaesarEngine(CipherEngine):
    """
    Caesar cipher engine.

    The Caesar cipher is a simple substitution cipher that shifts each letter
    by a fixed amount. With only 26 possible keys, it can be trivially broken
    by trying all shifts and scoring each result.

    Keys are encryption shifts: key 3 turns A into D, and decrypting with
    key 3 shifts back by 3.
    """

    name = "Caesar Cipher"
    cipher_type = CipherType.CAESAR
    cipher_family = CipherFamily.MONOALPHABETIC
    description = (
        "A substitution cipher where each letter is shifted by a fixed amount. "
        "Named after Julius Caesar who used it for military communications."
    )

    ALPHABET: ClassVar[str] = string.ascii_uppercase

    # Short words whose presence marks a correct shift
    COMMON_WORDS: ClassVar[tuple[str, ...]] = (
        "THE", "AND", "FOR", "ARE", "BUT", "NOT", "YOU", "ALL", "CAN", "HER",
        "WAS", "ONE", "OUR", "OUT", "DAY", "GET", "HAS", "HIM", "HIS", "HOW",
        "ITS", "MAY", "NEW", "NOW", "OLD", "SEE", "TWO", "WHO", "BOY", "DID",
        "MAN", "OWN", "SAY", "SHE", "TOO", "USE", "THAT", "WITH", "FROM",
        "HAVE", "THIS", "WILL", "WHAT", "WHEN", "WHERE", "WHICH", "THERE",
    )

    COMMON_BIGRAMS: ClassVar[frozenset[str]] = frozenset({
        "TH", "HE", "IN", "ER", "AN", "RE", "ED", "ND", "ON", "EN",
    })

    # Frequency, IC closeness, word/bigram patterns
    WEIGHTS: ClassVar[tuple[float, float, float]] = (0.5, 0.3, 0.2)

    def __init__(
        self,
        analyzer: FrequencyStatistics | None = None,
        language: str | None = None,
        verbose: bool = False,
        settings: Settings | None = None,
        min_text_length: int | None = None,
        max_workers: int | None = None,
    ):
        super().__init__(analyzer, language, verbose, settings)
        self.min_text_length = (
            min_text_length
            if min_text_length is not None
            else self.settings.caesar_min_text_length
        )
        if max_workers is None:
            max_workers = self.settings.max_parallel_workers or os.cpu_count() or 1
        self.max_workers = max(1, max_workers)
        self.last_scores: dict[int, float] = {}

    # ------------------------------------------------------------------
    # Known-key operations
    # ------------------------------------------------------------------

    @classmethod
    def shift_text(cls, text: str, shift: int) -> str:
        """Rotate every letter by ``shift``, preserving case and non-letters."""
        result = []
        for char in text:
            if "A" <= char <= "Z":
                result.append(chr((ord(char) - 65 + shift) % 26 + 65))
            elif "a" <= char <= "z":
                result.append(chr((ord(char) - 97 + shift) % 26 + 97))
            else:
                result.append(char)
        return "".join(result)

    def encrypt(self, plaintext: str, key: Any) -> str:
        """Encrypt plaintext with the given shift."""
        return self.shift_text(plaintext, self._parse_key(key))

    def decrypt_with_key(self, ciphertext: str, key: Any) -> str:
        """Decrypt by shifting in reverse."""
        return self.shift_text(ciphertext, -self._parse_key(key))

    def decrypt(self, ciphertext: str, key: Any) -> str:
        return self.decrypt_with_key(ciphertext, key)

    def generate_random_key(self, rng: random.Random | None = None) -> int:
        """Generate a random shift (1-25, excluding 0 and 26)."""
        return (rng or random).randint(1, 25)

    def validate_key(self, key: Any) -> bool:
        """Validate that key is a valid shift (0-25) or a single letter."""
        try:
            if isinstance(key, int) and not isinstance(key, bool):
                return 0 <= key <= 25
            self._parse_key(key)
            return True
        except InvalidKeyError:
            return False

    def _parse_key(self, key: Any) -> int:
        """Parse key to integer shift value."""
        if isinstance(key, dict):
            key = key.get("shift", key.get("key"))
        if isinstance(key, bool):
            raise InvalidKeyError(self.cipher_type.value, key, "expected a shift")
        if isinstance(key, int):
            return key % 26
        if isinstance(key, str):
            stripped = key.strip()
            if len(stripped) == 1 and stripped in string.ascii_letters:
                return self.ALPHABET.index(stripped.upper())
            try:
                return int(stripped) % 26
            except ValueError:
                pass
        raise InvalidKeyError(
            self.cipher_type.value, key, "expected an integer shift or a single letter"
        )

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def score_plaintext(self, plaintext: str) -> float:
        """
        Score a plaintext candidate in [0, 1].

        Weighted mix of inverse chi-squared, Index of Coincidence closeness
        to the target language, and common word/bigram patterns. Texts with
        fewer than ``min_text_length`` letters score 0.
        """
        normalized = normalize_text(plaintext)
        if len(normalized) < self.min_text_length:
            return 0.0

        frequencies = self.analyzer.letter_frequency(normalized)
        chi_squared = self.analyzer.chi_squared(
            frequencies, self.analyzer.reference_distribution(self.target_language)
        )
        freq_score = 1.0 / (1.0 + chi_squared)

        expected_ioc = self.analyzer.expected_ioc(self.target_language)
        if expected_ioc is None:
            ic_score = 0.0
        else:
            ioc = self.analyzer.index_of_coincidence(normalized)
            ic_score = max(0.0, 1.0 - abs(ioc - expected_ioc) * 10)

        w_freq, w_ic, w_pattern = self.WEIGHTS
        return (
            w_freq * freq_score
            + w_ic * ic_score
            + w_pattern * self._pattern_score(normalized)
        )

    def _pattern_score(self, normalized: str) -> float:
        words_found = sum(1 for word in self.COMMON_WORDS if word in normalized)
        score = words_found / len(self.COMMON_WORDS)

        top_bigrams = self.analyzer.top_ngrams(normalized, 2, 10)
        bigram_hits = sum(1 for bigram, _ in top_bigrams if bigram in self.COMMON_BIGRAMS)
        score += bigram_hits / 10 * 0.5

        return min(1.0, score)

    # ------------------------------------------------------------------
    # Key search
    # ------------------------------------------------------------------

    def _score_shifts(self, normalized: str, shifts: range) -> list[tuple[int, float]]:
        """Score a contiguous block of shifts; runs on a worker thread."""
        return [
            (shift, self.score_plaintext(self.shift_text(normalized, -shift)))
            for shift in shifts
        ]

    def rank_keys(self, ciphertext: str) -> list[tuple[int, float]]:
        """
        Score all 26 shifts, best first.

        Shifts are split into contiguous blocks scored in parallel. Equal
        scores keep ascending shift order. Does not touch engine state.
        """
        normalized = normalize_text(ciphertext)
        workers = min(self.max_workers, 26)

        if workers == 1:
            scored = self._score_shifts(normalized, range(26))
        else:
            size = math.ceil(26 / workers)
            blocks = [range(start, min(start + size, 26)) for start in range(0, 26, size)]
            with ThreadPoolExecutor(max_workers=len(blocks)) as pool:
                scored = [
                    pair
                    for block in pool.map(partial(self._score_shifts, normalized), blocks)
                    for pair in block
                ]

        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored

    def find_best_key(self, ciphertext: str) -> int:
        """Most likely encryption shift."""
        return self.rank_keys(ciphertext)[0][0]

    def find_possible_keys(self, ciphertext: str) -> list[tuple[int, float]]:
        """
        All 26 (shift, score) pairs, best first.

        Also records the per-shift scores and the confidence of this ranking.
        """
        ranked = self.rank_keys(ciphertext)
        self.last_scores = dict(sorted(ranked))
        self._confidence = self._confidence_from(ranked)
        return ranked

    def get_detailed_analysis(self, ciphertext: str) -> dict[int, float]:
        """Score of every shift, keyed by shift."""
        self.find_possible_keys(ciphertext)
        return dict(self.last_scores)

    @staticmethod
    def _confidence_from(ranked: list[tuple[int, float]]) -> float:
        """Scale the gap between the two best scores onto 0-100."""
        if not ranked or ranked[0][1] <= 0:
            return 0.0
        gap = ranked[0][1] - ranked[1][1] if len(ranked) > 1 else ranked[0][1]
        return max(0.0, min(100.0, gap * 10 + 50))

    # ------------------------------------------------------------------
    # Breaking
    # ------------------------------------------------------------------

    def _analyze(self, ciphertext: str) -> AnalysisResult:
        normalized = normalize_text(ciphertext)
        ranked = self.find_possible_keys(normalized)
        best_shift, best_score = ranked[0]
        plaintext = self.shift_text(normalized, -best_shift)
        explanation = self.explain(ciphertext, plaintext, best_shift)

        # Too short to rank: every score is 0, keep the top shift as a best effort
        if best_score <= 0:
            self._narrate(
                "Only %d letters; need %d for a reliable ranking",
                len(normalized), self.min_text_length,
            )
            explanation += (
                f" The text has only {len(normalized)} letters; at least "
                f"{self.min_text_length} are needed to rank shifts, so this "
                f"answer is unranked."
            )
        else:
            self._narrate("Best shift %d (score %.4f)", best_shift, best_score)

        return AnalysisResult(
            plaintext=plaintext,
            formatted_plaintext=self.shift_text(ciphertext, -best_shift),
            key=best_shift,
            confidence=self._confidence_from(ranked),
            score=best_score,
            cipher_type=self.cipher_type,
            explanation=explanation,
        )

    def get_possible_solutions(self, ciphertext: str) -> list[str]:
        """Decryptions under the five best shifts."""
        if not self.validate_input(ciphertext):
            return []

        normalized = normalize_text(ciphertext)
        return [
            self.shift_text(normalized, -shift)
            for shift, _ in self.find_possible_keys(normalized)[:5]
        ]

    def explain(self, ciphertext: str, plaintext: str, key: Any) -> str:
        """Generate human-readable explanation."""
        shift = self._parse_key(key)
        first_cipher = next((c for c in ciphertext if c in string.ascii_letters), None)

        explanation = (
            f"Caesar cipher with shift of {shift}. "
            f"Each letter was shifted back {shift} positions in the alphabet."
        )
        if first_cipher is not None:
            explanation += (
                f" For example, the ciphertext letter '{first_cipher.upper()}' "
                f"becomes '{self.shift_text(first_cipher.upper(), -shift)}'."
            )
        return explanation
