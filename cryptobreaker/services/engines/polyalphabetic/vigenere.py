import math
import os
import random
import string
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import reduce
from typing import Any, ClassVar

from cryptobreaker.core.config import Settings
from cryptobreaker.core.exceptions import InvalidKeyError, ValidationError
from cryptobreaker.models.schemas import (
    AnalysisResult,
    CipherFamily,
    CipherType,
    KeyLengthCandidate,
)
from cryptobreaker.services.analysis.statistics import FrequencyStatistics
from cryptobreaker.services.engines.base import CipherEngine
from cryptobreaker.services.engines.monoalphabetic.caesar import CaesarEngine
from cryptobreaker.services.engines.registry import EngineRegistry
from cryptobreaker.services.preprocessing.normalizer import normalize_text


@dataclass
class KeyLengthTrial:
    """Key recovered for one candidate length and how English it decrypts."""

    length: int
    key: str
    score: float


@dataclass
class VigenereAnalysis:
    """Diagnostics of the last Vigenère run."""

    kasiski: dict[int, float] = field(default_factory=dict)
    ic: dict[int, float] = field(default_factory=dict)
    candidates: list[KeyLengthCandidate] = field(default_factory=list)
    trials: list[KeyLengthTrial] = field(default_factory=list)


@EngineRegistry.register
class VigenereEngine(CipherEngine):
    """
    Vigenère cipher engine.

    A polyalphabetic substitution cipher that uses a keyword to determine
    the shift for each letter. Each letter of the keyword represents a
    different Caesar shift applied in sequence.

    Breaking involves:
    1. Ranking key lengths by Kasiski examination and column IOC
    2. Breaking each column as a Caesar cipher, for every candidate length
    3. Keeping the key whose decryption is most English-like
    """

    name = "Vigenère Cipher"
    cipher_type = CipherType.VIGENERE
    cipher_family = CipherFamily.POLYALPHABETIC
    description = (
        "A polyalphabetic cipher where each letter is shifted by a different amount "
        "based on a repeating keyword. More secure than Caesar but vulnerable to "
        "Kasiski examination and frequency analysis per key position."
    )

    ALPHABET: ClassVar[str] = string.ascii_uppercase

    def __init__(
        self,
        analyzer: FrequencyStatistics | None = None,
        language: str | None = None,
        verbose: bool = False,
        settings: Settings | None = None,
        min_key_length: int | None = None,
        max_key_length: int | None = None,
        min_substring_length: int | None = None,
        max_substring_length: int | None = None,
        min_text_length: int | None = None,
        kasiski_weight: float | None = None,
        ic_weight: float | None = None,
        max_workers: int | None = None,
    ):
        super().__init__(analyzer, language, verbose, settings)
        s = self.settings

        self.set_key_length_range(
            min_key_length if min_key_length is not None else s.vigenere_min_key_length,
            max_key_length if max_key_length is not None else s.vigenere_max_key_length,
        )
        self.min_substring_length = (
            min_substring_length
            if min_substring_length is not None
            else s.vigenere_min_substring_length
        )
        self.max_substring_length = (
            max_substring_length
            if max_substring_length is not None
            else s.vigenere_max_substring_length
        )
        if not 2 <= self.min_substring_length <= self.max_substring_length:
            raise ValidationError(
                "Substring lengths must satisfy 2 <= min <= max",
                {
                    "min_substring_length": self.min_substring_length,
                    "max_substring_length": self.max_substring_length,
                },
            )

        self.min_text_length = (
            min_text_length if min_text_length is not None else s.vigenere_min_text_length
        )
        self.kasiski_weight = kasiski_weight if kasiski_weight is not None else s.kasiski_weight
        self.ic_weight = ic_weight if ic_weight is not None else s.ic_weight

        if max_workers is None:
            max_workers = s.max_parallel_workers or os.cpu_count() or 1
        self.max_workers = max(1, max_workers)

        self.last_analysis = VigenereAnalysis()

    def set_key_length_range(self, min_length: int, max_length: int) -> None:
        """
        Bound the key lengths considered.

        Raises:
            ValidationError: Unless 1 <= min_length <= max_length
        """
        if not 1 <= min_length <= max_length:
            raise ValidationError(
                "Key length range must satisfy 1 <= min <= max",
                {"min_key_length": min_length, "max_key_length": max_length},
            )
        self.min_key_length = min_length
        self.max_key_length = max_length

    # ------------------------------------------------------------------
    # Known-key operations
    # ------------------------------------------------------------------

    def _parse_key(self, key: Any) -> str:
        """Parse key to an uppercase keyword (may be empty)."""
        if isinstance(key, dict):
            key = key.get("key", key.get("keyword", ""))
        if not isinstance(key, str):
            raise InvalidKeyError(self.cipher_type.value, key, "expected a keyword")
        keyword = key.strip()
        if any(c not in string.ascii_letters for c in keyword):
            raise InvalidKeyError(
                self.cipher_type.value, key, "keyword must contain letters A-Z only"
            )
        return keyword.upper()

    def _apply(self, text: str, keyword: str, direction: int) -> str:
        """Shift letters by the keyword; the key advances on letters only."""
        if not keyword:
            return text

        shifts = [self.ALPHABET.index(c) * direction for c in keyword]
        result = []
        key_idx = 0

        for char in text:
            if "A" <= char <= "Z":
                shift = shifts[key_idx % len(shifts)]
                result.append(chr((ord(char) - 65 + shift) % 26 + 65))
                key_idx += 1
            elif "a" <= char <= "z":
                shift = shifts[key_idx % len(shifts)]
                result.append(chr((ord(char) - 97 + shift) % 26 + 97))
                key_idx += 1
            else:
                result.append(char)

        return "".join(result)

    def encrypt(self, plaintext: str, key: Any) -> str:
        """Encrypt using the keyword. An empty keyword leaves text unchanged."""
        return self._apply(plaintext, self._parse_key(key), 1)

    def decrypt_with_key(self, ciphertext: str, key: Any) -> str:
        """Decrypt with a known keyword. An empty keyword leaves text unchanged."""
        return self._apply(ciphertext, self._parse_key(key), -1)

    def decrypt(self, ciphertext: str, key: Any) -> str:
        return self.decrypt_with_key(ciphertext, key)

    def generate_random_key(self, rng: random.Random | None = None) -> str:
        """Generate a random keyword."""
        rng = rng or random
        length = rng.randint(4, 10)
        return "".join(rng.choice(self.ALPHABET) for _ in range(length))

    def validate_key(self, key: Any) -> bool:
        """Validate that key is a non-empty alphabetic keyword."""
        try:
            return len(self._parse_key(key)) > 0
        except InvalidKeyError:
            return False

    def score_key(self, key: str, ciphertext: str) -> float:
        """
        Score a proposed keyword against the ciphertext.

        Englishness of the decryption, halved for every non-letter in the key
        (those characters are skipped when decrypting).
        """
        letters = "".join(c for c in key if c in string.ascii_letters).upper()
        penalty = 0.5 ** (len(key) - len(letters))
        return self.score_plaintext(self._apply(ciphertext, letters, -1)) * penalty

    # ------------------------------------------------------------------
    # Key length estimation
    # ------------------------------------------------------------------

    def split_by_key_position(self, text: str, key_length: int) -> list[str]:
        """Letters of ``text`` grouped by position modulo ``key_length``."""
        normalized = normalize_text(text)
        return [normalized[i::key_length] for i in range(key_length)]

    @staticmethod
    def calculate_gcd(*numbers: int) -> int:
        return reduce(math.gcd, numbers, 0)

    def kasiski_examination(self, ciphertext: str) -> dict[int, float]:
        """
        Score key lengths by how often they divide repeat distances.

        Every pair of occurrences of a repeated substring contributes its
        distance; a length's score is its divisor count normalized by the
        largest count. Lengths that divide no distance are absent.
        """
        repeats = self.analyzer.find_repeated_substrings(
            ciphertext, self.min_substring_length, self.max_substring_length
        )

        factor_counts: Counter[int] = Counter()
        for positions in repeats.values():
            for i, first in enumerate(positions):
                for second in positions[i + 1:]:
                    distance = second - first
                    if distance < self.min_key_length:
                        continue
                    for length in range(self.min_key_length, self.max_key_length + 1):
                        if distance % length == 0:
                            factor_counts[length] += 1

        self._narrate(
            "Kasiski: %d repeated substrings, %d lengths with factors",
            len(repeats), len(factor_counts),
        )

        if not factor_counts:
            return {}

        max_count = max(factor_counts.values())
        return {
            length: count / max_count
            for length, count in sorted(factor_counts.items())
        }

    def index_of_coincidence_method(self, ciphertext: str) -> dict[int, float]:
        """
        Average column IOC for each key length.

        Lengths leaving fewer than two letters per column are skipped, as are
        lengths whose columns carry no coincidences at all.
        """
        normalized = normalize_text(ciphertext)
        results: dict[int, float] = {}

        for length in range(self.min_key_length, self.max_key_length + 1):
            if len(normalized) // length < 2:
                break

            columns = [
                col for col in self.split_by_key_position(normalized, length)
                if len(col) >= 2
            ]
            if not columns:
                continue

            avg_ioc = sum(self.analyzer.index_of_coincidence(col) for col in columns)
            avg_ioc /= len(columns)
            if avg_ioc > 0:
                results[length] = avg_ioc

        return results

    def rank_key_lengths(
        self,
        kasiski: dict[int, float],
        ic: dict[int, float],
    ) -> list[KeyLengthCandidate]:
        """Weighted merge of both estimators, best first."""
        candidates = [
            KeyLengthCandidate(
                length=length,
                score=(
                    kasiski.get(length, 0.0) * self.kasiski_weight
                    + ic.get(length, 0.0) * self.ic_weight
                ),
                kasiski_score=kasiski.get(length, 0.0),
                ic_score=ic.get(length, 0.0),
            )
            for length in sorted(set(kasiski) | set(ic))
        ]
        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates

    def find_key_length(self, ciphertext: str) -> list[int]:
        """Candidate key lengths, most likely first."""
        normalized = normalize_text(ciphertext)
        return [
            c.length
            for c in self.rank_key_lengths(
                self.kasiski_examination(normalized),
                self.index_of_coincidence_method(normalized),
            )
        ]

    # ------------------------------------------------------------------
    # Key recovery
    # ------------------------------------------------------------------

    def find_key(self, ciphertext: str, key_length: int) -> str:
        """
        Recover a key of the given length column by column.

        Each column is a Caesar cipher; its best shift becomes the key letter.
        Empty columns get 'A'.
        """
        caesar = CaesarEngine(
            analyzer=self.analyzer,
            language=self.target_language,
            settings=self.settings,
            min_text_length=1,
            max_workers=1,
        )

        key = []
        for column in self.split_by_key_position(ciphertext, key_length):
            shift = caesar.find_best_key(column) if column else 0
            key.append(self.ALPHABET[shift])

        return "".join(key)

    @staticmethod
    def reduce_key(key: str) -> str:
        """Shortest keyword whose repetition gives ``key`` (LEMONLEMON -> LEMON)."""
        n = len(key)
        for period in range(1, n):
            if n % period == 0 and key[:period] * (n // period) == key:
                return key[:period]
        return key

    def _try_length(self, normalized: str, key_length: int) -> KeyLengthTrial:
        """Recover and score the key for one length; runs on a worker thread."""
        key = self.find_key(normalized, key_length)
        score = self.score_plaintext(self._apply(normalized, key, -1))
        return KeyLengthTrial(length=key_length, key=key, score=score)

    def _try_lengths(self, normalized: str, lengths: list[int]) -> list[KeyLengthTrial]:
        """Trials in the order of ``lengths``, one task per length."""
        workers = min(self.max_workers, len(lengths))
        if workers <= 1:
            return [self._try_length(normalized, length) for length in lengths]

        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda length: self._try_length(normalized, length), lengths))

    # ------------------------------------------------------------------
    # Breaking
    # ------------------------------------------------------------------

    def score_plaintext(self, plaintext: str) -> float:
        return self.analyzer.englishness(plaintext, self.target_language)

    def _analyze(self, ciphertext: str) -> AnalysisResult:
        normalized = normalize_text(ciphertext)
        kasiski = self.kasiski_examination(normalized)
        ic = self.index_of_coincidence_method(normalized)
        candidates = self.rank_key_lengths(kasiski, ic)

        if not candidates:
            self._narrate("No viable key lengths found")
            self.last_analysis = VigenereAnalysis(kasiski=kasiski, ic=ic)
            return AnalysisResult.empty(
                self.cipher_type,
                explanation="No repeated substrings or informative IOC peaks were found.",
            )

        self._narrate(
            "Testing %d key lengths, top candidates: %s",
            len(candidates), [c.length for c in candidates[:5]],
        )

        trials = self._try_lengths(normalized, [c.length for c in candidates])
        self.last_analysis = VigenereAnalysis(
            kasiski=kasiski, ic=ic, candidates=candidates, trials=trials
        )

        best = trials[0]
        for trial in trials[1:]:
            if trial.score > best.score:
                best = trial

        key = self.reduce_key(best.key)
        plaintext = self._apply(ciphertext, key, -1)
        self._narrate("Key '%s' (length %d), score %.4f", key, len(key), best.score)

        explanation = self.explain(ciphertext, plaintext, key)
        confidence = max(0.0, min(100.0, best.score * 100))
        # Below the minimum length the key is a best-effort guess only
        if len(normalized) < self.min_text_length:
            confidence = 0.0
            explanation += (
                f" The text has only {len(normalized)} letters; at least "
                f"{self.min_text_length} are needed for reliable key length "
                f"analysis, so this answer is unranked."
            )

        return AnalysisResult(
            plaintext=plaintext,
            formatted_plaintext=plaintext,
            key=key,
            confidence=confidence,
            score=best.score,
            cipher_type=self.cipher_type,
            explanation=explanation,
        )

    def get_possible_solutions(self, ciphertext: str) -> list[str]:
        """Decryptions for the five most likely key lengths."""
        if not self.validate_input(ciphertext):
            return []

        normalized = normalize_text(ciphertext)
        solutions = [
            self._apply(ciphertext, self.find_key(normalized, length), -1)
            for length in self.find_key_length(normalized)[:5]
        ]
        return list(dict.fromkeys(solutions))

    def explain(self, ciphertext: str, plaintext: str, key: Any) -> str:
        """Generate human-readable explanation."""
        key_str = self._parse_key(key)

        shifts = [self.ALPHABET.index(c) for c in key_str]
        shift_desc = ", ".join(f"{c}={s}" for c, s in zip(key_str, shifts))

        return (
            f"Vigenère cipher with keyword '{key_str}' (length {len(key_str)}). "
            f"Letter shifts: {shift_desc}. "
            f"Each letter of the ciphertext is shifted back by the corresponding "
            f"key letter's position in the alphabet."
        )
