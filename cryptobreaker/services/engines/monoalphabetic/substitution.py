import random
import string
from typing import Any, ClassVar

from cryptobreaker.core.config import Settings
from cryptobreaker.core.exceptions import InvalidKeyError, ValidationError
from cryptobreaker.models.schemas import (
    AnalysisResult,
    CipherFamily,
    CipherType,
    SubstitutionMethod,
)
from cryptobreaker.services.analysis.statistics import FrequencyStatistics
from cryptobreaker.services.engines.base import CipherEngine
from cryptobreaker.services.engines.registry import EngineRegistry
from cryptobreaker.services.optimization.local_search import (
    SearchResult,
    hill_climb,
    simulated_annealing,
)
from cryptobreaker.services.optimization.mapping import (
    SubstitutionMapping,
    complete_mapping,
)
from cryptobreaker.services.optimization.scoring import LanguageScorer
from cryptobreaker.services.preprocessing.normalizer import normalize_text


@EngineRegistry.register
class SubstitutionEngine(CipherEngine):
    """
    Simple Substitution cipher engine.

    Each letter is replaced with another letter according to a fixed permutation
    of the alphabet. With 26! possible keys, brute force is impossible.

    Breaking starts from frequency rank-matching, refines the mapping with
    common bigrams, then improves it by hill climbing and/or simulated
    annealing. The search is best-effort, not exhaustive.

    Keys are 26-letter plaintext alphabets: ``key[i]`` is the plaintext
    letter for ciphertext letter ``ALPHABET[i]``.
    """

    name = "Simple Substitution Cipher"
    cipher_type = CipherType.SUBSTITUTION
    cipher_family = CipherFamily.MONOALPHABETIC
    description = (
        "Each letter is mapped to a different letter using a random permutation. "
        "With 26! (about 4 x 10^26) possible keys, brute force is impossible. "
        "Solved using frequency analysis and local-search optimization."
    )

    ALPHABET: ClassVar[str] = string.ascii_uppercase

    # Targets for the most common ciphertext bigrams, by rank
    BIGRAM_TARGETS: ClassVar[tuple[str, ...]] = (
        "TH", "HE", "IN", "ER", "AN", "RE", "ED", "ND", "ON", "EN",
    )

    # Hill-climbing iterations for the candidate list
    SOLUTION_ITERATIONS: ClassVar[int] = 500

    def __init__(
        self,
        analyzer: FrequencyStatistics | None = None,
        language: str | None = None,
        verbose: bool = False,
        settings: Settings | None = None,
        method: str | SubstitutionMethod | None = None,
        max_iterations: int | None = None,
        initial_temperature: float | None = None,
        final_temperature: float | None = None,
        seed: int | None = None,
        min_text_length: int | None = None,
    ):
        super().__init__(analyzer, language, verbose, settings)
        self.method = self._parse_method(method or self.settings.substitution_method)
        self.max_iterations = (
            max_iterations
            if max_iterations is not None
            else self.settings.substitution_max_iterations
        )
        self.initial_temperature = (
            initial_temperature
            if initial_temperature is not None
            else self.settings.annealing_initial_temperature
        )
        self.final_temperature = (
            final_temperature
            if final_temperature is not None
            else self.settings.annealing_final_temperature
        )
        if self.max_iterations < 0:
            raise ValidationError("max_iterations must not be negative")
        if not 0 < self.final_temperature <= self.initial_temperature:
            raise ValidationError(
                "Annealing temperatures must satisfy 0 < final <= initial",
                {
                    "initial_temperature": self.initial_temperature,
                    "final_temperature": self.final_temperature,
                },
            )

        self.seed = seed if seed is not None else self.settings.substitution_seed
        self.scorer = LanguageScorer(
            self.analyzer,
            self.target_language,
            min_text_length
            if min_text_length is not None
            else self.settings.substitution_min_text_length,
        )
        self.history: list[tuple[int, float]] = []
        self.last_mapping: SubstitutionMapping | None = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_method(method: str | SubstitutionMethod) -> SubstitutionMethod:
        try:
            return SubstitutionMethod(method)
        except ValueError as e:
            raise ValidationError(
                f"Unknown substitution method '{method}'",
                {"allowed": [m.value for m in SubstitutionMethod]},
            ) from e

    def set_method(self, method: str | SubstitutionMethod) -> None:
        self.method = self._parse_method(method)

    def set_target_language(self, language: str) -> None:
        super().set_target_language(language)
        self.scorer.language = self.target_language

    def _rng(self) -> random.Random:
        """Fresh random source; a fixed seed makes every run identical."""
        return random.Random(self.seed)

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def score_plaintext(self, plaintext: str) -> float:
        return self.scorer.score(plaintext)

    def score_mapping(self, mapping: SubstitutionMapping, ciphertext: str) -> float:
        """Score of the ciphertext decrypted with ``mapping``."""
        return self.score_plaintext(mapping.apply(ciphertext))

    @staticmethod
    def apply_mapping(text: str, mapping: SubstitutionMapping) -> str:
        return mapping.apply(text)

    @staticmethod
    def complete_mapping(partial: dict[str, str]) -> SubstitutionMapping:
        return complete_mapping(partial)

    # ------------------------------------------------------------------
    # Mapping construction
    # ------------------------------------------------------------------

    def generate_mapping(self, ciphertext: str) -> SubstitutionMapping:
        """
        Initial mapping by frequency rank.

        The most frequent ciphertext letter maps to the most frequent letter
        of the target language, and so on. Letters absent from the
        ciphertext are filled in by completion.
        """
        self._narrate("Generating initial frequency-based mapping")

        cipher_freq = self.analyzer.letter_frequency(ciphertext)
        reference = self.analyzer.reference_distribution(self.target_language)

        cipher_ranked = sorted(
            (c for c in self.ALPHABET if cipher_freq[c] > 0),
            key=lambda c: cipher_freq[c],
            reverse=True,
        )
        reference_ranked = sorted(
            reference, key=lambda c: reference[c], reverse=True
        )

        return complete_mapping(dict(zip(cipher_ranked, reference_ranked)))

    def improve_mapping_with_bigrams(
        self,
        mapping: SubstitutionMapping,
        ciphertext: str,
    ) -> SubstitutionMapping:
        """
        Align the top ciphertext bigrams with common English bigrams.

        The i-th most frequent ciphertext bigram is tentatively mapped onto
        the i-th target bigram using swaps. A change is kept only if it
        strictly improves the score.
        """
        self._narrate("Improving mapping with bigram analysis")

        mapping = mapping.copy()
        best_score = self.score_mapping(mapping, ciphertext)
        cipher_bigrams = self.analyzer.top_ngrams(ciphertext, 2, len(self.BIGRAM_TARGETS))

        for (cipher_bigram, _), target in zip(cipher_bigrams, self.BIGRAM_TARGETS):
            c1, c2 = cipher_bigram
            p1, p2 = target
            if c1 == c2:
                continue

            candidate = mapping.copy()
            candidate.swap(c1, candidate.preimage(p1))
            candidate.swap(c2, candidate.preimage(p2))

            score = self.score_mapping(candidate, ciphertext)
            if score > best_score:
                mapping, best_score = candidate, score

        return mapping

    def hill_climb(
        self,
        mapping: SubstitutionMapping,
        ciphertext: str,
        iterations: int | None = None,
        rng: random.Random | None = None,
    ) -> SearchResult:
        """Hill climbing from ``mapping``; records the accepted moves."""
        iterations = self.max_iterations if iterations is None else iterations
        self._narrate("Hill climbing for %d iterations", iterations)

        result = hill_climb(
            mapping,
            lambda m: self.score_mapping(m, ciphertext),
            iterations,
            rng or self._rng(),
        )
        self.history = result.history
        return result

    def simulated_annealing(
        self,
        mapping: SubstitutionMapping,
        ciphertext: str,
        iterations: int | None = None,
        rng: random.Random | None = None,
    ) -> SearchResult:
        """Simulated annealing from ``mapping``; returns the best mapping seen."""
        iterations = self.max_iterations if iterations is None else iterations
        self._narrate(
            "Simulated annealing for %d iterations (T0=%.3f)",
            iterations, self.initial_temperature,
        )

        result = simulated_annealing(
            mapping,
            lambda m: self.score_mapping(m, ciphertext),
            iterations,
            rng or self._rng(),
            self.initial_temperature,
            self.final_temperature,
        )
        self.history = result.history
        return result

    def find_mapping(self, ciphertext: str) -> tuple[SubstitutionMapping, float]:
        """Run the configured method and return (mapping, score)."""
        initial = self.generate_mapping(ciphertext)

        if self.method == SubstitutionMethod.FREQUENCY:
            self.history = []
            return initial, self.score_mapping(initial, ciphertext)

        if self.method == SubstitutionMethod.HILL_CLIMBING:
            result = self.hill_climb(initial, ciphertext)
            return result.mapping, result.score

        if self.method == SubstitutionMethod.SIMULATED_ANNEALING:
            result = self.simulated_annealing(initial, ciphertext)
            return result.mapping, result.score

        refined = self.improve_mapping_with_bigrams(initial, ciphertext)
        result = self.hill_climb(refined, ciphertext, self.max_iterations // 2)
        return result.mapping, result.score

    # ------------------------------------------------------------------
    # Breaking
    # ------------------------------------------------------------------

    def break_by_frequency(self, ciphertext: str) -> str:
        """Decrypt with the frequency rank mapping alone."""
        return self.generate_mapping(ciphertext).apply(ciphertext)

    def _analyze(self, ciphertext: str) -> AnalysisResult:
        self._narrate("Breaking substitution cipher with method '%s'", self.method.value)

        mapping, score = self.find_mapping(ciphertext)
        self.last_mapping = mapping
        plaintext = mapping.apply(ciphertext)

        self._narrate("Final score %.4f", score)

        return AnalysisResult(
            plaintext=plaintext,
            formatted_plaintext=plaintext,
            key=mapping.key,
            confidence=max(0.0, min(100.0, score * 100)),
            score=score,
            cipher_type=self.cipher_type,
            explanation=self.explain(ciphertext, plaintext, mapping.key),
        )

    def get_possible_solutions(self, ciphertext: str) -> list[str]:
        """
        Plaintexts from the initial, bigram-refined and hill-climbed mappings.

        Duplicates are removed; best-scoring first.
        """
        if not self.validate_input(ciphertext):
            return []

        initial = self.generate_mapping(ciphertext)
        refined = self.improve_mapping_with_bigrams(initial, ciphertext)
        climbed = hill_climb(
            initial,
            lambda m: self.score_mapping(m, ciphertext),
            self.SOLUTION_ITERATIONS,
            self._rng(),
        ).mapping

        solutions = list(dict.fromkeys(
            m.apply(ciphertext) for m in (initial, refined, climbed)
        ))
        solutions.sort(key=self.score_plaintext, reverse=True)
        return solutions

    # ------------------------------------------------------------------
    # Known-key operations
    # ------------------------------------------------------------------

    def _parse_key(self, key: Any) -> SubstitutionMapping:
        """Parse a 26-letter key (or {"key": ...}) into a mapping."""
        if isinstance(key, SubstitutionMapping):
            return key
        if isinstance(key, dict):
            key = key.get("key", key.get("permutation", ""))
        try:
            return SubstitutionMapping.from_key(str(key))
        except ValueError as e:
            raise InvalidKeyError(self.cipher_type.value, key, str(e)) from e

    def decrypt_with_key(self, ciphertext: str, key: Any) -> str:
        """Decrypt with a known substitution key."""
        return self._parse_key(key).apply(ciphertext)

    def encrypt(self, plaintext: str, key: Any) -> str:
        """Encrypt using the substitution key."""
        return self._parse_key(key).inverse().apply(plaintext)

    def generate_random_key(self, rng: random.Random | None = None) -> str:
        """Generate a random permutation of the alphabet."""
        letters = list(self.ALPHABET)
        (rng or random).shuffle(letters)
        return "".join(letters)

    def validate_key(self, key: Any) -> bool:
        """Validate that key is a valid 26-letter permutation."""
        try:
            self._parse_key(key)
            return True
        except InvalidKeyError:
            return False

    def explain(self, ciphertext: str, plaintext: str, key: Any) -> str:
        """Generate human-readable explanation."""
        mapping = self._parse_key(key)
        present = [c for c in self.ALPHABET if c in normalize_text(ciphertext)]

        # Show first few letter mappings
        sample_mappings = ", ".join(
            f"{c}→{mapping.image(c)}" for c in (present or list(self.ALPHABET))[:5]
        )

        return (
            f"Simple substitution cipher with key: {mapping.key}. "
            f"The alphabet is mapped as: {sample_mappings}, etc. "
            f"This was solved using {self.method.value.replace('_', ' ')} "
            f"with n-gram and word scoring."
        )
