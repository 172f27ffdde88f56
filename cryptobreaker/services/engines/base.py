import logging
import time
from abc import ABC, abstractmethod
from typing import Any

from cryptobreaker.core.config import Settings, get_settings
from cryptobreaker.models.schemas import AnalysisResult, CipherFamily, CipherType
from cryptobreaker.services.analysis.statistics import FrequencyStatistics
from cryptobreaker.services.preprocessing.normalizer import is_valid_input


class CipherEngine(ABC):
    """
    Abstract base class for all cipher engines.

    Each cipher implementation must provide:
    - _analyze(): Recover plaintext and key from validated ciphertext
    - get_possible_solutions(): Alternative plaintexts, best first
    - score_plaintext(): Score a plaintext candidate
    - decrypt_with_key() / encrypt(): Work with a known key
    - explain(): Generate human-readable explanation

    Engines keep only configuration and the diagnostics of their last run,
    so each concurrent analysis should use its own instance.
    """

    # Cipher metadata
    name: str
    cipher_type: CipherType
    cipher_family: CipherFamily
    description: str

    def __init__(
        self,
        analyzer: FrequencyStatistics | None = None,
        language: str | None = None,
        verbose: bool = False,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.analyzer = analyzer or FrequencyStatistics()
        self.target_language = language or self.settings.default_language
        self.verbose = verbose
        self.last_result: AnalysisResult | None = None
        self._confidence = 0.0
        self._analysis_time_ms = 0.0
        self._logger = logging.getLogger(type(self).__module__)

    @property
    def confidence(self) -> float:
        """Confidence (0-100) of the last analysis."""
        return self._confidence

    @property
    def analysis_time_ms(self) -> float:
        """Wall-clock duration of the last analysis."""
        return self._analysis_time_ms

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = verbose

    def set_target_language(self, language: str) -> None:
        """Score against another registered language from now on."""
        self.target_language = language.lower()

    def validate_input(self, text: str) -> bool:
        return is_valid_input(text)

    def analyze(self, ciphertext: str) -> AnalysisResult:
        """
        Break the cipher and report plaintext, key and confidence.

        Invalid input (empty or mostly non-letters) produces an empty result
        with ``valid=False`` rather than an exception.

        Args:
            ciphertext: The ciphertext to analyze

        Returns:
            AnalysisResult for this run
        """
        start = time.perf_counter()

        if not self.validate_input(ciphertext):
            self._narrate("Rejected input: empty or insufficiently alphabetic")
            result = AnalysisResult.empty(
                self.cipher_type,
                valid=False,
                explanation="Input is empty or less than half alphabetic",
            )
        else:
            result = self._analyze(ciphertext)

        elapsed_ms = (time.perf_counter() - start) * 1000
        result = result.model_copy(update={"elapsed_ms": elapsed_ms})

        self._confidence = result.confidence
        self._analysis_time_ms = elapsed_ms
        self.last_result = result

        self._narrate(
            "%s analysis finished in %.2f ms (confidence %.1f%%)",
            self.name, elapsed_ms, result.confidence,
        )
        return result

    def break_cipher(self, ciphertext: str) -> str:
        """Best plaintext for the ciphertext, empty when nothing was found."""
        return self.analyze(ciphertext).plaintext

    @abstractmethod
    def _analyze(self, ciphertext: str) -> AnalysisResult:
        """
        Recover the plaintext of validated ciphertext.

        Timing, confidence bookkeeping and input validation are handled by
        analyze().
        """
        pass

    @abstractmethod
    def get_possible_solutions(self, ciphertext: str) -> list[str]:
        """
        Candidate plaintexts, best first.

        Args:
            ciphertext: The ciphertext to decrypt

        Returns:
            Deduplicated candidates; empty for invalid input
        """
        pass

    @abstractmethod
    def score_plaintext(self, plaintext: str) -> float:
        """
        Score a plaintext candidate.

        Args:
            plaintext: The candidate plaintext

        Returns:
            Score (higher is better)
        """
        pass

    @abstractmethod
    def decrypt_with_key(self, ciphertext: str, key: Any) -> str:
        """
        Decrypt with a known key.

        Raises:
            InvalidKeyError: If the key is not valid for this cipher
        """
        pass

    @abstractmethod
    def encrypt(self, plaintext: str, key: Any) -> str:
        """
        Encrypt plaintext with the given key.

        Raises:
            InvalidKeyError: If the key is not valid for this cipher
        """
        pass

    @abstractmethod
    def generate_random_key(self) -> Any:
        """Generate a random valid key for this cipher."""
        pass

    @abstractmethod
    def validate_key(self, key: Any) -> bool:
        pass

    @abstractmethod
    def explain(self, ciphertext: str, plaintext: str, key: Any) -> str:
        """
        Generate human-readable explanation of the decryption.

        Args:
            ciphertext: The original ciphertext
            plaintext: The decrypted plaintext
            key: The key used

        Returns:
            Explanation string
        """
        pass

    def _narrate(self, message: str, *args: Any) -> None:
        """Log progress at INFO in verbose mode, DEBUG otherwise."""
        level = logging.INFO if self.verbose else logging.DEBUG
        self._logger.log(level, message, *args)
