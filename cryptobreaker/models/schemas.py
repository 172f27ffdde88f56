from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums
# ============================================================================


class CipherFamily(str, Enum):
    """Supported cipher families."""

    MONOALPHABETIC = "monoalphabetic"
    POLYALPHABETIC = "polyalphabetic"
    UNKNOWN = "unknown"


class CipherType(str, Enum):
    """Cipher types with a breaking engine."""

    CAESAR = "caesar"
    SUBSTITUTION = "substitution"
    VIGENERE = "vigenere"


class DetectionLabel(str, Enum):
    """Labels the cipher classifier can assign."""

    PLAINTEXT = "plaintext"
    CAESAR = "caesar"
    SUBSTITUTION = "substitution"
    VIGENERE = "vigenere"
    UNKNOWN = "unknown"


class SubstitutionMethod(str, Enum):
    """Optimization strategies for the substitution engine."""

    FREQUENCY = "frequency"
    HILL_CLIMBING = "hill_climbing"
    SIMULATED_ANNEALING = "simulated_annealing"
    HYBRID = "hybrid"


# ============================================================================
# Statistics Schemas
# ============================================================================


class FrequencyData(BaseModel):
    """Character frequency data."""

    character: str
    count: int
    frequency: float = Field(ge=0.0, le=100.0)


class NGramFrequency(BaseModel):
    """An n-gram with its share of all n-grams in a text (percent)."""

    ngram: str
    count: int
    frequency: float = Field(ge=0.0, le=100.0)


class RepeatedSequence(BaseModel):
    """A substring occurring more than once in a text."""

    sequence: str
    positions: list[int]
    distances: list[int]
    count: int


class StatisticsProfile(BaseModel):
    """Complete statistical analysis profile."""

    model_config = ConfigDict(from_attributes=True)

    # Basic metrics
    length: int
    unique_chars: int

    # Frequency analysis
    character_frequencies: list[FrequencyData]
    bigram_frequencies: list[NGramFrequency]
    trigram_frequencies: list[NGramFrequency]

    # Statistical measures
    index_of_coincidence: float
    entropy: float
    chi_squared: float | None = None
    englishness: float = 0.0

    # Pattern detection
    repeated_sequences: list[RepeatedSequence] = []
    kasiski_distances: list[int] = []


# ============================================================================
# Engine Results
# ============================================================================


class KeyLengthCandidate(BaseModel):
    """A candidate Vigenere key length with its combined evidence."""

    model_config = ConfigDict(frozen=True)

    length: int = Field(ge=1)
    score: float
    kasiski_score: float = 0.0
    ic_score: float = 0.0


class AnalysisResult(BaseModel):
    """Outcome of one engine run. Never mutated after construction."""

    model_config = ConfigDict(frozen=True)

    plaintext: str
    formatted_plaintext: str = ""
    key: int | str | dict[str, str] | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=100.0)
    score: float = 0.0
    elapsed_ms: float = 0.0
    cipher_type: CipherType
    valid: bool = True
    explanation: str = ""

    @classmethod
    def empty(
        cls,
        cipher_type: CipherType,
        elapsed_ms: float = 0.0,
        valid: bool = True,
        explanation: str = "",
    ) -> "AnalysisResult":
        """Result for rejected input (valid=False) or an inconclusive run."""
        return cls(
            plaintext="",
            cipher_type=cipher_type,
            elapsed_ms=elapsed_ms,
            valid=valid,
            explanation=explanation,
        )


class DetectionResult(BaseModel):
    """Cipher-type classification with the evidence behind it."""

    model_config = ConfigDict(frozen=True)

    label: DetectionLabel
    confidence: float = Field(ge=0.0, le=1.0)
    scores: dict[str, float] = Field(default_factory=dict)
    rationale: str
    statistics: dict[str, float] = Field(default_factory=dict)


# ============================================================================
# Request Schemas
# ============================================================================


class AnalyzeRequest(BaseModel):
    """Request schema for /analyze endpoint."""

    ciphertext: str = Field(min_length=1, max_length=100_000)
    language: str = "english"


class BreakRequest(BaseModel):
    """Request schema for /break endpoint."""

    ciphertext: str = Field(min_length=1, max_length=100_000)
    cipher_type: CipherType
    language: str = "english"
    options: dict[str, Any] = Field(default_factory=dict)


class DecryptRequest(BaseModel):
    """Request schema for /decrypt endpoint."""

    ciphertext: str = Field(min_length=1, max_length=100_000)
    cipher_type: CipherType
    key: str | int


class EncryptRequest(BaseModel):
    """Request schema for /encrypt endpoint."""

    plaintext: str = Field(min_length=1, max_length=100_000)
    cipher_type: CipherType
    key: str | int | None = None


# ============================================================================
# Response Schemas
# ============================================================================


class AnalyzeResponse(BaseModel):
    """Response schema for /analyze endpoint."""

    model_config = ConfigDict(from_attributes=True)

    statistics: StatisticsProfile
    detection: DetectionResult
    detected_language: str
    language_confidence: float


class BreakResponse(BaseModel):
    """Response schema for /break endpoint."""

    result: AnalysisResult
    alternatives: list[str] = Field(default_factory=list)


class DecryptResponse(BaseModel):
    """Response schema for /decrypt endpoint."""

    plaintext: str
    key_used: str | int
    explanation: str


class EncryptResponse(BaseModel):
    """Response schema for /encrypt endpoint."""

    ciphertext: str
    cipher_type: CipherType
    key_used: str | int


class LanguagesResponse(BaseModel):
    """Registered reference languages."""

    languages: list[str]


# ============================================================================
# Error Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
