from typing import Any


class CryptanalysisError(Exception):
    """Base exception for all cryptanalysis errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(CryptanalysisError):
    """Raised when input validation fails."""

    pass


class CiphertextTooLongError(ValidationError):
    """Raised when ciphertext exceeds maximum length."""

    def __init__(self, length: int, max_length: int):
        super().__init__(
            f"Ciphertext length {length} exceeds maximum {max_length}",
            {"length": length, "max_length": max_length},
        )


class InvalidKeyError(ValidationError):
    """Raised when an explicit key is not valid for the cipher."""

    def __init__(self, cipher_type: str, key: Any, reason: str):
        super().__init__(
            f"Invalid {cipher_type} key {key!r}: {reason}",
            {"cipher_type": cipher_type, "key": str(key), "reason": reason},
        )


class UnknownLanguageError(ValidationError):
    """Raised when a language is looked up strictly and is not registered."""

    def __init__(self, language: str):
        super().__init__(
            f"Language '{language}' has no registered frequency table",
            {"language": language},
        )


class EngineError(CryptanalysisError):
    """Base exception for cipher engine errors."""

    pass


class EngineNotFoundError(EngineError):
    """Raised when requested cipher engine is not found."""

    def __init__(self, engine_name: str):
        super().__init__(
            f"Cipher engine '{engine_name}' not found",
            {"engine_name": engine_name},
        )
