from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CRYPTOBREAKER_",
        case_sensitive=False,
    )

    # Application
    app_name: str = "CryptoBreaker"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Analysis settings
    max_ciphertext_length: int = 100_000
    max_parallel_workers: int | None = None
    default_language: str = "english"

    # Caesar
    caesar_min_text_length: int = 10

    # Substitution
    substitution_min_text_length: int = 20
    substitution_method: Literal[
        "frequency", "hill_climbing", "simulated_annealing", "hybrid"
    ] = "hybrid"
    substitution_max_iterations: int = 1000
    annealing_initial_temperature: float = 100.0
    annealing_final_temperature: float = 0.001
    substitution_seed: int | None = None

    # Vigenere
    vigenere_min_text_length: int = 20
    vigenere_min_key_length: int = 2
    vigenere_max_key_length: int = 20
    vigenere_min_substring_length: int = 3
    vigenere_max_substring_length: int = 10
    kasiski_weight: float = 0.6
    ic_weight: float = 0.4

    # Classifier
    classifier_min_text_length: int = 50

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
