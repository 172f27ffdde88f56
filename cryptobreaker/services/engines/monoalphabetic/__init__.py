"""Monoalphabetic cipher engines."""

from cryptobreaker.services.engines.monoalphabetic.caesar import CaesarEngine
from cryptobreaker.services.engines.monoalphabetic.substitution import SubstitutionEngine

__all__ = [
    "CaesarEngine",
    "SubstitutionEngine",
]
