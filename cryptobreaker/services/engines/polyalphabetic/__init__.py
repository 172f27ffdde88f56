"""Polyalphabetic cipher engines."""

from cryptobreaker.services.engines.polyalphabetic.vigenere import VigenereEngine

__all__ = [
    "VigenereEngine",
]
