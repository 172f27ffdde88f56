"""
Text normalization and input validation shared by every engine.

Scoring always works on uppercase A-Z only; decryption works on the raw
text so casing and punctuation survive.
"""

import re
import string

ALPHABET = string.ascii_uppercase

# Minimum share of alphabetic characters for a text to be analysed
MIN_ALPHABETIC_RATIO = 0.5

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """
    Strip everything but ASCII letters and uppercase the rest.

    Filtering happens before uppercasing, so letters such as "ß" or the
    dotless "ı" never turn into ASCII letters. Decryption skips them too,
    keeping key positions aligned.
    """
    return "".join(c for c in text if c in string.ascii_letters).upper()


def alphabetic_ratio(text: str) -> float:
    """Share of characters in ``text`` that are ASCII letters."""
    if not text:
        return 0.0
    letters = sum(1 for c in text if c in string.ascii_letters)
    return letters / len(text)


def is_valid_input(text: str) -> bool:
    """
    Check whether a text is worth analysing.

    Rejects empty text and text where fewer than half of the characters
    are letters.
    """
    if not text:
        return False
    return alphabetic_ratio(text) >= MIN_ALPHABETIC_RATIO


def split_words(text: str) -> list[str]:
    """Split on whitespace and normalize each token, dropping empty ones."""
    words = []
    for token in _WHITESPACE.split(text):
        word = normalize_text(token)
        if word:
            words.append(word)
    return words
