"""
Letter permutations for monoalphabetic substitution.

A mapping is held as a fixed array of 26 plaintext indices, one slot per
ciphertext letter. The only mutation is ``swap``, which exchanges two images
and therefore keeps the array a permutation.
"""

import string
from collections.abc import Mapping, Sequence

from cryptobreaker.services.preprocessing.normalizer import ALPHABET

_INDEX = {letter: i for i, letter in enumerate(ALPHABET)}
_ASCII_LETTERS = frozenset(string.ascii_letters)


class SubstitutionMapping:
    """Bijection from the 26 ciphertext letters to the 26 plaintext letters."""

    __slots__ = ("_images",)

    def __init__(self, images: Sequence[int] | None = None):
        if images is None:
            images = range(26)
        images = list(images)
        if sorted(images) != list(range(26)):
            raise ValueError("Mapping images must be a permutation of 0..25")
        self._images = images

    @classmethod
    def from_key(cls, key: str) -> "SubstitutionMapping":
        """
        Build a mapping from a 26-letter plaintext alphabet.

        ``key[i]`` is the plaintext letter for ciphertext letter ``ALPHABET[i]``.

        Raises:
            ValueError: If the key is not a permutation of A-Z
        """
        if not key.isascii() or len(key) != 26 or set(key.upper()) != set(ALPHABET):
            raise ValueError("Key must contain each letter A-Z exactly once")
        return cls(_INDEX[c] for c in key.upper())

    @property
    def key(self) -> str:
        """Plaintext alphabet in ciphertext-letter order."""
        return "".join(ALPHABET[i] for i in self._images)

    def image(self, cipher_letter: str) -> str:
        return ALPHABET[self._images[_INDEX[cipher_letter.upper()]]]

    def preimage(self, plain_letter: str) -> str:
        return ALPHABET[self._images.index(_INDEX[plain_letter.upper()])]

    def swap(self, a: str | int, b: str | int) -> None:
        """Exchange the images of two ciphertext letters."""
        i = a if isinstance(a, int) else _INDEX[a.upper()]
        j = b if isinstance(b, int) else _INDEX[b.upper()]
        self._images[i], self._images[j] = self._images[j], self._images[i]

    def copy(self) -> "SubstitutionMapping":
        return SubstitutionMapping(self._images)

    def inverse(self) -> "SubstitutionMapping":
        """Mapping from plaintext letters back to ciphertext letters."""
        inverse = [0] * 26
        for cipher_index, plain_index in enumerate(self._images):
            inverse[plain_index] = cipher_index
        return SubstitutionMapping(inverse)

    def apply(self, text: str) -> str:
        """Substitute every ASCII letter, preserving case and everything else."""
        result = []
        for char in text:
            if char in _ASCII_LETTERS:
                mapped = ALPHABET[self._images[_INDEX[char.upper()]]]
                result.append(mapped if char.isupper() else mapped.lower())
            else:
                result.append(char)
        return "".join(result)

    def as_dict(self) -> dict[str, str]:
        return {ALPHABET[c]: ALPHABET[p] for c, p in enumerate(self._images)}

    def is_bijection(self) -> bool:
        return sorted(self._images) == list(range(26))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubstitutionMapping):
            return NotImplemented
        return self._images == other._images

    def __hash__(self) -> int:
        return hash(tuple(self._images))

    def __repr__(self) -> str:
        return f"SubstitutionMapping({self.key!r})"


def complete_mapping(partial: Mapping[str, str]) -> SubstitutionMapping:
    """
    Repair a partial or conflicting letter assignment into a bijection.

    Cipher letters are visited alphabetically; the first one claiming a
    plaintext letter keeps it and later claimants are treated as unmapped.
    Unmapped cipher letters then receive the unused plaintext letters in
    alphabetical order.
    """
    images: list[int | None] = [None] * 26
    used: set[int] = set()

    for letter in ALPHABET:
        target = partial.get(letter)
        if target is None:
            continue
        if target not in _ASCII_LETTERS:
            continue
        plain_index = _INDEX[target.upper()]
        if plain_index in used:
            continue
        images[_INDEX[letter]] = plain_index
        used.add(plain_index)

    free = iter(i for i in range(26) if i not in used)
    return SubstitutionMapping(
        image if image is not None else next(free) for image in images
    )
