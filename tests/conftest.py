"""Shared fixtures for the test suite."""

import pytest

ENGLISH_PASSAGE = (
    "It was a bright cold morning in early spring when the old harbour master "
    "walked down to the water to count the boats that had come in during the "
    "night. He had done this every day for more than thirty years, and he knew "
    "the name of every vessel and the face of every sailor who worked on them. "
    "The town depended on the sea for almost everything, and the people who "
    "lived there understood that the weather could change their fortunes in a "
    "single afternoon. When the wind came from the north the fishing was poor "
    "and the markets were quiet, but when it turned and blew warm from the "
    "south the boats returned heavy with their catch and the whole street "
    "smelled of salt and smoke. Children ran along the stone wall to watch the "
    "nets being hauled onto the quay, and their mothers called to them from the "
    "open windows of the houses above the harbour. There was a small church at "
    "the end of the road where the families gathered on Sunday to give thanks "
    "for those who came home safely and to remember those who did not. The "
    "harbour master always sat near the back, because he liked to leave early "
    "and return to his office before the first of the evening tides. He kept a "
    "careful record of every arrival and departure in a large leather book, and "
    "he believed that one day somebody would read it and understand what life "
    "had been like in that place."
)


@pytest.fixture
def english_passage():
    """Long English text with a natural letter distribution."""
    return ENGLISH_PASSAGE


@pytest.fixture
def short_passage():
    """A few English sentences, long enough for every engine."""
    return (
        "CRYPTOGRAPHY IS THE STUDY OF SECURE COMMUNICATION IN THE PRESENCE "
        "OF ADVERSARIES. LONG BEFORE COMPUTERS EXISTED PEOPLE INVENTED CIPHERS "
        "TO HIDE MEANING FROM UNAUTHORIZED READERS. SOME METHODS RELIED ON SIMPLE "
        "SUBSTITUTION WHILE OTHERS USED TRANSPOSITION OR PERIODIC KEYS."
    )
