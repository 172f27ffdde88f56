"""
Local search over substitution mappings.

Both searches move by swapping the images of two random ciphertext letters.
The random source is passed in, so a seeded ``random.Random`` makes a run
reproducible.
"""

import math
import random
from collections.abc import Callable
from dataclasses import dataclass, field

from cryptobreaker.services.optimization.mapping import SubstitutionMapping

FitnessFn = Callable[[SubstitutionMapping], float]


@dataclass
class SearchResult:
    """Best mapping found by a search, with its accepted-move history."""

    mapping: SubstitutionMapping
    score: float
    # (iteration, score) after each accepted move
    history: list[tuple[int, float]] = field(default_factory=list)


def _random_pair(rng: random.Random) -> tuple[int, int]:
    a, b = rng.sample(range(26), 2)
    return a, b


def hill_climb(
    start: SubstitutionMapping,
    fitness: FitnessFn,
    iterations: int,
    rng: random.Random,
) -> SearchResult:
    """
    Accept a random swap only when it strictly improves the score.

    Args:
        start: Initial mapping (not modified)
        fitness: Score of a mapping, higher is better
        iterations: Number of neighbours to try
        rng: Random source for choosing swaps

    Returns:
        SearchResult holding the final mapping, which is also the best seen
    """
    current = start.copy()
    current_score = fitness(current)
    history: list[tuple[int, float]] = []

    for iteration in range(iterations):
        a, b = _random_pair(rng)
        current.swap(a, b)
        score = fitness(current)

        if score > current_score:
            current_score = score
            history.append((iteration, score))
        else:
            current.swap(a, b)

    return SearchResult(mapping=current, score=current_score, history=history)


def simulated_annealing(
    start: SubstitutionMapping,
    fitness: FitnessFn,
    iterations: int,
    rng: random.Random,
    initial_temperature: float = 100.0,
    final_temperature: float = 0.001,
) -> SearchResult:
    """
    Annealing search that returns the best mapping ever visited.

    Worse neighbours are accepted with probability exp(delta / T). The
    temperature decays geometrically from ``initial_temperature`` so that it
    reaches ``final_temperature`` after ``iterations`` steps, and never drops
    below it.
    """
    current = start.copy()
    current_score = fitness(current)
    best = current.copy()
    best_score = current_score
    history: list[tuple[int, float]] = []

    if iterations <= 0:
        return SearchResult(mapping=best, score=best_score, history=history)

    cooling = (final_temperature / initial_temperature) ** (1.0 / iterations)
    temperature = initial_temperature

    for iteration in range(iterations):
        a, b = _random_pair(rng)
        current.swap(a, b)
        score = fitness(current)
        delta = score - current_score

        if delta > 0 or rng.random() < math.exp(delta / temperature):
            current_score = score
            history.append((iteration, score))
            if score > best_score:
                best = current.copy()
                best_score = score
        else:
            current.swap(a, b)

        temperature = max(temperature * cooling, final_temperature)

    return SearchResult(mapping=best, score=best_score, history=history)
