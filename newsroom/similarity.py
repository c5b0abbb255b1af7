"""Letter-frequency embeddings and cosine similarity.

This is a placeholder, not a semantic embedding: a topic becomes a
26-dimensional vector counting the letters ``a``–``z`` it contains. Two
topics written with the same letters score 1.0 whatever they mean.
Replacing it with a real embedding model changes every similarity score, so
callers and tests are pinned to this behaviour.
"""

from __future__ import annotations

import math
import re

#: Length of every embedding vector.
DIMENSIONS = 26

_WHITESPACE_RE = re.compile(r"\s+")


def topic_key(topic: str) -> str:
    """Normalise a topic for use inside a store key.

    Examples:
        >>> topic_key("  Quantum  Computing ")
        'quantum_computing'
    """
    return _WHITESPACE_RE.sub("_", topic.strip().lower())


def embed(text: str) -> list[int]:
    """Return the letter-count vector of *text*.

    Examples:
        >>> embed("Ab a!")[:3]
        [2, 1, 0]
    """
    vector = [0] * DIMENSIONS
    for char in text.lower():
        index = ord(char) - ord("a")
        if 0 <= index < DIMENSIONS:
            vector[index] += 1
    return vector


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    Returns ``0.0`` when either vector is all zeros.
    """
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)
