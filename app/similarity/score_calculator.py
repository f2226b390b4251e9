"""
Similarity score calculation and interpretation.

Sandi Metz Principles:
- Single Responsibility: Score calculation
- Small methods: Each calculation isolated
- Clear naming: Descriptive method names
"""

from enum import Enum
from typing import Sequence, Tuple

import numpy as np


class SimilarityLevel(str, Enum):
    """
    Cosine similarity bands.

    Attached to semantic cache log events so near misses and validator
    rejections can be read without the raw score.
    """

    EXACT = "exact"
    VERY_HIGH = "very_high"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    VERY_LOW = "very_low"


class SimilarityScoreCalculator:
    """Cosine similarity and band lookup for question embeddings."""

    # Lower bound of each band, highest first
    BANDS: Tuple[Tuple[float, SimilarityLevel], ...] = (
        (0.95, SimilarityLevel.EXACT),
        (0.85, SimilarityLevel.VERY_HIGH),
        (0.75, SimilarityLevel.HIGH),
        (0.60, SimilarityLevel.MODERATE),
        (0.40, SimilarityLevel.LOW),
    )

    @staticmethod
    def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
        """
        Calculate cosine similarity between vectors.

        Empty vectors, mismatched lengths and zero vectors score 0.0
        instead of raising.

        Args:
            vec1: First vector
            vec2: Second vector

        Returns:
            Cosine similarity score (-1.0 to 1.0)
        """
        if len(vec1) == 0 or len(vec2) == 0 or len(vec1) != len(vec2):
            return 0.0

        a = np.asarray(vec1, dtype=np.float64)
        b = np.asarray(vec2, dtype=np.float64)

        magnitude = float(np.linalg.norm(a) * np.linalg.norm(b))
        if magnitude == 0.0 or not np.isfinite(magnitude):
            return 0.0

        similarity = float(np.dot(a, b) / magnitude)
        # Rounding can push identical vectors slightly past 1.0
        return max(-1.0, min(1.0, similarity))

    @classmethod
    def interpret_score(cls, score: float) -> SimilarityLevel:
        """
        Get the band a similarity score falls in.

        Args:
            score: Cosine similarity

        Returns:
            Highest band whose lower bound the score reaches
        """
        for lower_bound, level in cls.BANDS:
            if score >= lower_bound:
                return level
        return SimilarityLevel.VERY_LOW


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Calculate cosine similarity between vectors."""
    return SimilarityScoreCalculator.cosine_similarity(vec1, vec2)


def interpret_cosine_score(score: float) -> SimilarityLevel:
    """Interpret cosine similarity score."""
    return SimilarityScoreCalculator.interpret_score(score)
