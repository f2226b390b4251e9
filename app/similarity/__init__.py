"""
Similarity calculation utilities.

Provides vector similarity computation and score interpretation.
"""

from app.similarity.score_calculator import (
    SimilarityLevel,
    SimilarityScoreCalculator,
    cosine_similarity,
    interpret_cosine_score,
)

__all__ = [
    "SimilarityScoreCalculator",
    "SimilarityLevel",
    "cosine_similarity",
    "interpret_cosine_score",
]
