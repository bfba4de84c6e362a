"""Classifier components: content classification, similarity and scoring."""
from learntrack.classifiers.confidence_scorer import (
    clamp_score,
    round_half_up,
    score_entry,
)
from learntrack.classifiers.content_classifier import (
    EXCLUDED_RESULT,
    ClassificationResult,
    ContentClassifier,
    ContentClassifierProtocol,
    ContentRules,
    FakeContentClassifier,
    build_summary,
)
from learntrack.classifiers.similarity import best_similarity, string_similarity

__all__ = [
    "EXCLUDED_RESULT",
    "ClassificationResult",
    "ContentClassifier",
    "ContentClassifierProtocol",
    "ContentRules",
    "FakeContentClassifier",
    "best_similarity",
    "build_summary",
    "clamp_score",
    "round_half_up",
    "score_entry",
    "string_similarity",
]
