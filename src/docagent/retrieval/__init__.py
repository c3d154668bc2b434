"""Retrieval components."""

from .normalizer import FIELD_RULES, FieldRule, normalize_hit, normalize_hits
from .service import Retriever, VectorizeRetriever

__all__ = ["FIELD_RULES", "FieldRule", "Retriever", "VectorizeRetriever", "normalize_hit", "normalize_hits"]
