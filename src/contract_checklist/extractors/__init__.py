"""Clause extraction for the contract checklist system."""

from .clause_extractor import ClauseExtractor

__all__ = [
    "ClauseExtractor",
]
