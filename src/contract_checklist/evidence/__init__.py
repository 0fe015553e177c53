"""Evidence anchoring for the contract checklist system."""

from .locator import Span, locate, repair_evidence

__all__ = [
    "Span",
    "locate",
    "repair_evidence",
]
