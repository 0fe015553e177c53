"""Clause extractor interface for the contract checklist system."""

from abc import ABC, abstractmethod
from typing import List

from ..models.agreement import Clause


class IClauseExtractor(ABC):
    """
    Abstract interface for clause segmentation.

    Implementations split an agreement's text into an ordered, non-empty
    sequence of clauses and never raise on reasoning failures.
    """

    @abstractmethod
    def extract(self, agreement_text: str) -> List[Clause]:
        """
        Segment agreement text into clauses.

        Args:
            agreement_text: The full agreement text.

        Returns:
            Ordered, non-empty list of clauses.
        """
        pass
