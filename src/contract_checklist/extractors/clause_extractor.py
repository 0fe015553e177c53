"""Clause extraction through the reasoning service.

The service segments the agreement into clauses; offsets are recovered
locally from a short prefix of each clause because the service may
paraphrase. Any reasoning failure collapses to a single clause covering
the whole text, so the pipeline always has something to evaluate.
"""

import logging
from typing import List, Optional

from ..evidence.locator import Span, locate
from ..interfaces.extractor import IClauseExtractor
from ..models.agreement import Clause
from ..reasoning.client import PromptSpec, ReasoningClient, ResponseMode
from ..reasoning.exceptions import EmptyResult, ReasoningError
from ..reasoning.schemas import ClauseSegmentation, ExtractedClausePayload


logger = logging.getLogger(__name__)


EXTRACTION_INSTRUCTIONS = """You are a legal document parser. Extract all distinct clauses from the following agreement text.
Return a JSON array of clauses, where each clause has:
- clause_number (optional): section number or identifier like "3.2" or "Section A"
- title (optional): clause heading or title
- content: the full text of the clause, copied exactly as it appears

Be thorough and extract all meaningful clauses in document order."""


class ClauseExtractor(IClauseExtractor):
    """
    Segments agreement text into clauses.

    Stateless per call: whether to re-extract an agreement that already
    has clauses is the orchestrator's decision.
    """

    def __init__(
        self,
        client: ReasoningClient,
        prefix_length: int = 100,
        temperature: Optional[float] = None,
    ):
        """
        Initialize the extractor.

        Args:
            client: Reasoning client used for segmentation.
            prefix_length: Number of leading characters used to anchor clauses.
            temperature: Sampling temperature (defaults to the client's
                extraction temperature).
        """
        self._client = client
        self._prefix_length = prefix_length
        self._temperature = (
            temperature if temperature is not None
            else client.settings.extraction_temperature
        )
        self.last_error: Optional[ReasoningError] = None

    def extract(self, agreement_text: str) -> List[Clause]:
        """
        Segment agreement text into an ordered, non-empty list of clauses.

        Args:
            agreement_text: The full agreement text.

        Returns:
            Extracted clauses, or a single whole-document clause if the
            reasoning call failed.
        """
        self.last_error = None
        spec = PromptSpec(
            task="clause_extraction",
            instructions=EXTRACTION_INSTRUCTIONS,
            inputs={"Agreement text": agreement_text},
            response_model=ClauseSegmentation,
            mode=ResponseMode.FREE_TEXT,
            temperature=self._temperature,
            required_items="clauses",
        )

        try:
            segmentation = self._client.invoke(spec)
        except ReasoningError as e:
            logger.warning(f"Clause extraction failed, using whole document: {e}")
            self.last_error = e
            return [self.whole_document_clause(agreement_text)]

        clauses = self._build_clauses(agreement_text, segmentation.clauses)
        if not clauses:
            self.last_error = EmptyResult("Every extracted clause was blank", task=spec.task)
            logger.warning(f"Clause extraction failed, using whole document: {self.last_error}")
            return [self.whole_document_clause(agreement_text)]

        logger.info(f"Extracted {len(clauses)} clauses")
        return clauses

    @staticmethod
    def whole_document_clause(agreement_text: str) -> Clause:
        """The fallback clause spanning the entire text."""
        return Clause(
            content=agreement_text,
            start_offset=0,
            end_offset=len(agreement_text),
            position=0,
        )

    def _build_clauses(
        self,
        agreement_text: str,
        payloads: List[ExtractedClausePayload],
    ) -> List[Clause]:
        clauses: List[Clause] = []
        for payload in payloads:
            if not payload.content.strip():
                continue
            span = self._anchor(agreement_text, payload.content)
            clauses.append(Clause(
                content=payload.content,
                clause_number=payload.clause_number or None,
                title=payload.title or None,
                start_offset=span.start if span else None,
                end_offset=span.end if span else None,
                position=len(clauses),
            ))
        return clauses

    def _anchor(self, agreement_text: str, content: str) -> Optional[Span]:
        """
        Best-effort offsets for a clause.

        Offsets are only returned when the source slice equals the clause
        content exactly.
        """
        prefix = content[:self._prefix_length]
        span = locate(agreement_text, prefix)
        if span is not None:
            end = span.start + len(content)
            if agreement_text[span.start:end] == content:
                return Span(span.start, end)
        return locate(agreement_text, content)
