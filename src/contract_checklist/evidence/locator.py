"""Exact anchoring of quoted evidence inside source text.

The reasoning service quotes text and claims character offsets for it;
those offsets are frequently wrong. The helpers here re-anchor a quote by
exact substring search and never guess: a quote that does not occur
verbatim is reported as not found.
"""

import logging
from typing import NamedTuple, Optional

from ..models.assessment import Evidence


logger = logging.getLogger(__name__)


class Span(NamedTuple):
    """Half-open character range ``[start, end)``."""
    start: int
    end: int


def locate(
    source_text: str,
    claimed_snippet: str,
    hinted_start: Optional[int] = None,
) -> Optional[Span]:
    """
    Find the exact offsets of a snippet in the source text.

    Args:
        source_text: Text to search in.
        claimed_snippet: Quoted text to look for. Must be non-empty.
        hinted_start: Optional offset claimed for the snippet. When the
            snippet occurs exactly there, that occurrence is returned.

    Returns:
        The span of the lowest-index occurrence, or None if the snippet
        does not occur verbatim.

    Raises:
        ValueError: If the snippet is empty.
    """
    if not claimed_snippet:
        raise ValueError("claimed_snippet must be non-empty")

    length = len(claimed_snippet)
    if (
        hinted_start is not None
        and 0 <= hinted_start <= len(source_text) - length
        and source_text[hinted_start:hinted_start + length] == claimed_snippet
    ):
        return Span(hinted_start, hinted_start + length)

    index = source_text.find(claimed_snippet)
    if index < 0:
        return None
    return Span(index, index + length)


def repair_evidence(source_text: str, evidence: Evidence) -> Evidence:
    """
    Re-anchor one evidence item against the text it quotes.

    Unlocatable quotes keep the offsets the service claimed.
    """
    if not evidence.text:
        return evidence

    span = locate(source_text, evidence.text, evidence.start_offset)
    if span is None:
        logger.debug(
            "EvidenceNotLocatable: keeping claimed offsets %s-%s for %.40r",
            evidence.start_offset, evidence.end_offset, evidence.text,
        )
        return evidence

    return Evidence(
        text=evidence.text,
        start_offset=span.start,
        end_offset=span.end,
        context=evidence.context,
    )
