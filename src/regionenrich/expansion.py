"""
Region expansion for gene intervals.

Both policies mutate the intervals in place and expect them sorted by
``(chrom, start)``. Callers that still need the unexpanded coordinates must
clone the collection before expanding it.
"""

import logging
from typing import List

from regionenrich.config import EnrichmentSettings
from regionenrich.errors import InvariantError
from regionenrich.intervals import GenomicInterval

logger = logging.getLogger(__name__)


def expand_by_distance(intervals: List[GenomicInterval], distance: int) -> None:
    """
    Grow every interval by ``distance`` on both sides.

    Starts are clamped at 0. Neighbours are ignored, so expanded spans of
    adjacent genes may overlap.

    Args:
        intervals: Intervals to expand in place
        distance: Bases added to each side
    """
    for interval in intervals:
        interval.start = max(0, interval.start - distance)
        interval.end += distance


def expand_to_neighbor(intervals: List[GenomicInterval], distance: int) -> None:
    """
    Grow every interval by up to ``distance`` without crossing its neighbours.

    A single forward pass keeps ``prev``, the last interval on the current
    chromosome whose trailing edge is still open. When the gap between
    ``prev`` and the current interval is smaller than ``2 * distance`` both
    edges meet at the midpoint of the gap. An interval nested inside ``prev``
    does not take its place. The trailing edge of the last interval on each
    chromosome always receives the full expansion.

    Args:
        intervals: Sorted intervals to expand in place
        distance: Maximum bases added to each side

    Raises:
        InvariantError: If the pass reaches a state none of its rules cover
    """
    prev = None
    last = len(intervals) - 1

    for position, curr in enumerate(intervals):
        if prev is not None and prev.chrom != curr.chrom:
            prev.end += distance
            prev = None

        if prev is None:
            curr.start = max(0, curr.start - distance)
            prev = curr
        elif curr.start - prev.end >= 2 * distance:
            prev.end += distance
            curr.start = max(0, curr.start - distance)
            prev = curr
        elif curr.start - prev.end >= 0:
            middle = (curr.start + prev.end) // 2
            prev.end = middle
            curr.start = middle
            prev = curr
        elif curr.end - prev.end >= 0:
            prev = curr
        elif curr.end < prev.end:
            pass
        else:
            raise InvariantError(
                f"neighbor expansion reached an unhandled state at "
                f"{curr.chrom}:{curr.start}-{curr.end} after {prev.chrom}:{prev.start}-{prev.end}"
            )

        if position == last:
            curr.end += distance


class Expander:
    """Applies the expansion policy selected in the analysis settings."""

    def __init__(self, settings: EnrichmentSettings):
        self.distance = settings.max_expansion
        self.neighbor_bounded = settings.neighbor_bounded

    @property
    def enabled(self) -> bool:
        return self.distance != 0

    def expand(self, genes: List[GenomicInterval]) -> List[GenomicInterval]:
        """Expand ``genes`` in place and return them."""
        if not self.enabled:
            logger.debug("Expansion disabled, gene intervals left unchanged")
            return genes

        if self.neighbor_bounded:
            logger.info(f"Expanding {len(genes)} genes up to {self.distance} bases, bounded by neighbours")
            expand_to_neighbor(genes, self.distance)
        else:
            logger.info(f"Expanding {len(genes)} genes by {self.distance} bases")
            expand_by_distance(genes, self.distance)
        return genes
