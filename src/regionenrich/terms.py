"""GO term index over gene interval collections."""

from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from regionenrich.intervals import GenomicInterval

# Term filter value that every interval matches
ANY_TERM = None


def extract_unique_terms(genes: Iterable[GenomicInterval]) -> List[str]:
    """
    Collect the distinct GO terms carried by a gene collection.

    Args:
        genes: Gene intervals

    Returns:
        Sorted list of unique terms, independent of the intervals it came from
    """
    unique = set()
    for gene in genes:
        unique.update(gene.terms)
    return sorted(unique)


def has_term(interval: GenomicInterval, term: Optional[str]) -> bool:
    if term is ANY_TERM:
        return True
    return term in interval.terms


def count_term_appearances(genes: Iterable[GenomicInterval], term: str) -> int:
    """
    Count the genes annotated with ``term``.

    Reference helper for callers; the statistics engine reads the cached
    ``IntervalColumns.term_size`` instead.
    """
    return sum(1 for gene in genes if has_term(gene, term))


def index_term_rows(intervals: Sequence[GenomicInterval]) -> Dict[str, np.ndarray]:
    """
    Map every term to the row positions of the intervals that carry it.

    Args:
        intervals: Interval collection in its working order

    Returns:
        Dictionary of term to ascending int64 row array
    """
    rows: Dict[str, List[int]] = {}
    for position, interval in enumerate(intervals):
        for term in interval.terms:
            rows.setdefault(term, []).append(position)
    return {term: np.array(positions, dtype=np.int64) for term, positions in rows.items()}
