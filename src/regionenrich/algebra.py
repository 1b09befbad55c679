"""
Sweep-line algebra over sorted interval collections.

All collections must be sorted by ``(chrom, start)`` with chromosomes in
lexicographic order. Each sweep walks the inputs once with forward-only
cursors; when two heads do not overlap, the one ending first by
``(chrom, end)`` is advanced, so no interval is ever revisited.

The inner loops run as numba kernels over columnar arrays. Chromosome names
are replaced by their rank in the sorted union of all chromosomes taking part
in a call, which keeps the lexicographic order intact.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numba as nb
import numpy as np

from regionenrich.intervals import GenomicInterval
from regionenrich.terms import ANY_TERM, index_term_rows


#  Core numba-optimised kernels

@nb.njit
def _overlap(chrom_a, start_a, end_a, chrom_b, start_b, end_b):
    """True if two intervals share at least one base."""
    return chrom_a == chrom_b and min(end_a, end_b) - max(start_a, start_b) > 0


@nb.njit
def _compare_end(chrom_a, end_a, chrom_b, end_b):
    """Three-way comparison on (chrom rank, end)."""
    if chrom_a != chrom_b:
        return -1 if chrom_a < chrom_b else 1
    if end_a < end_b:
        return -1
    if end_a > end_b:
        return 1
    return 0


@nb.njit
def _count_overlaps_kernel(chrom_a, start_a, end_a, mask_a,
                           chrom_b, start_b, end_b, mask_b,
                           hits_a, hits_b):
    """
    Count elements of A that overlap a matching element of B.

    Each A element is counted at most once. Row positions of every counted
    pair are written to hits_a/hits_b, which must hold at least len(A) slots.
    """
    n_a = len(chrom_a)
    n_b = len(chrom_b)
    i = 0
    j = 0
    count = 0
    while i < n_a and j < n_b:
        if not mask_a[i]:
            i += 1
        elif not mask_b[j]:
            j += 1
        elif _overlap(chrom_a[i], start_a[i], end_a[i], chrom_b[j], start_b[j], end_b[j]):
            hits_a[count] = i
            hits_b[count] = j
            count += 1
            i += 1
        elif _compare_end(chrom_a[i], end_a[i], chrom_b[j], end_b[j]) < 0:
            i += 1
        else:
            j += 1
    return count


@nb.njit
def _sum_overlap_bases_kernel(chrom_a, start_a, end_a, mask_a,
                              chrom_b, start_b, end_b):
    """
    Sum the bases of matching A elements covered by B.

    prev_end is the rightmost base already counted on A's current chromosome.
    """
    n_a = len(chrom_a)
    n_b = len(chrom_b)
    i = 0
    j = 0
    total = 0
    prev_chrom = -1
    prev_end = 0
    while i < n_a and j < n_b:
        if not mask_a[i]:
            i += 1
            continue
        if chrom_a[i] != prev_chrom:
            prev_chrom = chrom_a[i]
            prev_end = 0
        if _overlap(chrom_a[i], start_a[i], end_a[i], chrom_b[j], start_b[j], end_b[j]):
            overlap_start = max(start_a[i], start_b[j])
            overlap_end = min(end_a[i], end_b[j])
            if overlap_start >= prev_end:
                total += overlap_end - overlap_start
            elif overlap_end > prev_end:
                total += overlap_end - prev_end
            prev_end = max(prev_end, overlap_end)
        if _compare_end(chrom_a[i], end_a[i], chrom_b[j], end_b[j]) <= 0:
            i += 1
        else:
            j += 1
    return total


@nb.njit
def _count_three_way_kernel(chrom_a, start_a, end_a, mask_a,
                            chrom_b, start_b, end_b, mask_b,
                            chrom_c, start_c, end_c, mask_c):
    """Count A elements overlapping both a matching B and a matching C element."""
    n_a = len(chrom_a)
    n_b = len(chrom_b)
    n_c = len(chrom_c)
    i = 0
    j = 0
    k = 0
    count = 0
    while i < n_a and j < n_b and k < n_c:
        if not mask_a[i]:
            i += 1
        elif not mask_b[j]:
            j += 1
        elif not mask_c[k]:
            k += 1
        elif (_overlap(chrom_a[i], start_a[i], end_a[i], chrom_b[j], start_b[j], end_b[j])
              and _overlap(chrom_a[i], start_a[i], end_a[i], chrom_c[k], start_c[k], end_c[k])):
            count += 1
            i += 1
        elif (_compare_end(chrom_a[i], end_a[i], chrom_b[j], end_b[j]) < 0
              and _compare_end(chrom_a[i], end_a[i], chrom_c[k], end_c[k]) < 0):
            i += 1
        elif _compare_end(chrom_b[j], end_b[j], chrom_c[k], end_c[k]) < 0:
            j += 1
        else:
            k += 1
    return count


@nb.njit
def _total_bases_kernel(chroms, starts, ends):
    """Sum interval lengths, counting bases shared by several intervals once."""
    total = 0
    prev_chrom = -1
    prev_end = 0
    for i in range(len(chroms)):
        if chroms[i] != prev_chrom:
            prev_chrom = chroms[i]
            prev_end = 0
        if starts[i] > prev_end:
            total += ends[i] - starts[i]
        elif ends[i] > prev_end:
            total += ends[i] - prev_end
        prev_end = max(prev_end, ends[i])
    return total


@nb.njit
def _assign_kernel(chrom_a, start_a, end_a, chrom_b, start_b, end_b, assigned):
    """Record for each A element the first B element it overlaps, -1 for none."""
    n_a = len(chrom_a)
    n_b = len(chrom_b)
    for i in range(n_a):
        assigned[i] = -1
    i = 0
    j = 0
    while i < n_a and j < n_b:
        if _overlap(chrom_a[i], start_a[i], end_a[i], chrom_b[j], start_b[j], end_b[j]):
            assigned[i] = j
            i += 1
        elif _compare_end(chrom_a[i], end_a[i], chrom_b[j], end_b[j]) < 0:
            i += 1
        else:
            j += 1
    return assigned


#  Columnar encoding

def chromosome_ranks(*collections: Iterable[GenomicInterval]) -> Dict[str, int]:
    """Rank every chromosome name found in the collections lexicographically."""
    names = set()
    for collection in collections:
        names.update(interval.chrom for interval in collection)
    return {name: rank for rank, name in enumerate(sorted(names))}


class IntervalColumns:
    """Column arrays of a sorted interval collection, ready for the sweep kernels."""

    def __init__(self, intervals: Sequence[GenomicInterval], ranks: Dict[str, int]):
        self.intervals = intervals
        self.ranks = ranks
        self.chroms = np.array([ranks[iv.chrom] for iv in intervals], dtype=np.int64)
        self.starts = np.array([iv.start for iv in intervals], dtype=np.int64)
        self.ends = np.array([iv.end for iv in intervals], dtype=np.int64)
        self._term_rows = None

    def __len__(self) -> int:
        return len(self.intervals)

    def mask(self, term: Optional[str] = ANY_TERM) -> np.ndarray:
        """Boolean array of the rows matching ``term``."""
        if term is ANY_TERM:
            return np.ones(len(self), dtype=np.bool_)
        if self._term_rows is None:
            self._term_rows = index_term_rows(self.intervals)
        mask = np.zeros(len(self), dtype=np.bool_)
        rows = self._term_rows.get(term)
        if rows is not None:
            mask[rows] = True
        return mask

    def term_size(self, term: str) -> int:
        """Number of rows carrying ``term``."""
        if self._term_rows is None:
            self._term_rows = index_term_rows(self.intervals)
        rows = self._term_rows.get(term)
        return 0 if rows is None else len(rows)


IntervalsLike = Union[Sequence[GenomicInterval], IntervalColumns]


def encode(*collections: IntervalsLike) -> Tuple[IntervalColumns, ...]:
    """
    Encode several collections against one shared chromosome ranking.

    Collections that are already encoded against the same ranking are reused
    as they are, so callers running many sweeps can encode once up front.
    """
    if collections and all(isinstance(c, IntervalColumns) for c in collections):
        first = collections[0].ranks
        if all(c.ranks is first for c in collections):
            return tuple(collections)

    plain = [c.intervals if isinstance(c, IntervalColumns) else c for c in collections]
    ranks = chromosome_ranks(*plain)
    return tuple(IntervalColumns(intervals, ranks) for intervals in plain)


#  Public operations

def overlaps(a: GenomicInterval, b: GenomicInterval) -> bool:
    """True if ``a`` and ``b`` lie on the same chromosome and share a base."""
    return a.chrom == b.chrom and min(a.end, b.end) - max(a.start, b.start) > 0


def overlapping_pairs(
    list_a: IntervalsLike,
    list_b: IntervalsLike,
    term_a: Optional[str] = ANY_TERM,
    term_b: Optional[str] = ANY_TERM
) -> List[Tuple[int, int]]:
    """
    Pairs of row positions found by the two-list overlap sweep.

    Every A row appears at most once, paired with the first matching B row
    the sweep found it overlapping.

    Args:
        list_a: Sorted intervals whose overlaps are counted
        list_b: Sorted intervals to overlap against
        term_a: Only A intervals carrying this term take part
        term_b: Only B intervals carrying this term take part

    Returns:
        List of (row in A, row in B) tuples in sweep order
    """
    cols_a, cols_b = encode(list_a, list_b)
    hits_a = np.empty(len(cols_a), dtype=np.int64)
    hits_b = np.empty(len(cols_a), dtype=np.int64)
    count = _count_overlaps_kernel(
        cols_a.chroms, cols_a.starts, cols_a.ends, cols_a.mask(term_a),
        cols_b.chroms, cols_b.starts, cols_b.ends, cols_b.mask(term_b),
        hits_a, hits_b
    )
    return list(zip(hits_a[:count].tolist(), hits_b[:count].tolist()))


def count_overlaps(
    list_a: IntervalsLike,
    list_b: IntervalsLike,
    term_a: Optional[str] = ANY_TERM,
    term_b: Optional[str] = ANY_TERM
) -> int:
    """
    Count the intervals of ``list_a`` overlapping at least one of ``list_b``.

    Args:
        list_a: Sorted intervals whose overlaps are counted
        list_b: Sorted intervals to overlap against
        term_a: Only A intervals carrying this term take part
        term_b: Only B intervals carrying this term take part

    Returns:
        Number of A intervals counted
    """
    return len(overlapping_pairs(list_a, list_b, term_a, term_b))


def sum_overlap_bases(list_a: IntervalsLike, list_b: IntervalsLike) -> int:
    """Number of bases in the intersection of two sorted collections."""
    cols_a, cols_b = encode(list_a, list_b)
    return int(_sum_overlap_bases_kernel(
        cols_a.chroms, cols_a.starts, cols_a.ends, cols_a.mask(),
        cols_b.chroms, cols_b.starts, cols_b.ends
    ))


def sum_overlap_bases_with_term(genes: IntervalsLike, term: str, regions: IntervalsLike) -> int:
    """
    Number of bases shared by the genes carrying ``term`` and ``regions``.

    Genes without the term are skipped and leave the double-count watermark
    untouched.
    """
    cols_genes, cols_regions = encode(genes, regions)
    return int(_sum_overlap_bases_kernel(
        cols_genes.chroms, cols_genes.starts, cols_genes.ends, cols_genes.mask(term),
        cols_regions.chroms, cols_regions.starts, cols_regions.ends
    ))


def count_three_way_overlap(
    list_a: IntervalsLike,
    term_a: Optional[str],
    list_b: IntervalsLike,
    term_b: Optional[str],
    list_c: IntervalsLike,
    term_c: Optional[str]
) -> int:
    """
    Count the intervals of ``list_a`` that overlap both ``list_b`` and ``list_c``.

    Args:
        list_a: Sorted intervals whose overlaps are counted
        term_a: Term filter for A, or ANY_TERM
        list_b: First sorted collection to overlap against
        term_b: Term filter for B, or ANY_TERM
        list_c: Second sorted collection to overlap against
        term_c: Term filter for C, or ANY_TERM

    Returns:
        Number of A intervals overlapping a qualifying B and C interval at once
    """
    cols_a, cols_b, cols_c = encode(list_a, list_b, list_c)
    return int(_count_three_way_kernel(
        cols_a.chroms, cols_a.starts, cols_a.ends, cols_a.mask(term_a),
        cols_b.chroms, cols_b.starts, cols_b.ends, cols_b.mask(term_b),
        cols_c.chroms, cols_c.starts, cols_c.ends, cols_c.mask(term_c)
    ))


def total_bases(intervals: IntervalsLike) -> int:
    """Total bases covered by a sorted collection, overlaps counted once."""
    (cols,) = encode(intervals)
    return int(_total_bases_kernel(cols.chroms, cols.starts, cols.ends))


def assign_elements(elements: IntervalsLike, genes: IntervalsLike) -> List[int]:
    """
    Assign each element to the first gene it overlaps in sweep order.

    Returns:
        Row in ``genes`` for every element, -1 where no gene overlaps
    """
    cols_elements, cols_genes = encode(elements, genes)
    assigned = np.empty(len(cols_elements), dtype=np.int64)
    _assign_kernel(
        cols_elements.chroms, cols_elements.starts, cols_elements.ends,
        cols_genes.chroms, cols_genes.starts, cols_genes.ends,
        assigned
    )
    return assigned.tolist()
