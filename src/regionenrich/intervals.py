"""
Interval record model for the region enrichment pipeline.

Interval collections are plain lists sorted by ``(chrom, start)``. Every sweep
in :mod:`regionenrich.algebra` and every transform in
:mod:`regionenrich.expansion` relies on that order and does not check it.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from regionenrich.errors import ConfigurationError, IntervalParseError, InvariantError

MIN_FIELDS = 3
MAX_FIELDS = 6


@dataclass
class GenomicInterval:
    """A half-open genomic span with optional name, GO terms and strand."""

    chrom: str
    start: int
    end: int
    name: Optional[str] = None
    terms: Tuple[str, ...] = field(default_factory=tuple)
    strand: Optional[str] = None

    @property
    def length(self) -> int:
        return self.end - self.start


def parse_coordinate(text: str) -> int:
    """
    Parse a decimal coordinate with an optional leading minus sign.

    Args:
        text: Raw field text

    Returns:
        Parsed integer

    Raises:
        IntervalParseError: If the field is empty or holds anything but digits
    """
    digits = text[1:] if text.startswith('-') else text
    if not digits or not all('0' <= ch <= '9' for ch in digits):
        raise IntervalParseError(f'invalid signed number: "{text}"')
    value = int(digits)
    return -value if text.startswith('-') else value


def parse_terms(text: Optional[str]) -> Tuple[str, ...]:
    """Split a comma separated GO term field, dropping blanks and repeats."""
    if not text:
        return tuple()
    terms = []
    for term in text.split(','):
        term = term.strip()
        if term and term not in terms:
            terms.append(term)
    return tuple(terms)


def interval_from_row(row: Sequence[Optional[str]]) -> GenomicInterval:
    """
    Build an interval from a row of 3 to 6 text fields.

    Fields are ``chrom, start, end, [name], [comma separated terms], [strand]``.

    Args:
        row: Sequence of field values

    Returns:
        New GenomicInterval

    Raises:
        IntervalParseError: On a bad field count or malformed coordinates
    """
    if len(row) < MIN_FIELDS or len(row) > MAX_FIELDS:
        raise IntervalParseError(
            f"row has {len(row)} fields when it needs between {MIN_FIELDS} and {MAX_FIELDS}"
        )
    if not row[0]:
        raise IntervalParseError("row has an empty chromosome field")

    interval = GenomicInterval(
        chrom=row[0],
        start=parse_coordinate(row[1] or ''),
        end=parse_coordinate(row[2] or ''),
    )
    if len(row) > 3:
        interval.name = row[3] or None
    if len(row) > 4:
        interval.terms = parse_terms(row[4])
    if len(row) > 5 and row[5]:
        interval.strand = row[5][0]
    return interval


def clone_interval(interval: GenomicInterval) -> GenomicInterval:
    return GenomicInterval(
        chrom=interval.chrom,
        start=interval.start,
        end=interval.end,
        name=interval.name,
        terms=tuple(interval.terms),
        strand=interval.strand,
    )


def clone_intervals(intervals: Iterable[GenomicInterval]) -> List[GenomicInterval]:
    """Clone every record of a collection, preserving order."""
    return [clone_interval(interval) for interval in intervals]


def _three_way(left, right) -> int:
    return (left > right) - (left < right)


def compare_start(a: GenomicInterval, b: GenomicInterval) -> int:
    """
    Three-way comparison on ``(chrom, start)``.

    Reference helper for callers; the sweep kernels in ``algebra`` apply the
    same ordering to encoded columns.
    """
    if a.chrom != b.chrom:
        return _three_way(a.chrom, b.chrom)
    return _three_way(a.start, b.start)


def compare_end(a: GenomicInterval, b: GenomicInterval) -> int:
    """
    Three-way comparison on ``(chrom, end)``.

    Reference helper for callers; ``algebra._compare_end`` is the compiled
    counterpart used by the sweeps.
    """
    if a.chrom != b.chrom:
        return _three_way(a.chrom, b.chrom)
    return _three_way(a.end, b.end)


def sort_key(interval: GenomicInterval) -> Tuple[str, int]:
    return (interval.chrom, interval.start)


def sort_intervals(intervals: List[GenomicInterval]) -> List[GenomicInterval]:
    """Sort a collection in place by ``(chrom, start)`` and return it."""
    intervals.sort(key=sort_key)
    return intervals


def guess_tx_start(intervals: Iterable[GenomicInterval]) -> None:
    """
    Collapse each interval to the single base at its transcription start.

    Plus strand records keep their first base, minus strand records their last.

    Raises:
        ConfigurationError: If a record carries no strand
    """
    for interval in intervals:
        if interval.strand == '+':
            interval.end = interval.start + 1
        elif interval.strand == '-':
            interval.start = interval.end - 1
        else:
            raise ConfigurationError(
                f"tried to guess the txStart when there is no strand "
                f"{interval.chrom} {interval.start} {interval.end}"
            )


def distance_between(a: GenomicInterval, b: GenomicInterval) -> int:
    """
    Distance in bases between two intervals on the same chromosome.

    Overlapping intervals are 0 apart; otherwise the distance is measured
    between the closest last/first bases.

    Raises:
        InvariantError: If the intervals lie on different chromosomes
    """
    if a.chrom != b.chrom:
        raise InvariantError(
            f"can not calculate distance between intervals on {a.chrom} and {b.chrom}"
        )
    if min(a.end, b.end) - max(a.start, b.start) > 0:
        return 0
    return min(abs(a.start - (b.end - 1)), abs((a.end - 1) - b.start))


def index_by_name(intervals: Iterable[GenomicInterval]) -> Dict[str, GenomicInterval]:
    """Map names to intervals; the first interval wins when a name repeats."""
    index: Dict[str, GenomicInterval] = {}
    for interval in intervals:
        if interval.name is not None:
            index.setdefault(interval.name, interval)
    return index
