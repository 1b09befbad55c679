"""
Loading of interval and lookup files for the region enrichment pipeline.
"""

import logging
from pathlib import Path
from typing import Dict, List, Union

import polars as pl

from regionenrich.errors import IntervalParseError
from regionenrich.intervals import MAX_FIELDS, MIN_FIELDS, GenomicInterval, interval_from_row

logger = logging.getLogger(__name__)

# Lines are read whole and split on tabs afterwards, so this byte must not be a tab.
_LINE_SEPARATOR = '\x1f'


def _read_tab_rows(file_path: Union[str, Path]) -> pl.DataFrame:
    """
    Read a headerless tab-delimited file into ``row_number`` and ``fields`` columns.

    Each line is split on tabs on its own, so rows keep their own field count
    and empty fields stay empty strings. Comment lines and blank lines are dropped;
    ``row_number`` counts the remaining lines from 1 in file order.
    """
    if not Path(file_path).is_file():
        error_msg = f"Input file not found: {file_path}"
        logger.error(error_msg)
        raise FileNotFoundError(error_msg)

    try:
        lines = pl.read_csv(
            file_path,
            separator=_LINE_SEPARATOR,
            has_header=False,
            new_columns=['line'],
            infer_schema=False,
            quote_char=None,
            comment_prefix='#',
        )
    except pl.exceptions.NoDataError:
        lines = pl.DataFrame(schema={'line': pl.String})
    except pl.exceptions.ComputeError as e:
        raise IntervalParseError(f"file {file_path} is not a valid tab-delimited file: {e}") from e

    return (
        lines.filter(pl.col('line').is_not_null() & (pl.col('line').str.strip_chars() != ''))
        .with_row_index('row_number', offset=1)
        .select('row_number', pl.col('line').str.split('\t').alias('fields'))
    )


def load_intervals(file_path: Union[str, Path]) -> List[GenomicInterval]:
    """
    Load a tab-delimited interval file.

    Every row needs the same number of fields, between 3 and 6:
    chrom, start, end, [name], [comma separated GO terms], [strand].
    The field count is taken from the first row; blank lines are skipped.

    Args:
        file_path: Path to the interval file

    Returns:
        Intervals in file order

    Raises:
        IntervalParseError: On a bad column count or malformed coordinates
    """
    rows = _read_tab_rows(file_path)
    if rows.height == 0:
        logger.warning(f"No intervals found in {file_path}")
        return []

    width = len(rows['fields'][0])
    if width < MIN_FIELDS or width > MAX_FIELDS:
        raise IntervalParseError(
            f"file {file_path} has {width} fields when it needs between {MIN_FIELDS} and {MAX_FIELDS}"
        )

    intervals = []
    for row_number, row in rows.iter_rows():
        if len(row) != width:
            raise IntervalParseError(
                f"{file_path} row {row_number}: row has {len(row)} fields when the file has {width}"
            )
        try:
            intervals.append(interval_from_row(row))
        except IntervalParseError as e:
            raise IntervalParseError(f"{file_path} row {row_number}: {e}") from e

    logger.info(f"Loaded {len(intervals)} intervals from {file_path}")
    return intervals


def load_term_descriptions(file_path: Union[str, Path]) -> Dict[str, str]:
    """
    Load a GO term to description table.

    Args:
        file_path: Two column tab-delimited file (term, description)

    Returns:
        Dictionary of term to description; the first row wins for repeated terms
    """
    rows = _read_tab_rows(file_path)
    if rows.height == 0:
        return {}
    if len(rows['fields'][0]) < 2:
        raise IntervalParseError(f"file {file_path} needs two tab-separated columns")

    descriptions: Dict[str, str] = {}
    for row_number, row in rows.iter_rows():
        if not row[0]:
            raise IntervalParseError(f"{file_path} row {row_number}: row has an empty term field")
        descriptions.setdefault(row[0], row[1] if len(row) > 1 else '')

    logger.info(f"Loaded {len(descriptions)} term descriptions from {file_path}")
    return descriptions
