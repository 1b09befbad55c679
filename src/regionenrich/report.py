"""Tab-separated report rows for enrichment and assignment results."""

import sys
from typing import Dict, Iterable, Optional, TextIO

from regionenrich.errors import InvariantError
from regionenrich.stats import Assignment, TermResult

NONE_FIELD = 'NONE'


def format_term_row(result: TermResult, descriptions: Optional[Dict[str, str]] = None) -> str:
    """
    Render one enrichment result.

    Columns are term, p-value, [test parameters], [description], [hit names],
    where the optional columns appear when the result carries them or a
    description table is given.

    Raises:
        InvariantError: If a description table is given but lacks the term
    """
    fields = [result.term, '%g' % result.p_value]
    if result.params is not None:
        fields.extend(result.params.as_fields())
    if descriptions is not None:
        if result.term not in descriptions:
            raise InvariantError(f"no description found for {result.term}")
        fields.append(descriptions[result.term])
    if result.hits is not None:
        fields.append(','.join(result.hits))
    return '\t'.join(fields)


def format_assignment_row(assignment: Assignment) -> str:
    element = assignment.element
    fields = [
        element.chrom,
        str(element.start),
        str(element.end),
        element.name if element.name is not None else NONE_FIELD,
        assignment.gene_name if assignment.gene_name is not None else NONE_FIELD,
        str(assignment.distance) if assignment.distance is not None else NONE_FIELD,
    ]
    return '\t'.join(fields)


def write_report(lines: Iterable[str], handle: TextIO = None) -> int:
    """Write report lines to ``handle`` (stdout by default) and return how many were written."""
    if handle is None:
        handle = sys.stdout
    count = 0
    for line in lines:
        handle.write(line + '\n')
        count += 1
    return count
