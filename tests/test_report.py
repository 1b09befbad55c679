"""Tests for report formatting."""

import io

import pytest

from regionenrich.errors import InvariantError
from regionenrich.intervals import GenomicInterval
from regionenrich.report import format_assignment_row, format_term_row, write_report
from regionenrich.stats import Assignment, ModelParameters, TermResult


def test_format_term_row_minimal():
    assert format_term_row(TermResult("GO:1", 0.0123)) == "GO:1\t0.0123"


def test_format_term_row_all_columns():
    """Columns come in the order term, p-value, parameters, description, hits."""
    result = TermResult(
        "GO:1",
        1e-05,
        params=ModelParameters(expected=0.5, observed=3, total_picks=10, white_balls=4, total_balls=80),
        hits=["geneA", "geneB"],
    )
    row = format_term_row(result, {"GO:1": "cell adhesion"})
    assert row == "GO:1\t1e-05\t0.5\t3\t10\t4\t80\tcell adhesion\tgeneA,geneB"


def test_format_term_row_empty_hits():
    """Listing hits with none found leaves an empty last column."""
    assert format_term_row(TermResult("GO:1", 1.0, hits=[])) == "GO:1\t1\t"


def test_format_term_row_missing_description():
    with pytest.raises(InvariantError, match="GO:2"):
        format_term_row(TermResult("GO:2", 0.01), {"GO:1": "cell adhesion"})


def test_format_assignment_row():
    """Unassigned elements and missing names print NONE."""
    assigned = Assignment(GenomicInterval("chr1", 5, 6, "elem1"), "geneA", 15)
    assert format_assignment_row(assigned) == "chr1\t5\t6\telem1\tgeneA\t15"

    unassigned = Assignment(GenomicInterval("chr2", 10, 20))
    assert format_assignment_row(unassigned) == "chr2\t10\t20\tNONE\tNONE\tNONE"


def test_write_report():
    handle = io.StringIO()
    assert write_report(["a\tb", "c\td"], handle) == 2
    assert handle.getvalue() == "a\tb\nc\td\n"


def test_write_report_defaults_to_stdout(capsys):
    write_report(["GO:1\t0.01"])
    assert capsys.readouterr().out == "GO:1\t0.01\n"
