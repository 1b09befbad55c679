"""Tests for the GO term index."""

import numpy as np

from regionenrich.intervals import GenomicInterval
from regionenrich.terms import (
    ANY_TERM,
    count_term_appearances,
    extract_unique_terms,
    has_term,
    index_term_rows,
)


def _genes():
    return [
        GenomicInterval("chr1", 0, 10, "geneA", ("GO:3", "GO:1")),
        GenomicInterval("chr1", 20, 30, "geneB", ("GO:1",)),
        GenomicInterval("chr2", 0, 10, "geneC"),
    ]


def test_extract_unique_terms():
    """Unique terms come back sorted and detached from the genes."""
    genes = _genes()
    terms = extract_unique_terms(genes)
    assert terms == ["GO:1", "GO:3"]

    terms.append("GO:9")
    assert extract_unique_terms(genes) == ["GO:1", "GO:3"]


def test_extract_unique_terms_empty():
    assert extract_unique_terms([]) == []


def test_has_term():
    """The ANY_TERM filter matches every interval."""
    gene_a, _, gene_c = _genes()
    assert has_term(gene_a, "GO:1")
    assert not has_term(gene_a, "GO:2")
    assert has_term(gene_c, ANY_TERM)


def test_count_term_appearances():
    genes = _genes()
    assert count_term_appearances(genes, "GO:1") == 2
    assert count_term_appearances(genes, "GO:3") == 1
    assert count_term_appearances(genes, "GO:7") == 0


def test_index_term_rows():
    """Rows are recorded in collection order for every term."""
    rows = index_term_rows(_genes())
    assert set(rows) == {"GO:1", "GO:3"}
    np.testing.assert_array_equal(rows["GO:1"], np.array([0, 1]))
    np.testing.assert_array_equal(rows["GO:3"], np.array([0]))
    assert rows["GO:1"].dtype == np.int64
