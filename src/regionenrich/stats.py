"""
Statistical testing engine for GO term enrichment of genomic elements.

Three interchangeable models are provided:

* binomial: bases of each term's genes inside the usable regions give the
  per-element hit probability,
* hypergeometric: genes are the balls, genes hit by an element are the picks,
* hypergeometric with a null model: the intervals of a larger background set
  are the balls instead of the genes.

Upper tail probabilities follow the convention ``P(X >= k)`` with a p-value of
exactly 1 when nothing was hit.
"""

import logging
import platform
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
import polars as pl
from scipy import stats
from statsmodels.stats.multitest import multipletests
from tqdm.auto import tqdm

from regionenrich.algebra import (
    IntervalsLike,
    assign_elements,
    count_overlaps,
    count_three_way_overlap,
    encode,
    overlapping_pairs,
    sum_overlap_bases_with_term,
    total_bases,
)
from regionenrich.config import EnrichmentSettings
from regionenrich.errors import InvariantError
from regionenrich.intervals import GenomicInterval, distance_between, index_by_name
from regionenrich.terms import ANY_TERM

# ASCII bars on macOS terminals, progress goes to stderr next to the logs
tqdm_kwargs = {
    'leave': False,
    'dynamic_ncols': True,
    'ascii': platform.system() == 'Darwin',
}


@dataclass
class ModelParameters:
    """Quantities a p-value was computed from, kept for reporting."""

    expected: float
    observed: int
    total_picks: int
    white_balls: Optional[int] = None
    total_balls: Optional[int] = None
    probability: Optional[float] = None

    def as_fields(self) -> List[str]:
        """Render as report columns."""
        fields = ['%g' % self.expected, str(self.observed), str(self.total_picks)]
        if self.probability is not None:
            fields.append('%g' % self.probability)
        else:
            fields.extend([str(self.white_balls), str(self.total_balls)])
        return fields


@dataclass
class TermResult:
    term: str
    p_value: float
    params: Optional[ModelParameters] = None
    hits: Optional[List[str]] = field(default=None)


def binomial_pvalue(observed: int, trials: int, probability: float) -> float:
    """
    Upper tail binomial probability ``P(X >= observed)``.

    Args:
        observed: Number of successes seen
        trials: Number of trials
        probability: Per trial success probability

    Returns:
        The p-value, exactly 1.0 when ``observed`` is 0
    """
    if observed == 0:
        return 1.0
    return float(stats.binom.sf(observed - 1, trials, probability))


def hypergeometric_pvalue(observed: int, picks: int, white_balls: int, total_balls: int) -> float:
    """
    Upper tail hypergeometric probability ``P(X >= observed)``.

    Args:
        observed: White balls drawn
        picks: Balls drawn
        white_balls: White balls in the urn
        total_balls: Balls in the urn

    Returns:
        The p-value, exactly 1.0 when ``observed`` is 0
    """
    if observed == 0:
        return 1.0
    return float(stats.hypergeom.sf(observed - 1, total_balls, white_balls, picks))


def _hit_names(intervals: Sequence, rows: Sequence[int]) -> List[str]:
    names = []
    for row in rows:
        name = intervals[row].name
        if name is None:
            raise InvariantError("told to list names, but a hit has no name")
        names.append(name)
    return names


class EnrichmentTester:
    """Runs the per-term enrichment test selected in the settings."""

    def __init__(self, settings: EnrichmentSettings):
        self.settings = settings
        self.logger = logging.getLogger(__name__)

    def _progress(self, terms: Sequence[str], desc: str):
        return tqdm(terms, desc=desc, disable=not self.settings.show_progress, **tqdm_kwargs)

    def run(
        self,
        elements: IntervalsLike,
        genes: IntervalsLike,
        terms: Sequence[str],
        regions: Optional[IntervalsLike] = None,
        large_set: Optional[IntervalsLike] = None
    ) -> List[TermResult]:
        """Dispatch to the model chosen by the settings."""
        if self.settings.binomial:
            if regions is None:
                raise InvariantError("the binomial method needs the usable regions")
            return self.binomial(elements, genes, terms, regions)
        if self.settings.hypergeometric and large_set is not None:
            return self.hypergeometric_null_model(elements, large_set, genes, terms)
        if self.settings.hypergeometric:
            return self.hypergeometric(elements, genes, terms)
        raise InvariantError("no statistical method selected")

    def binomial(
        self,
        elements: IntervalsLike,
        genes: IntervalsLike,
        terms: Sequence[str],
        regions: IntervalsLike
    ) -> List[TermResult]:
        """
        Binomial test per term over the usable bases.

        Args:
            elements: Sorted elements
            genes: Sorted (expanded) genes
            terms: GO terms to test
            regions: Sorted usable regions

        Returns:
            One TermResult per term, in term order
        """
        elements, genes, regions = encode(elements, genes, regions)

        self.logger.debug("Calculating numbers that do not change between terms")
        total_balls = total_bases(regions)
        if self.settings.count_unassigned:
            total_picks = len(elements)
        else:
            total_picks = count_overlaps(elements, genes)
        if terms and total_balls == 0:
            raise InvariantError("the usable regions cover no bases")
        self.logger.info(f"Binomial background: {total_balls} bases, {total_picks} picks")

        results = []
        for term in self._progress(terms, "Binomial tests"):
            white_balls = sum_overlap_bases_with_term(genes, term, regions)
            pairs = overlapping_pairs(elements, genes, ANY_TERM, term)
            picked = len(pairs)
            probability = white_balls / total_balls
            result = TermResult(term, binomial_pvalue(picked, total_picks, probability))
            if self.settings.show_test_parameters:
                result.params = ModelParameters(
                    expected=probability * total_picks,
                    observed=picked,
                    total_picks=total_picks,
                    probability=probability,
                )
            if self.settings.show_hit_names:
                result.hits = _hit_names(genes.intervals, [gene_row for _, gene_row in pairs])
            results.append(result)
        return results

    def hypergeometric(
        self,
        elements: IntervalsLike,
        genes: IntervalsLike,
        terms: Sequence[str]
    ) -> List[TermResult]:
        """
        Hypergeometric test per term with genes as the balls.

        Args:
            elements: Sorted elements
            genes: Sorted (expanded) genes
            terms: GO terms to test

        Returns:
            One TermResult per term, in term order
        """
        elements, genes = encode(elements, genes)

        self.logger.debug("Calculating numbers that do not change between terms")
        total_balls = len(genes)
        total_picks = count_overlaps(genes, elements)
        self.logger.info(f"Hypergeometric background: {total_balls} genes, {total_picks} hit by elements")

        results = []
        for term in self._progress(terms, "Hypergeometric tests"):
            white_balls = genes.term_size(term)
            pairs = overlapping_pairs(genes, elements, term, ANY_TERM)
            picked = len(pairs)
            result = TermResult(term, hypergeometric_pvalue(picked, total_picks, white_balls, total_balls))
            if self.settings.show_test_parameters:
                result.params = _hypergeometric_params(picked, total_picks, white_balls, total_balls)
            if self.settings.show_hit_names:
                result.hits = _hit_names(genes.intervals, [gene_row for gene_row, _ in pairs])
            results.append(result)
        return results

    def hypergeometric_null_model(
        self,
        elements: IntervalsLike,
        large_set: IntervalsLike,
        genes: IntervalsLike,
        terms: Sequence[str]
    ) -> List[TermResult]:
        """Hypergeometric test per term with the null model intervals as the balls."""
        elements, large_set, genes = encode(elements, large_set, genes)

        self.logger.debug("Calculating numbers that do not change between terms")
        total_balls = len(large_set)
        total_picks = count_overlaps(large_set, elements)
        self.logger.info(f"Null model background: {total_balls} intervals, {total_picks} hit by elements")

        results = []
        for term in self._progress(terms, "Null model tests"):
            white_balls = count_overlaps(large_set, genes, ANY_TERM, term)
            picked = count_three_way_overlap(large_set, ANY_TERM, genes, term, elements, ANY_TERM)
            result = TermResult(term, hypergeometric_pvalue(picked, total_picks, white_balls, total_balls))
            if self.settings.show_test_parameters:
                result.params = _hypergeometric_params(picked, total_picks, white_balls, total_balls)
            results.append(result)
        return results


def _hypergeometric_params(picked: int, total_picks: int, white_balls: int, total_balls: int) -> ModelParameters:
    expected = white_balls / total_balls * total_picks if total_balls else float('nan')
    return ModelParameters(
        expected=expected,
        observed=picked,
        total_picks=total_picks,
        white_balls=white_balls,
        total_balls=total_balls,
    )


def bonferroni_correction(results: List[TermResult]) -> List[TermResult]:
    """
    Correct p-values in place for the number of terms tested.

    Every result counts as one test; each p-value becomes
    ``min(1.0, p * len(results))``.
    """
    if not results:
        return results

    p_values = np.array([result.p_value for result in results], dtype=np.float64)
    _, corrected, _, _ = multipletests(p_values, method='bonferroni')
    for result, p_value in zip(results, corrected):
        result.p_value = float(p_value)
    return results


def rank_results(results: Sequence[TermResult], max_p_value: float) -> List[TermResult]:
    """
    Order results by ascending p-value and keep those at or below the cutoff.

    Ties keep their input order.
    """
    frame = pl.DataFrame(
        {
            'row': list(range(len(results))),
            'p_value': [result.p_value for result in results],
        },
        schema={'row': pl.Int64, 'p_value': pl.Float64},
    )
    ranked = (
        frame
        .filter(pl.col('p_value') <= max_p_value)
        .sort('p_value', maintain_order=True)
    )
    return [results[row] for row in ranked['row'].to_list()]


@dataclass
class Assignment:
    """An element with the gene it was assigned to, if any."""

    element: GenomicInterval
    gene_name: Optional[str] = None
    distance: Optional[int] = None


def assign_genes(
    elements: IntervalsLike,
    expanded_genes: IntervalsLike,
    original_genes: Sequence[GenomicInterval]
) -> List[Assignment]:
    """
    Assign every element to the first expanded gene it overlaps.

    The reported distance is measured to the unexpanded gene of the same name.

    Args:
        elements: Sorted elements
        expanded_genes: Sorted genes after expansion
        original_genes: The same genes before expansion

    Returns:
        One Assignment per element, in element order

    Raises:
        InvariantError: If an assigned gene has no name or no unexpanded copy
    """
    elements, expanded_genes = encode(elements, expanded_genes)
    originals = index_by_name(original_genes)
    assignments = []
    for element, gene_row in zip(elements.intervals, assign_elements(elements, expanded_genes)):
        if gene_row < 0:
            assignments.append(Assignment(element))
            continue
        gene_name = expanded_genes.intervals[gene_row].name
        if gene_name is None:
            raise InvariantError("told to list gene assignments, but a gene has no name")
        original = originals.get(gene_name)
        if original is None:
            raise InvariantError(f"no unexpanded gene named {gene_name}")
        assignments.append(Assignment(element, gene_name, distance_between(element, original)))
    return assignments
