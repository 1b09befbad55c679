"""
Region Enrichment Pipeline
==========================

A Python package for testing genomic elements for GO term enrichment
near annotated genes.
"""

from .pipeline import EnrichmentPipeline, EnrichmentRun
from .config import EnrichmentSettings, PipelineConfig, write_config as write_config
from .errors import (
    EnrichmentError,
    IntervalParseError,
    ConfigurationError,
    InvariantError,
)
from .intervals import (
    GenomicInterval,
    sort_intervals as sort_intervals,
    guess_tx_start as guess_tx_start,
    distance_between as distance_between,
)
from .data import (
    load_intervals as load_intervals,
    load_term_descriptions as load_term_descriptions,
)
from .algebra import (
    overlaps as overlaps,
    count_overlaps as count_overlaps,
    sum_overlap_bases as sum_overlap_bases,
    sum_overlap_bases_with_term as sum_overlap_bases_with_term,
    count_three_way_overlap as count_three_way_overlap,
    total_bases as total_bases,
)
from .expansion import (
    Expander,
    expand_by_distance as expand_by_distance,
    expand_to_neighbor as expand_to_neighbor,
)
from .stats import (
    EnrichmentTester,
    TermResult,
    bonferroni_correction as bonferroni_correction,
    rank_results as rank_results,
    assign_genes as assign_genes,
)
from .utils import setup_logging as setup_logging, ensure_dir as ensure_dir

__version__ = "0.1.0"

__all__ = [
    "EnrichmentPipeline",
    "EnrichmentRun",
    "EnrichmentSettings",
    "PipelineConfig",
    "write_config",
    "EnrichmentError",
    "IntervalParseError",
    "ConfigurationError",
    "InvariantError",
    "GenomicInterval",
    "sort_intervals",
    "guess_tx_start",
    "distance_between",
    "load_intervals",
    "load_term_descriptions",
    "overlaps",
    "count_overlaps",
    "sum_overlap_bases",
    "sum_overlap_bases_with_term",
    "count_three_way_overlap",
    "total_bases",
    "Expander",
    "expand_by_distance",
    "expand_to_neighbor",
    "EnrichmentTester",
    "TermResult",
    "bonferroni_correction",
    "rank_results",
    "assign_genes",
    "setup_logging",
    "ensure_dir",
]
