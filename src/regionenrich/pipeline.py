"""Main pipeline implementation for GO term enrichment of genomic elements."""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from regionenrich.config import EnrichmentSettings, PipelineConfig
from regionenrich.data import load_intervals, load_term_descriptions
from regionenrich.errors import ConfigurationError
from regionenrich.expansion import Expander
from regionenrich.intervals import GenomicInterval, clone_intervals, guess_tx_start, sort_intervals
from regionenrich.report import format_assignment_row, format_term_row
from regionenrich.stats import (
    Assignment,
    EnrichmentTester,
    TermResult,
    assign_genes,
    bonferroni_correction,
    rank_results,
)
from regionenrich.terms import extract_unique_terms


@dataclass
class EnrichmentRun:
    """Outcome of a pipeline run: ranked term results or element assignments."""

    results: List[TermResult] = field(default_factory=list)
    assignments: Optional[List[Assignment]] = None
    terms_tested: int = 0
    descriptions: Optional[Dict[str, str]] = None

    def report_lines(self) -> List[str]:
        """Render the run as tab-separated report lines."""
        if self.assignments is not None:
            return [format_assignment_row(assignment) for assignment in self.assignments]
        return [format_term_row(result, self.descriptions) for result in self.results]


class EnrichmentPipeline:
    """Runs one batch enrichment analysis over fully loaded interval collections."""

    def __init__(
        self,
        settings: EnrichmentSettings,
        elements: Sequence[GenomicInterval],
        genes: Sequence[GenomicInterval],
        regions: Sequence[GenomicInterval],
        large_set: Optional[Sequence[GenomicInterval]] = None,
        term_descriptions: Optional[Dict[str, str]] = None
    ):
        """Initialise the pipeline.

        Args:
            settings: Analysis settings, validated here
            elements: Elements to test for enrichment
            genes: GO annotated gene intervals; the pipeline works on its own copies
            regions: Usable (no gap) regions forming the binomial background
            large_set: Optional null model intervals for the hypergeometric method
            term_descriptions: Optional term to description table for the report
        """
        self.settings = settings.validate()
        self.logger = logging.getLogger(__name__)

        if self.settings.uses_null_model != (large_set is not None):
            raise ConfigurationError("Null model intervals must be given exactly when a null model file is configured")

        self.elements = list(elements)
        self.genes = clone_intervals(genes)
        self.regions = list(regions)
        self.large_set = list(large_set) if large_set is not None else None
        self.term_descriptions = term_descriptions

        self.original_genes: List[GenomicInterval] = []
        self.expanded_genes: List[GenomicInterval] = []
        self.terms: List[str] = []

    @classmethod
    def from_files(
        cls,
        settings: EnrichmentSettings,
        elements_file: Union[str, Path],
        genes_file: Union[str, Path],
        regions_file: Union[str, Path]
    ) -> 'EnrichmentPipeline':
        """
        Build a pipeline from interval files.

        The null model and term description files are taken from the settings.
        """
        settings.validate()
        large_set = None
        if settings.null_model_file is not None:
            large_set = load_intervals(settings.null_model_file)
        descriptions = None
        if settings.term_descriptions_file is not None:
            descriptions = load_term_descriptions(settings.term_descriptions_file)

        return cls(
            settings,
            load_intervals(elements_file),
            load_intervals(genes_file),
            load_intervals(regions_file),
            large_set=large_set,
            term_descriptions=descriptions,
        )

    @classmethod
    def from_config(cls, config: PipelineConfig) -> 'EnrichmentPipeline':
        """Build a pipeline from a TOML configuration."""
        files = config.input_files
        return cls.from_files(
            config.settings(),
            files['elements_file'],
            files['genes_file'],
            files['regions_file'],
        )

    def prepare(self) -> None:
        """Sort the inputs, collect the GO terms and expand the genes."""
        if self.settings.guess_tx_start:
            self.logger.info("Collapsing genes to their transcription start")
            guess_tx_start(self.genes)

        sort_intervals(self.elements)
        sort_intervals(self.genes)
        sort_intervals(self.regions)
        if self.large_set is not None:
            sort_intervals(self.large_set)

        self.terms = extract_unique_terms(self.genes)
        self.logger.info(f"Found {len(self.terms)} distinct GO terms on {len(self.genes)} genes")

        # Cloned strictly before expansion mutates the working copy
        self.original_genes = clone_intervals(self.genes)
        self.expanded_genes = Expander(self.settings).expand(self.genes)

    def run(self) -> EnrichmentRun:
        """Run the analysis and return the ranked, filtered outcome."""
        self.logger.info("Starting region enrichment analysis")
        start_time = time.time()

        self.prepare()

        if self.settings.assignment_only:
            self.logger.info("Assigning elements to genes")
            assignments = assign_genes(self.elements, self.expanded_genes, self.original_genes)
            self.logger.info(f"Pipeline completed in {time.time() - start_time:.2f} seconds")
            return EnrichmentRun(assignments=assignments)

        self.logger.info("Calculating statistics")
        tester = EnrichmentTester(self.settings)
        results = tester.run(
            self.elements,
            self.expanded_genes,
            self.terms,
            regions=self.regions,
            large_set=self.large_set,
        )

        if self.settings.bonferroni:
            self.logger.info(f"Correcting results for {len(self.terms)} tests")
            bonferroni_correction(results)

        ranked = rank_results(results, self.settings.max_p_value)
        self.logger.info(
            f"{len(ranked)} of {len(results)} terms pass the p-value cutoff of {self.settings.max_p_value}"
        )
        self.logger.info(f"Pipeline completed in {time.time() - start_time:.2f} seconds")

        return EnrichmentRun(
            results=ranked,
            terms_tested=len(self.terms),
            descriptions=self.term_descriptions,
        )
