#!/usr/bin/env python3
"""
Command line interface for the region enrichment pipeline.
"""

import argparse
import logging
import sys
from typing import List, Optional

from regionenrich.config import EnrichmentSettings, PipelineConfig, write_config
from regionenrich.errors import ConfigurationError, EnrichmentError
from regionenrich.pipeline import EnrichmentPipeline
from regionenrich.report import write_report
from regionenrich.utils import setup_logging

REFERENCES = """references:
  Lowe CB, Kellis M, Siepel A, et al. Three periods of regulatory innovation
  during vertebrate evolution. Science. 2011;333(6045):1019-24.
  Lowe CB, Bejerano G, Haussler D. Thousands of human mobile element fragments
  undergo strong purifying selection near developmental genes.
  Proc Natl Acad Sci U S A. 2007;104(19):8005-10.
"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="regionenrich",
        description="GO term enrichment tests for genomic elements near annotated genes",
        epilog=REFERENCES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "inputs",
        nargs="*",
        metavar="FILE",
        help="elements.bed genes.bed no_gaps.bed; genes carry comma separated GO terms "
             "in the fifth column (may be omitted when --config names them)"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="TOML configuration file supplying input files and defaults"
    )

    method_group = parser.add_argument_group("Method")
    method_group.add_argument(
        "--binom", "--binomial",
        dest="binomial",
        action="store_true",
        default=None,
        help="use the binomial method"
    )
    method_group.add_argument(
        "--hypergeo", "--hypergeometric",
        dest="hypergeometric",
        action="store_true",
        default=None,
        help="use the hypergeometric method"
    )
    method_group.add_argument(
        "--gene-assignments",
        dest="assignment_only",
        action="store_true",
        default=None,
        help="just show the elements and the genes assigned to them"
    )
    method_group.add_argument(
        "--large-set",
        dest="null_model_file",
        type=str,
        help="larger interval file containing the elements, used as a null model"
    )
    method_group.add_argument(
        "--count-unassigned",
        dest="count_unassigned",
        action="store_true",
        default=None,
        help="count the elements outside of the expanded genes when doing stats"
    )

    expansion_group = parser.add_argument_group("Gene expansion")
    expansion_group.add_argument(
        "--max-expansion",
        dest="max_expansion",
        type=int,
        help="elements further than this from a gene are not assigned to it "
             "(default: 1000000, 0 disables expansion)"
    )
    expansion_group.add_argument(
        "--no-expansion-overlap", "--neighbor-bounded",
        dest="neighbor_bounded",
        action="store_true",
        default=None,
        help="expansion only grows into bases that are not closer to another gene"
    )
    expansion_group.add_argument(
        "--guess-tx-start",
        dest="guess_tx_start",
        action="store_true",
        default=None,
        help="convert each gene into a point based on its strand"
    )

    output_group = parser.add_argument_group("Output")
    output_group.add_argument(
        "--bonferroni",
        dest="bonferroni",
        action="store_true",
        default=None,
        help="correct p-values for multiple tests"
    )
    output_group.add_argument(
        "--max-p-value",
        dest="max_p_value",
        type=float,
        help="do not print p-values greater than this cutoff (default: 0.05)"
    )
    output_group.add_argument(
        "--go-term-to-english",
        dest="term_descriptions_file",
        type=str,
        help="file mapping GO terms to English definitions"
    )
    output_group.add_argument(
        "--show-names",
        dest="show_hit_names",
        action="store_true",
        default=None,
        help="show the names of the genes hit"
    )
    output_group.add_argument(
        "--show-params",
        dest="show_test_parameters",
        action="store_true",
        default=None,
        help="show the parameters used to calculate each p-value"
    )
    output_group.add_argument(
        "--save-config",
        type=str,
        help="write the effective configuration of this run to a TOML file"
    )

    logging_group = parser.add_argument_group("Logging")
    logging_group.add_argument(
        "--log-dir",
        type=str,
        help="also write logs to LOG_DIR/pipeline.log"
    )
    logging_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="log progress (-v) or debugging detail (-vv) to stderr"
    )
    logging_group.add_argument(
        "--progress",
        dest="show_progress",
        action="store_true",
        default=None,
        help="show a progress bar while testing terms"
    )

    args = parser.parse_args(argv)
    if args.inputs and len(args.inputs) != 3:
        parser.error("expected exactly three input files: elements genes no_gaps")
    if not args.inputs and not args.config:
        parser.error("give the three input files or a --config naming them")
    return args


def update_settings(settings: EnrichmentSettings, args: argparse.Namespace) -> EnrichmentSettings:
    """Apply command line overrides to the settings."""
    return settings.with_overrides(
        binomial=args.binomial,
        hypergeometric=args.hypergeometric,
        assignment_only=args.assignment_only,
        bonferroni=args.bonferroni,
        max_expansion=args.max_expansion,
        neighbor_bounded=args.neighbor_bounded,
        max_p_value=args.max_p_value,
        guess_tx_start=args.guess_tx_start,
        show_hit_names=args.show_hit_names,
        show_test_parameters=args.show_test_parameters,
        count_unassigned=args.count_unassigned,
        null_model_file=args.null_model_file,
        term_descriptions_file=args.term_descriptions_file,
        show_progress=args.show_progress,
    )


def _log_level(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = parse_args(argv)

    try:
        config = PipelineConfig(args.config) if args.config else None
    except ConfigurationError as e:
        setup_logging(args.log_dir, level=_log_level(args.verbose))
        logging.error(str(e))
        return 1

    log_dir = args.log_dir or (config.log_dir if config else None)
    setup_logging(log_dir, level=_log_level(args.verbose))

    try:
        settings = config.settings() if config else EnrichmentSettings()
        settings = update_settings(settings, args).validate()

        if args.inputs:
            elements_file, genes_file, regions_file = args.inputs
        else:
            files = config.input_files
            elements_file = files['elements_file']
            genes_file = files['genes_file']
            regions_file = files['regions_file']

        if args.save_config:
            write_config(args.save_config, settings, elements_file, genes_file, regions_file, log_dir)
            logging.info(f"Saved configuration to {args.save_config}")

        logging.info(f"Elements: {elements_file}, genes: {genes_file}, regions: {regions_file}")
        pipeline = EnrichmentPipeline.from_files(settings, elements_file, genes_file, regions_file)
        run = pipeline.run()
        write_report(run.report_lines())
    except (EnrichmentError, OSError) as e:
        logging.error(f"Pipeline execution failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
