"""Tests for the command line interface."""

import pytest
import tomli
from tomli_w import dump as tomli_w_dump

from regionenrich.cli import main, parse_args, update_settings
from regionenrich.config import EnrichmentSettings


@pytest.fixture
def input_files(tmp_path):
    """Create the three interval files of the binomial scenario."""
    elements = tmp_path / 'elements.bed'
    elements.write_text("chr1\t100\t200\telem1\n")
    genes = tmp_path / 'genes.bed'
    genes.write_text("chr1\t150\t250\tgeneA\ttermX\n")
    regions = tmp_path / 'no_gaps.bed'
    regions.write_text("chr1\t0\t1000\n")
    return [str(elements), str(genes), str(regions)]


def test_parse_args_flags(input_files):
    """Unset flags stay None so they do not override a configuration."""
    args = parse_args(input_files + ['--binom', '--max-expansion', '0'])
    assert args.inputs == input_files
    assert args.binomial is True
    assert args.hypergeometric is None
    assert args.max_expansion == 0
    assert args.max_p_value is None
    assert args.verbose == 0


def test_parse_args_needs_three_inputs(input_files):
    with pytest.raises(SystemExit):
        parse_args(input_files[:2] + ['--binom'])
    with pytest.raises(SystemExit):
        parse_args(['--binom'])


def test_update_settings(input_files):
    """Command line options override the base settings."""
    base = EnrichmentSettings(binomial=True, max_p_value=0.01, bonferroni=True)
    args = parse_args(input_files + ['--show-params', '--no-expansion-overlap'])
    settings = update_settings(base, args)
    assert settings.binomial
    assert settings.bonferroni
    assert settings.max_p_value == 0.01
    assert settings.show_test_parameters
    assert settings.neighbor_bounded


def test_main_binomial(input_files, capsys):
    """The binomial scenario prints one term at p = 0.1."""
    exit_code = main(input_files + ['--binom', '--max-expansion', '0', '--max-p-value', '1'])
    assert exit_code == 0
    assert capsys.readouterr().out == "termX\t0.1\n"


def test_main_show_params(input_files, capsys):
    exit_code = main(input_files + ['--binom', '--max-expansion', '0', '--max-p-value', '1', '--show-params'])
    assert exit_code == 0
    assert capsys.readouterr().out == "termX\t0.1\t0.1\t1\t1\t0.1\n"


def test_main_gene_assignments(input_files, capsys):
    exit_code = main(input_files + ['--gene-assignments', '--max-expansion', '100'])
    assert exit_code == 0
    assert capsys.readouterr().out == "chr1\t100\t200\telem1\tgeneA\t0\n"


def test_main_conflicting_methods(input_files, capsys):
    """Configuration conflicts fail before any output is written."""
    exit_code = main(input_files + ['--binom', '--hypergeo'])
    assert exit_code == 1
    assert capsys.readouterr().out == ""


def test_main_missing_input(input_files, tmp_path, capsys):
    files = [str(tmp_path / 'missing.bed')] + input_files[1:]
    assert main(files + ['--binom']) == 1
    assert capsys.readouterr().out == ""


def test_main_with_config(input_files, tmp_path, capsys):
    """Inputs and options can come from a TOML configuration."""
    config = {
        'input': {
            'elements_file': input_files[0],
            'genes_file': input_files[1],
            'regions_file': input_files[2],
        },
        'analysis': {
            'binomial': True,
            'max_expansion': 0,
            'max_p_value': 1.0,
        },
        'output': {
            'log_dir': str(tmp_path / 'logs'),
        }
    }
    config_path = tmp_path / 'config.toml'
    with open(config_path, 'wb') as f:
        tomli_w_dump(config, f)

    exit_code = main(['--config', str(config_path)])
    assert exit_code == 0
    assert capsys.readouterr().out == "termX\t0.1\n"
    assert (tmp_path / 'logs' / 'pipeline.log').exists()


def test_main_bad_config(tmp_path):
    assert main(['--config', str(tmp_path / 'nonexistent.toml')]) == 1


def test_main_save_config(input_files, tmp_path, capsys):
    """The effective options of a run can be saved for reuse."""
    saved = tmp_path / 'saved.toml'
    exit_code = main(input_files + ['--binom', '--bonferroni', '--save-config', str(saved)])
    assert exit_code == 0

    with open(saved, 'rb') as f:
        config = tomli.load(f)
    assert config['input']['elements_file'] == input_files[0]
    assert config['analysis']['binomial'] is True
    assert config['analysis']['bonferroni'] is True
    assert config['analysis']['max_expansion'] == 1000000
