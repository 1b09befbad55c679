"""Tests for configuration management."""

import pytest
import tomli
from tomli_w import dump as tomli_w_dump
from pathlib import Path
import tempfile

from regionenrich.config import (
    DEFAULT_MAX_EXPANSION,
    DEFAULT_MAX_P_VALUE,
    EnrichmentSettings,
    PipelineConfig,
    write_config,
)
from regionenrich.errors import ConfigurationError


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def minimal_config_file(tmp_path):
    """Create a minimal valid configuration file."""
    config = {
        'input': {
            'elements_file': 'elements.bed',
            'genes_file': 'genes.bed',
            'regions_file': 'no_gaps.bed'
        },
        'analysis': {
            'binomial': True
        }
    }
    config_path = tmp_path / 'config.toml'
    with open(config_path, 'wb') as f:
        tomli_w_dump(config, f)
    return config_path


@pytest.fixture
def full_config_file(tmp_path):
    """Create a configuration file with all optional parameters."""
    config = {
        'input': {
            'elements_file': 'elements.bed',
            'genes_file': 'genes.bed',
            'regions_file': 'no_gaps.bed',
            'null_model_file': 'large.bed',
            'term_descriptions_file': 'go_english.tsv'
        },
        'output': {
            'log_dir': 'logs'
        },
        'analysis': {
            'hypergeometric': True,
            'bonferroni': True,
            'max_expansion': 5000,
            'neighbor_bounded': True,
            'max_p_value': 0.01,
            'show_test_parameters': True
        }
    }
    config_path = tmp_path / 'config.toml'
    with open(config_path, 'wb') as f:
        tomli_w_dump(config, f)
    return config_path


def test_default_settings():
    """Defaults match the documented options."""
    settings = EnrichmentSettings()
    assert settings.max_expansion == DEFAULT_MAX_EXPANSION == 1000000
    assert settings.max_p_value == DEFAULT_MAX_P_VALUE == 0.05
    assert not settings.uses_null_model


@pytest.mark.parametrize("options, message", [
    ({'binomial': True, 'hypergeometric': True}, "both"),
    ({}, "either"),
    ({'binomial': True, 'null_model_file': 'large.bed'}, "hypergeometric method"),
    ({'hypergeometric': True, 'null_model_file': 'large.bed', 'show_hit_names': True}, "Hit names"),
    ({'binomial': True, 'max_expansion': -1}, "negative"),
])
def test_validate_conflicts(options, message):
    """Conflicting options are rejected before any work starts."""
    with pytest.raises(ConfigurationError, match=message):
        EnrichmentSettings(**options).validate()


def test_validate_accepts_valid_combinations():
    assert EnrichmentSettings(binomial=True).validate().binomial
    assert EnrichmentSettings(assignment_only=True).validate().assignment_only
    settings = EnrichmentSettings(hypergeometric=True, null_model_file='large.bed').validate()
    assert settings.uses_null_model


def test_with_overrides():
    """None values leave the current option in place."""
    settings = EnrichmentSettings(binomial=True, max_p_value=0.01)
    updated = settings.with_overrides(max_p_value=None, bonferroni=True)
    assert updated.max_p_value == 0.01
    assert updated.bonferroni
    assert not settings.bonferroni


def test_from_mapping_rejects_unknown():
    with pytest.raises(ConfigurationError, match="Unknown analysis options: colour"):
        EnrichmentSettings.from_mapping({'binomial': True, 'colour': 'blue'})


@pytest.mark.parametrize("values, name", [
    ({'binomial': 'no'}, 'binomial'),
    ({'binomial': 1}, 'binomial'),
    ({'hypergeometric': True, 'max_expansion': '5'}, 'max_expansion'),
    ({'hypergeometric': True, 'max_expansion': 5.5}, 'max_expansion'),
    ({'hypergeometric': True, 'max_expansion': True}, 'max_expansion'),
    ({'binomial': True, 'max_p_value': True}, 'max_p_value'),
    ({'binomial': True, 'max_p_value': '0.01'}, 'max_p_value'),
    ({'hypergeometric': True, 'null_model_file': 3}, 'null_model_file'),
])
def test_from_mapping_rejects_wrong_types(values, name):
    """Option values must match the option types."""
    with pytest.raises(ConfigurationError, match=f"Option {name} must be of type"):
        EnrichmentSettings.from_mapping(values)


def test_from_mapping_accepts_integer_p_value():
    settings = EnrichmentSettings.from_mapping({'binomial': True, 'max_p_value': 1, 'max_expansion': 5})
    assert settings.max_p_value == 1.0
    assert isinstance(settings.max_p_value, float)
    assert settings.max_expansion == 5


def test_config_file_with_string_distance(tmp_path):
    """A quoted number in the TOML file is rejected when settings are built."""
    config = {
        'input': {
            'elements_file': 'elements.bed',
            'genes_file': 'genes.bed',
            'regions_file': 'no_gaps.bed'
        },
        'analysis': {'binomial': True, 'max_expansion': '5'}
    }
    config_path = tmp_path / 'config.toml'
    with open(config_path, 'wb') as f:
        tomli_w_dump(config, f)

    with pytest.raises(ConfigurationError, match="max_expansion"):
        PipelineConfig(config_path).settings()


def test_to_mapping_drops_unset_files():
    mapping = EnrichmentSettings(binomial=True).to_mapping()
    assert mapping['binomial'] is True
    assert 'null_model_file' not in mapping
    assert 'term_descriptions_file' not in mapping


def test_load_minimal_config(minimal_config_file):
    """Test loading a minimal valid configuration."""
    config = PipelineConfig(minimal_config_file)
    assert config.input_files['elements_file'] == 'elements.bed'
    assert config.output_config == {}
    assert config.log_dir is None

    settings = config.settings()
    assert settings.binomial
    assert settings.max_expansion == DEFAULT_MAX_EXPANSION


def test_load_full_config(full_config_file):
    """Test loading a configuration with all optional parameters."""
    config = PipelineConfig(full_config_file)
    assert config.log_dir == Path('logs')

    settings = config.settings()
    assert settings.hypergeometric
    assert settings.bonferroni
    assert settings.max_expansion == 5000
    assert settings.neighbor_bounded
    assert settings.max_p_value == 0.01
    assert settings.null_model_file == 'large.bed'
    assert settings.term_descriptions_file == 'go_english.tsv'
    settings.validate()


def test_save_config(minimal_config_file, tmp_path):
    """Test saving configuration to a new file."""
    config = PipelineConfig(minimal_config_file)
    output_path = tmp_path / 'saved_config.toml'
    config.save_config(output_path)

    # Load saved config and verify contents
    with open(output_path, 'rb') as f:
        saved_config = tomli.load(f)
    assert saved_config == config.config


def test_write_config_round_trip(tmp_path):
    """A written configuration reproduces the settings of a run."""
    settings = EnrichmentSettings(
        hypergeometric=True,
        null_model_file='large.bed',
        max_expansion=250,
        show_test_parameters=True,
    )
    output_path = tmp_path / 'run.toml'
    write_config(output_path, settings, 'e.bed', 'g.bed', 'r.bed', log_dir='logs')

    config = PipelineConfig(output_path)
    assert config.input_files['null_model_file'] == 'large.bed'
    assert 'null_model_file' not in config.analysis_params
    assert config.log_dir == Path('logs')
    assert config.settings() == settings


def test_nonexistent_config_file():
    """Test error handling for nonexistent configuration file."""
    with pytest.raises(ValueError, match="Error loading configuration file"):
        PipelineConfig('nonexistent.toml')


def test_missing_required_section(tmp_path):
    """Test error handling for missing required section."""
    config = {
        'input': {
            'elements_file': 'elements.bed',
            'genes_file': 'genes.bed',
            'regions_file': 'no_gaps.bed'
        }
        # Missing 'analysis' section
    }
    config_path = tmp_path / 'invalid_config.toml'
    with open(config_path, 'wb') as f:
        tomli_w_dump(config, f)

    with pytest.raises(ConfigurationError, match="Missing required sections: analysis"):
        PipelineConfig(config_path)


def test_missing_required_files(tmp_path):
    """Test error handling for missing required input files."""
    config = {
        'input': {
            'elements_file': 'elements.bed'
        },
        'analysis': {}
    }
    config_path = tmp_path / 'invalid_config.toml'
    with open(config_path, 'wb') as f:
        tomli_w_dump(config, f)

    with pytest.raises(ConfigurationError, match="Missing required input files: genes_file, regions_file"):
        PipelineConfig(config_path)


def test_invalid_config_file(temp_dir):
    """Test error with invalid config file."""
    file_path = temp_dir / "config.toml"
    file_path.write_text("invalid toml content")

    with pytest.raises(ValueError, match="Error loading configuration file"):
        PipelineConfig(file_path)
