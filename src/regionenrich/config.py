"""Configuration handling for the region enrichment pipeline."""

from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import tomli
import tomli_w

from regionenrich.errors import ConfigurationError

DEFAULT_MAX_EXPANSION = 1000000
DEFAULT_MAX_P_VALUE = 0.05


@dataclass(frozen=True)
class EnrichmentSettings:
    """Immutable analysis options shared by the expansion and statistics engines."""

    binomial: bool = False
    hypergeometric: bool = False
    assignment_only: bool = False
    bonferroni: bool = False
    max_expansion: int = DEFAULT_MAX_EXPANSION
    neighbor_bounded: bool = False
    max_p_value: float = DEFAULT_MAX_P_VALUE
    guess_tx_start: bool = False
    show_hit_names: bool = False
    show_test_parameters: bool = False
    count_unassigned: bool = False
    null_model_file: Optional[str] = None
    term_descriptions_file: Optional[str] = None
    show_progress: bool = False

    @property
    def uses_null_model(self) -> bool:
        return self.null_model_file is not None

    def validate(self) -> 'EnrichmentSettings':
        """
        Check the options for conflicts.

        Returns:
            The settings themselves, so calls can be chained

        Raises:
            ConfigurationError: If the options can not be used together
        """
        if self.binomial and self.hypergeometric:
            raise ConfigurationError("You can't use both the binomial and the hypergeometric method")
        if not self.binomial and not self.hypergeometric and not self.assignment_only:
            raise ConfigurationError("You must use either the binomial or the hypergeometric method")
        if self.uses_null_model and not self.hypergeometric:
            raise ConfigurationError("A null model set can only be used with the hypergeometric method")
        if self.uses_null_model and self.show_hit_names:
            raise ConfigurationError("Hit names can not be shown when a null model set is used")
        if self.max_expansion < 0:
            raise ConfigurationError(f"Expansion distance must not be negative, got {self.max_expansion}")
        return self

    def with_overrides(self, **overrides: Any) -> 'EnrichmentSettings':
        """Copy of the settings with the given fields replaced; None values are ignored."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    @classmethod
    def from_mapping(cls, values: Dict[str, Any]) -> 'EnrichmentSettings':
        """
        Build settings from a plain dictionary such as a TOML table.

        Integer values are accepted for float options.

        Raises:
            ConfigurationError: If the dictionary holds unknown option names
                or a value of the wrong type
        """
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(values) - set(known))
        if unknown:
            raise ConfigurationError(f"Unknown analysis options: {', '.join(unknown)}")

        checked = {}
        for name, value in values.items():
            default = known[name].default
            expected = str if default is None else type(default)
            if expected is float and isinstance(value, int) and not isinstance(value, bool):
                value = float(value)
            if isinstance(value, bool) != (expected is bool) or not isinstance(value, expected):
                raise ConfigurationError(
                    f"Option {name} must be of type {expected.__name__}, got {value!r}"
                )
            checked[name] = value
        return cls(**checked)

    def to_mapping(self) -> Dict[str, Any]:
        """Dictionary of the options, without unset optional files (TOML has no null)."""
        return {key: value for key, value in asdict(self).items() if value is not None}


class PipelineConfig:
    """Configuration manager reading pipeline inputs and options from a TOML file."""

    required_sections = ['input', 'analysis']
    required_input_files = ['elements_file', 'genes_file', 'regions_file']

    def __init__(self, config_path: Union[str, Path]):
        """Initialise the configuration from a TOML file.

        Args:
            config_path: Path to the TOML configuration file
        """
        self.config_path = Path(config_path)
        self.config = self._load_config()

    def _load_config(self) -> dict:
        """Load configuration from TOML file."""
        try:
            with open(self.config_path, 'rb') as f:
                config = tomli.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Error loading configuration file: {self.config_path} does not exist")
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Error loading configuration file: {e}")

        missing_sections = [section for section in self.required_sections if section not in config]
        if missing_sections:
            raise ConfigurationError(f"Missing required sections: {', '.join(missing_sections)}")

        missing_files = [key for key in self.required_input_files if key not in config['input']]
        if missing_files:
            raise ConfigurationError(f"Missing required input files: {', '.join(missing_files)}")

        return config

    @property
    def input_files(self) -> Dict[str, str]:
        """Get input file paths."""
        return self.config['input']

    @property
    def analysis_params(self) -> Dict[str, Any]:
        """Get analysis parameters."""
        return self.config.get('analysis', {})

    @property
    def output_config(self) -> Dict[str, Any]:
        """Get output configuration."""
        return self.config.get('output', {})

    @property
    def log_dir(self) -> Optional[Path]:
        log_dir = self.output_config.get('log_dir')
        return Path(log_dir) if log_dir else None

    def settings(self) -> EnrichmentSettings:
        """Build the analysis settings, including the optional input files."""
        values = dict(self.analysis_params)
        if 'null_model_file' in self.input_files:
            values['null_model_file'] = self.input_files['null_model_file']
        if 'term_descriptions_file' in self.input_files:
            values['term_descriptions_file'] = self.input_files['term_descriptions_file']
        return EnrichmentSettings.from_mapping(values)

    def save_config(self, output_path: Optional[Union[str, Path]] = None) -> None:
        """Save the configuration to a TOML file.

        Reference helper for library callers that edit ``config`` in place;
        the command line writes new files through ``write_config``.

        Args:
            output_path: Optional destination, defaults to the file it was read from
        """
        if output_path is None:
            output_path = self.config_path

        with open(output_path, 'wb') as f:
            tomli_w.dump(self.config, f)


def write_config(
    output_path: Union[str, Path],
    settings: EnrichmentSettings,
    elements_file: str,
    genes_file: str,
    regions_file: str,
    log_dir: Optional[str] = None
) -> None:
    """
    Write a TOML configuration that reproduces a run.

    Args:
        output_path: Destination TOML file
        settings: Analysis settings of the run
        elements_file: Elements interval file
        genes_file: GO annotated genes interval file
        regions_file: Usable (no gap) regions interval file
        log_dir: Optional log directory
    """
    analysis = settings.to_mapping()
    input_files = {
        'elements_file': str(elements_file),
        'genes_file': str(genes_file),
        'regions_file': str(regions_file),
    }
    for key in ('null_model_file', 'term_descriptions_file'):
        if key in analysis:
            input_files[key] = analysis.pop(key)

    config: Dict[str, Any] = {'input': input_files, 'analysis': analysis}
    if log_dir:
        config['output'] = {'log_dir': str(log_dir)}

    with open(output_path, 'wb') as f:
        tomli_w.dump(config, f)
