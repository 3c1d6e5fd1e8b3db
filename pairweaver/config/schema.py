"""
PairWeaver v0.1.0

Configuration schema for PairWeaver.

Defines all available configuration parameters with defaults and validation.

Author: PairWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import copy
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..errors import ConfigValidationError

logger = logging.getLogger(__name__)


# Default configuration values
DEFAULT_CONFIG = {
    # ========================================================================
    # Merge acceptance policy
    # ========================================================================
    'merging': {
        'min_alignment': 100,  # Shortest accepted alignment (bp)
        'min_homology': 0.85,  # Fraction of matching bases
        'min_alignment_quotient': 0.001,  # Max disattended constraints per aligned base
        'mismatch_tolerance': 5,  # Mismatch runs longer than this are disattended
        'max_gaps': 300,  # Shifts explored on each side of the expected position
        'max_pctg_gap': 300,  # Contig bases an alignment may leave without a paired-contig base
        'max_ctg_gap': 300,  # Paired-contig bases an alignment may leave without a contig base
        'max_searched_alignment': 400000,  # Longest window handed to the scorer
    },

    # ========================================================================
    # Execution
    # ========================================================================
    'execution': {
        'workers': 1,  # Block chains merged in parallel
        'include_unpaired_slaves': False,  # Emit slave contigs without blocks
    },

    # ========================================================================
    # Logging
    # ========================================================================
    'logging': {
        'level': 'INFO',  # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
        'log_file': None,
    },
}

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

TEMPLATES = ['default', 'strict', 'permissive']


@dataclass(frozen=True)
class MergeConfig:
    """
    Merge-acceptance policy handed to PctgBuilder.

    An alignment is accepted when it is at least ``min_alignment`` long,
    its homology is at least ``min_homology`` and its disattended
    constraints per aligned base do not exceed ``min_alignment_quotient``.
    """
    min_alignment: int = 100
    min_homology: float = 0.85
    min_alignment_quotient: float = 0.001
    mismatch_tolerance: int = 5
    max_gaps: int = 300
    max_pctg_gap: int = 300
    max_ctg_gap: int = 300
    max_searched_alignment: int = 400000

    def __post_init__(self):
        """Validate configuration."""
        if self.min_alignment < 1:
            raise ConfigValidationError(f"min_alignment must be >= 1, got {self.min_alignment}")
        if not 0.0 <= self.min_homology <= 1.0:
            raise ConfigValidationError(
                f"min_homology must be in [0, 1], got {self.min_homology}"
            )
        if self.min_alignment_quotient < 0:
            raise ConfigValidationError(
                f"min_alignment_quotient must be >= 0, got {self.min_alignment_quotient}"
            )
        if self.mismatch_tolerance < 0:
            raise ConfigValidationError(
                f"mismatch_tolerance must be >= 0, got {self.mismatch_tolerance}"
            )
        if self.max_gaps < 0:
            raise ConfigValidationError(f"max_gaps must be >= 0, got {self.max_gaps}")
        if self.max_pctg_gap < 0 or self.max_ctg_gap < 0:
            raise ConfigValidationError(
                f"max_pctg_gap and max_ctg_gap must be >= 0, got "
                f"{self.max_pctg_gap} and {self.max_ctg_gap}"
            )
        if self.max_searched_alignment < self.min_alignment:
            raise ConfigValidationError(
                f"max_searched_alignment ({self.max_searched_alignment}) must be >= "
                f"min_alignment ({self.min_alignment})"
            )

    @classmethod
    def from_dict(cls, section: Optional[Dict[str, Any]]) -> 'MergeConfig':
        """
        Build from the ``merging`` section of a configuration dictionary.

        Unknown keys are ignored with a warning.
        """
        section = section or {}
        known = {f.name for f in fields(cls)}
        for key in section:
            if key not in known:
                logger.warning(f"Ignoring unknown merging option: {key}")
        return cls(**{k: v for k, v in section.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Path to YAML config file (None = use defaults)

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If *config_path* does not exist
        ConfigValidationError: If the file is not valid YAML
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path) as f:
                user_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML in config file {config_path}: {e}")

        if user_config:
            if not isinstance(user_config, dict):
                raise ConfigValidationError(
                    f"Config file {config_path} must contain a mapping at top level"
                )
            # Deep merge user config into defaults
            config = _deep_merge(config, user_config)

    return config


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def save_config_template(output_path: Path, template: str = 'default'):
    """
    Save a configuration template to file.

    Args:
        output_path: Output file path
        template: Template type ('default', 'strict', 'permissive')
    """
    if template not in TEMPLATES:
        raise ConfigValidationError(f"Unknown template: {template}")

    config = copy.deepcopy(DEFAULT_CONFIG)

    # Customize for specific templates
    if template == 'strict':
        config['merging']['min_alignment'] = 500
        config['merging']['min_homology'] = 0.95
        config['merging']['mismatch_tolerance'] = 2

    elif template == 'permissive':
        config['merging']['min_alignment'] = 50
        config['merging']['min_homology'] = 0.75
        config['merging']['min_alignment_quotient'] = 0.01
        config['merging']['max_gaps'] = 1000
        config['merging']['max_pctg_gap'] = 1000
        config['merging']['max_ctg_gap'] = 1000

    with open(output_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration dictionary.

    Args:
        config: Configuration to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    try:
        MergeConfig.from_dict(config.get('merging', {}))
    except (ConfigValidationError, TypeError) as e:
        errors.append(f"merging: {e}")

    workers = config.get('execution', {}).get('workers', 1)
    if not isinstance(workers, int) or workers < 1:
        errors.append(f"Invalid execution.workers: {workers} (must be an integer >= 1)")

    level = str(config.get('logging', {}).get('level', 'INFO')).upper()
    if level not in VALID_LOG_LEVELS:
        errors.append(f"Invalid logging.level: {level}")

    return errors
