"""
Configuration management for Contender.
Loads and validates the automatic-mode policy and run settings.
"""

import json
import logging
from pathlib import Path
from typing import List, Dict, Any, Tuple

from .points import ConstructKind, Policy


# Config key holding the automatic-mode probability of each construct kind
KIND_PROBABILITY_KEYS = {
    ConstructKind.MUTUAL_EXCLUSION: 'mutual_exclusion_probability',
    ConstructKind.BARRIER: 'barrier_probability',
    ConstructKind.LATCH: 'latch_probability',
    ConstructKind.SEMAPHORE: 'semaphore_probability',
}


class Config:
    """Manages application configuration."""

    # Default configuration values
    DEFAULT_CONFIG = {
        'source_extensions': ['.java'],
        'backup_suffix': '.contender',
        'sleep_probability': 50,
        'mutual_exclusion_probability': 50,
        'barrier_probability': 50,
        'latch_probability': 50,
        'semaphore_probability': 50,
        'delay_low': 100,
        'delay_high': 1000,
        'lower_bound': 0,
        'upper_bound': 100,
        'max_log_files': 5,
        'log_folder': 'logs'
    }

    def __init__(self, config_path: Path = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config.json file. If None, uses defaults.
        """
        self.config = self.DEFAULT_CONFIG.copy()

        if config_path and config_path.exists():
            self.load_config(config_path)

    def load_config(self, config_path: Path):
        """Load configuration from JSON file."""
        try:
            with open(config_path, 'r') as f:
                user_config = json.load(f)

                # Validate loaded config before applying
                is_valid, errors = self._validate_config(user_config)
                if not is_valid:
                    print(f"\nConfiguration validation failed:")
                    print(f"  Config file: {config_path.absolute()}")
                    print()
                    for error in errors:
                        print(error)
                        print()
                    print("Using default configuration instead.")
                    logging.warning(f"Invalid config {config_path}, using defaults")
                    return

                self.config.update(user_config)
        except json.JSONDecodeError as e:
            print(f"\nERROR: Invalid JSON in config file")
            print(f"  Config file: {config_path.absolute()}")
            print(f"  Problem: {e}")
            print(f"  Line: {e.lineno}, Column: {e.colno}")
            print()
            print("Fix the JSON syntax and try again.")
            print("Using default configuration.")
        except OSError as e:
            print(f"\nERROR: Could not load config file")
            print(f"  Config file: {config_path.absolute()}")
            print(f"  Problem: {e}")
            print()
            print("Using default configuration.")

    def save_config(self, config_path: Path):
        """Save current configuration to JSON file."""
        try:
            with open(config_path, 'w') as f:
                json.dump(self.config, f, indent=4)
        except OSError as e:
            print(f"Error saving config to {config_path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self.config.get(key, default)

    def set(self, key: str, value: Any):
        """Set configuration value."""
        self.config[key] = value

    def _validate_config(self, config: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Validate configuration dictionary.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        if not isinstance(config, dict):
            errors.append(
                f"ERROR: Invalid config file\n"
                f"  Value: {type(config).__name__}\n"
                f"  Expected: JSON object with settings"
            )
            return (False, errors)

        # Validate numeric ranges
        numeric_fields = {
            'sleep_probability': (0, 100, "Sleep probability", 50),
            'mutual_exclusion_probability': (0, 100, "Mutual exclusion probability", 50),
            'barrier_probability': (0, 100, "Barrier probability", 50),
            'latch_probability': (0, 100, "Latch probability", 50),
            'semaphore_probability': (0, 100, "Semaphore probability", 50),
            'delay_low': (0, 600000, "Lowest sleep delay (ms)", 100),
            'delay_high': (0, 600000, "Highest sleep delay (ms)", 1000),
            'lower_bound': (0, 100, "Lower bound (%)", 0),
            'upper_bound': (0, 100, "Upper bound (%)", 100),
            'max_log_files': (1, 100, "Maximum log files", 5),
        }

        for field, (min_val, max_val, display_name, example) in numeric_fields.items():
            if field in config:
                value = config[field]
                if not isinstance(value, int) or isinstance(value, bool):
                    errors.append(
                        f"ERROR: Invalid config value\n"
                        f"  Field: {field}\n"
                        f"  Value: {repr(value)} ({type(value).__name__})\n"
                        f"  Expected: number (integer)\n"
                        f"  Example: {example}\n"
                        f"  Valid range: {min_val} to {max_val}"
                    )
                elif value < min_val or value > max_val:
                    errors.append(
                        f"ERROR: Invalid config value\n"
                        f"  Field: {field}\n"
                        f"  Value: {value}\n"
                        f"  Expected: number between {min_val} and {max_val}\n"
                        f"  Example: {example}"
                    )

        # Validate ordered pairs against the merged result
        merged = self.DEFAULT_CONFIG.copy()
        merged.update(config)
        ordered_pairs = [
            ('delay_low', 'delay_high'),
            ('lower_bound', 'upper_bound'),
        ]
        for low_field, high_field in ordered_pairs:
            low, high = merged.get(low_field), merged.get(high_field)
            if isinstance(low, int) and isinstance(high, int) and low > high:
                errors.append(
                    f"ERROR: Invalid config value\n"
                    f"  Fields: {low_field}, {high_field}\n"
                    f"  Value: {low} > {high}\n"
                    f"  Expected: {low_field} must not exceed {high_field}"
                )

        # Validate list fields (must be lists of strings)
        if 'source_extensions' in config:
            value = config['source_extensions']
            examples = ['.java']
            if not isinstance(value, list):
                errors.append(
                    f"ERROR: Invalid config value\n"
                    f"  Field: source_extensions\n"
                    f"  Value: {repr(value)} ({type(value).__name__})\n"
                    f"  Expected: list of strings\n"
                    f"  Example: {examples}"
                )
            elif not all(isinstance(ext, str) for ext in value):
                errors.append(
                    f"ERROR: Invalid config value\n"
                    f"  Field: source_extensions\n"
                    f"  Problem: List contains non-string values\n"
                    f"  Expected: All entries must be strings\n"
                    f"  Example: {examples}"
                )
            elif not all(ext.startswith('.') for ext in value):
                errors.append(
                    f"ERROR: Invalid config value\n"
                    f"  Field: source_extensions\n"
                    f"  Problem: Extensions must start with '.'\n"
                    f"  Example: {examples} (note the dots)"
                )

        # Validate string fields
        if 'backup_suffix' in config:
            suffix = config['backup_suffix']
            if not isinstance(suffix, str) or not suffix.startswith('.') or len(suffix) < 2:
                errors.append(
                    f"ERROR: Invalid config value\n"
                    f"  Field: backup_suffix\n"
                    f"  Value: {repr(suffix)}\n"
                    f"  Expected: extension string starting with '.'\n"
                    f"  Example: '.contender'"
                )

        if 'log_folder' in config:
            if not isinstance(config['log_folder'], str):
                errors.append(f"log_folder must be a string, got {type(config['log_folder']).__name__}")

        return (len(errors) == 0, errors)

    @property
    def policy(self) -> Policy:
        """Build the automatic-mode policy from the configured values."""
        return Policy(
            per_kind_probability={kind: self.config[key] for kind, key in KIND_PROBABILITY_KEYS.items()},
            sleep_probability=self.config['sleep_probability'],
            delay_low=self.config['delay_low'],
            delay_high=self.config['delay_high']
        )

    @property
    def source_extensions(self) -> List[str]:
        """Get list of source file extensions to scan."""
        return self.config['source_extensions']

    @property
    def backup_suffix(self) -> str:
        """Get suffix appended to backup copies of instrumented files."""
        return self.config['backup_suffix']

    @property
    def lower_bound(self) -> int:
        """Get start of the automatic-mode scope (percent of lines)."""
        return self.config['lower_bound']

    @property
    def upper_bound(self) -> int:
        """Get end of the automatic-mode scope (percent of lines)."""
        return self.config['upper_bound']

    @property
    def max_log_files(self) -> int:
        """Get maximum number of log files to keep."""
        return self.config['max_log_files']

    @property
    def log_folder(self) -> str:
        """Get log folder path."""
        return self.config['log_folder']
