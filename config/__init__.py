"""
Configuration Module for the Forensic QR Architect.

settings.yaml holds every tunable of the system: report layout, sealing
stages, decode strategies, camera limits, the classification policy table,
barcode rendering and the shareable-link endpoint. Components read their
values through get_config() with dot-notation keys so the file is loaded
once per process.

The file location can be overridden with the FORENSIC_QR_CONFIG
environment variable or the --config option of the CLI.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


CONFIG_ENV_VAR = "FORENSIC_QR_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "settings.yaml"

# Levels accepted for barcode.error_correction
_ERROR_CORRECTION_LEVELS = ("L", "M", "Q", "H")


class ConfigurationManager:
    """
    Process-wide access to settings.yaml.

    The first instantiation decides which file is loaded; later calls
    return the same instance until reset() is called.

    Attributes:
        config_path (Path): File the settings were loaded from.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("barcode.error_correction")
        'M'
        >>> config.section("camera")
        {'device_index': 0, 'max_consecutive_read_failures': 30}
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Load the settings file on first use.

        Args:
            config_path: Explicit settings file. Falls back to the
                FORENSIC_QR_CONFIG environment variable, then to the
                bundled config/settings.yaml.
        """
        if self._initialized:
            return

        chosen = config_path or os.environ.get(CONFIG_ENV_VAR)
        self.config_path = Path(chosen) if chosen else DEFAULT_CONFIG_PATH

        self._load()
        self._initialized = True

    def _load(self) -> None:
        """
        Read and check the settings file.

        Raises:
            FileNotFoundError: If the settings file does not exist.
            ValueError: If a section holds values the system cannot use.
            yaml.YAMLError: If the file is not valid YAML.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f) or {}

        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration root must be a mapping: {self.config_path}")

        problems = self._check(loaded)
        if problems:
            raise ValueError(
                f"Invalid configuration in {self.config_path}: " + "; ".join(problems)
            )

        self._config = loaded
        self._anchor_paths()

    @staticmethod
    def _check(loaded: Dict[str, Any]) -> List[str]:
        """Return a list of problems with the loaded settings."""
        problems = []

        level = (loaded.get('barcode') or {}).get('error_correction')
        if level is not None and str(level).upper() not in _ERROR_CORRECTION_LEVELS:
            problems.append(f"barcode.error_correction must be one of {_ERROR_CORRECTION_LEVELS}")

        strategies = (loaded.get('decode') or {}).get('strategies')
        if strategies is not None:
            if not isinstance(strategies, list) or not strategies:
                problems.append("decode.strategies must be a non-empty list")
            else:
                for position, entry in enumerate(strategies, start=1):
                    if not isinstance(entry, dict) or not entry.get('name') or not entry.get('engine'):
                        problems.append(f"decode.strategies[{position}] needs a name and an engine")

        threshold = (loaded.get('classification') or {}).get('encoded_blob_length_threshold')
        if threshold is not None and (not isinstance(threshold, int) or threshold < 0):
            problems.append("classification.encoded_blob_length_threshold must be a non-negative integer")

        return problems

    def _anchor_paths(self) -> None:
        """Make relative entries under 'paths' absolute against the project root."""
        project_root = Path(__file__).parent.parent

        for key, value in (self._config.get('paths') or {}).items():
            if value and not Path(value).is_absolute():
                self._config['paths'][key] = str(project_root / value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a value with dot notation.

        Args:
            key: Dotted key, e.g. "decode.padding".
            default: Returned when any part of the key is missing.

        Returns:
            The configured value or default.
        """
        value = self._config
        try:
            for part in key.split('.'):
                value = value[part]
            return value
        except (KeyError, TypeError):
            return default

    def section(self, name: str) -> Dict[str, Any]:
        """Return a copy of one top-level section, empty if absent."""
        return dict(self._config.get(name) or {})

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded settings so the next instantiation reloads."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shortcut for ConfigurationManager().get(key, default)."""
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'CONFIG_ENV_VAR']
