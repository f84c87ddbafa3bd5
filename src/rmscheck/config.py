"""
Checker Configuration

Loads configuration from a YAML file and environment variables.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from rmscheck.format import FormatOptions
from rmscheck.lints import ALL_LINTS, DEFAULT_LINTS
from rmscheck.state import Compatibility

logger = logging.getLogger(__name__)

# Configuration file locations (checked in order)
CONFIG_SEARCH_PATHS = [
    Path(".rmscheck.yaml"),
    Path.home() / ".rmscheck" / "config.yaml",
]

DEFAULT_CONFIG = {
    "compatibility": "conquerors",
    "lints": list(DEFAULT_LINTS),
    "fix_unsafe": False,     # Also apply fixes that may change behaviour

    # Formatter settings
    "tab_size": 2,           # Spaces per indent level
    "use_spaces": True,      # Indent with spaces instead of tabs
    "align_arguments": True, # Line up command arguments inside blocks
}


class ConfigError(Exception):
    """Invalid configuration."""
    pass


class CheckConfig:
    """Configuration for a check run."""

    def __init__(self, config_path: Optional[Path] = None, search_paths: Optional[List[Path]] = None):
        self._config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config_path: Optional[Path] = None

        # Load from file if found
        self._load_config(config_path, search_paths)

        # Override with environment variables
        self._apply_env_overrides()

        self._validate()

    def _load_config(self, explicit_path: Optional[Path], search_paths: Optional[List[Path]]) -> None:
        """Load configuration from YAML file."""
        if explicit_path is not None:
            if not explicit_path.exists():
                raise ConfigError(f"Config file not found: {explicit_path}")
            paths = [explicit_path]
        else:
            paths = search_paths if search_paths is not None else CONFIG_SEARCH_PATHS

        for config_path in paths:
            if not config_path.exists():
                continue
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    user_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Failed to parse config {config_path}: {e}") from e
            if not isinstance(user_config, dict):
                raise ConfigError(f"Config {config_path} must be a mapping")
            self._config.update(user_config)
            self._config_path = config_path
            logger.debug(f"Loaded config from {config_path}")
            return

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        if "RMSCHECK_COMPATIBILITY" in os.environ:
            self._config["compatibility"] = os.environ["RMSCHECK_COMPATIBILITY"]
        if "RMSCHECK_LINTS" in os.environ:
            names = os.environ["RMSCHECK_LINTS"].split(",")
            self._config["lints"] = [name.strip() for name in names if name.strip()]

    def _validate(self) -> None:
        if Compatibility.from_name(str(self._config["compatibility"])) is None:
            raise ConfigError(f"Unknown compatibility: {self._config['compatibility']}")
        lints = self._config["lints"]
        if not isinstance(lints, list):
            raise ConfigError("`lints` must be a list of lint names")
        unknown = [name for name in lints if name not in ALL_LINTS]
        if unknown:
            raise ConfigError(f"Unknown lints: {', '.join(map(str, unknown))}")
        tab_size = self._config["tab_size"]
        if isinstance(tab_size, bool) or not isinstance(tab_size, int) or tab_size < 0:
            raise ConfigError(f"`tab_size` must be a non-negative integer, got {tab_size!r}")

    def override(self, key: str, value: Any) -> None:
        """Set a value from the command line, taking precedence over files and env."""
        self._config[key] = value
        self._validate()

    @property
    def config_path(self) -> Optional[Path]:
        """Path to loaded config file, or None if using defaults."""
        return self._config_path

    @property
    def compatibility(self) -> Compatibility:
        return Compatibility.from_name(str(self._config["compatibility"]))

    @property
    def lints(self) -> List[str]:
        """Names of the enabled lints, in run order."""
        return list(self._config["lints"])

    @property
    def fix_unsafe(self) -> bool:
        return bool(self._config.get("fix_unsafe", False))

    @property
    def format_options(self) -> FormatOptions:
        return FormatOptions(
            tab_size=self._config["tab_size"],
            use_spaces=bool(self._config["use_spaces"]),
            align_arguments=bool(self._config["align_arguments"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as dict."""
        return {
            "compatibility": str(self._config["compatibility"]),
            "lints": self.lints,
            "fix_unsafe": self.fix_unsafe,
            "tab_size": self._config["tab_size"],
            "use_spaces": bool(self._config["use_spaces"]),
            "align_arguments": bool(self._config["align_arguments"]),
            "config_file": str(self._config_path) if self._config_path else None,
        }


def load_config(config_path: Optional[Path] = None) -> CheckConfig:
    return CheckConfig(config_path)
