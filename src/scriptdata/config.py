"""
Extractor Configuration

Loads configuration from a YAML file, falling back to built-in defaults.
Paths are relative to the working directory unless absolute.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from scriptdata.errors import ConfigError
from scriptdata.sandbox.stubs import HostState


# Default configuration file locations (checked in order)
CONFIG_SEARCH_PATHS = [
    Path("scriptdata.yaml"),
]


DEFAULT_CONFIG = {
    "source_path": str(Path("..") / "RunEscape" / "js" / "game.js"),
    "output_dir": "data",

    # Evaluation settings
    "eval_timeout_seconds": 15,          # Wall-clock budget for the sandbox
    "strict_references": False,          # Fail on reference-check problems

    # Output settings
    "placeholder": "[function]",         # Stands in for callable values
    "debug_artifact": "_debug_eval.js",  # Written to output_dir before eval

    # Player/game state stub overrides (see HostState)
    "host_state": {},
}


class ExtractorConfig:
    """Configuration for one extraction run."""

    def __init__(self, config_path: Optional[Path] = None):
        self._config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config_path: Optional[Path] = None

        self._load_config(config_path)

    def _load_config(self, explicit_path: Optional[Path] = None) -> None:
        """Load configuration from YAML file."""
        if explicit_path is not None and not Path(explicit_path).exists():
            raise ConfigError(f"Config file not found: {explicit_path}")
        search_paths = [Path(explicit_path)] if explicit_path else CONFIG_SEARCH_PATHS

        for config_path in search_paths:
            if config_path.exists():
                try:
                    with open(config_path, 'r', encoding='utf-8') as f:
                        user_config = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"Failed to load config from {config_path}: {e}")
                if not isinstance(user_config, dict):
                    raise ConfigError(f"Config in {config_path} must be a mapping")
                unknown = sorted(set(user_config) - set(DEFAULT_CONFIG))
                if unknown:
                    raise ConfigError(f"Unknown config keys in {config_path}: {', '.join(unknown)}")
                host_state = user_config.get("host_state")
                if host_state is not None and not isinstance(host_state, dict):
                    raise ConfigError(f"host_state in {config_path} must be a mapping")
                self._config.update(user_config)
                self._config_path = config_path
                return

    def override(self, **values: Any) -> "ExtractorConfig":
        """Apply command-line overrides; None values are ignored."""
        for key, value in values.items():
            if key not in DEFAULT_CONFIG:
                raise ConfigError(f"Unknown config key: {key}")
            if value is not None:
                self._config[key] = value
        return self

    @property
    def config_path(self) -> Optional[Path]:
        """Path to loaded config file, or None if using defaults."""
        return self._config_path

    @property
    def source_path(self) -> Path:
        """The game script to extract from."""
        return Path(self._config["source_path"])

    @property
    def output_dir(self) -> Path:
        """Directory receiving the documents and the debug artifact."""
        return Path(self._config["output_dir"])

    @property
    def eval_timeout(self) -> float:
        """Sandbox wall-clock budget (seconds)."""
        try:
            timeout = float(self._config["eval_timeout_seconds"])
        except (TypeError, ValueError):
            raise ConfigError(f"eval_timeout_seconds must be a number: {self._config['eval_timeout_seconds']!r}")
        if timeout <= 0:
            raise ConfigError("eval_timeout_seconds must be positive")
        return timeout

    @property
    def strict_references(self) -> bool:
        return bool(self._config["strict_references"])

    @property
    def placeholder(self) -> str:
        return str(self._config["placeholder"])

    @property
    def debug_artifact(self) -> Path:
        """Full path of the pre-evaluation script dump."""
        return self.output_dir / self._config["debug_artifact"]

    @property
    def host_state(self) -> HostState:
        return HostState.from_dict(self._config.get("host_state") or {})

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as dict."""
        return {
            "source_path": str(self.source_path),
            "output_dir": str(self.output_dir),
            "eval_timeout_seconds": self.eval_timeout,
            "strict_references": self.strict_references,
            "placeholder": self.placeholder,
            "debug_artifact": str(self.debug_artifact),
            "host_state": dict(self._config.get("host_state") or {}),
            "config_file": str(self._config_path) if self._config_path else None,
        }


def get_config(config_path: Optional[Path] = None) -> ExtractorConfig:
    """Load configuration (explicit path, else search paths, else defaults)."""
    return ExtractorConfig(config_path)


def write_default_config(path: Optional[Path] = None) -> Path:
    """
    Write a default configuration file.

    Returns the path where config was written.
    """
    if path is None:
        path = CONFIG_SEARCH_PATHS[0]

    path.parent.mkdir(parents=True, exist_ok=True)

    config_content = """# scriptdata extraction configuration

# Game script to extract from
source_path: "../RunEscape/js/game.js"

# Where JSON documents (and the debug script) are written
output_dir: "data"

# Sandbox wall-clock budget in seconds
eval_timeout_seconds: 15

# Abort when the reference check finds unresolved names
strict_references: false

# Replacement for function values in output documents
placeholder: "[function]"

# Assembled script dump, written to output_dir before every evaluation
debug_artifact: "_debug_eval.js"

# Player/game state stub overrides
host_state: {}
#  skill_levels: {nano: 1, tesla: 1, void: 1}
#  prestige_tier: 0
#  combat_style: nano
"""

    with open(path, 'w', encoding='utf-8') as f:
        f.write(config_content)

    return path
