"""
Configuration management for dep-mole.

Settings come from dataclass defaults, optionally overridden by a project
or user config file in JSON, YAML or TOML.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
import yaml
from rich.console import Console

from .error_handling import ErrorCategory, get_error_handler

console = Console(stderr=True)

CONFIG_FILE_NAMES = [
    ".dep-mole.json",
    ".dep-mole.yaml",
    ".dep-mole.yml",
    ".dep-mole.toml",
]


@dataclass
class AnalyzerConfig:
    """Usage analyzer (depcheck) configuration."""

    command: List[str] = field(default_factory=lambda: ["npx", "--yes", "depcheck"])
    timeout_seconds: float = 300.0
    ignore_patterns: List[str] = field(default_factory=lambda: ["node_modules"])


@dataclass
class NetworkConfig:
    """Network and registry configuration."""

    registry_url: str = "https://registry.npmjs.org"
    user_agent: str = "dep-mole/1.0.0"
    timeout_seconds: float = 30.0


@dataclass
class VerifyConfig:
    """Registry verification configuration."""

    # 1 keeps lookups strictly sequential
    max_concurrent: int = 1


@dataclass
class SecurityConfig:
    """Input validation limits."""

    max_file_size_mb: int = 10

    @property
    def max_file_size_bytes(self) -> int:
        """Convert MB to bytes for internal use."""
        return int(self.max_file_size_mb * 1024 * 1024)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "WARNING"


@dataclass
class ComprehensiveConfig:
    """Main configuration containing all subsections."""

    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    verify: VerifyConfig = field(default_factory=VerifyConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


SECTION_NAMES = {f.name for f in fields(ComprehensiveConfig)}

# Global configuration instance
_global_config: Optional[ComprehensiveConfig] = None

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_string_list(value: Any) -> bool:
    return (
        isinstance(value, list)
        and bool(value)
        and all(isinstance(part, str) for part in value)
    )


def validate_config_values(config: ComprehensiveConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    A value of the wrong type is an error like an out-of-range one.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    analyzer = config.analyzer
    if not _is_string_list(analyzer.command) or not all(analyzer.command):
        errors.append("analyzer.command must be a non-empty list of strings")
    if not _is_number(analyzer.timeout_seconds) or analyzer.timeout_seconds <= 0:
        errors.append("analyzer.timeout_seconds must be a positive number")
    if not isinstance(analyzer.ignore_patterns, list) or not all(
        isinstance(pattern, str) for pattern in analyzer.ignore_patterns
    ):
        errors.append("analyzer.ignore_patterns must be a list of strings")

    network = config.network
    if not isinstance(network.registry_url, str) or not network.registry_url.startswith(
        ("http://", "https://")
    ):
        errors.append("network.registry_url must be an http(s) URL")
    if not isinstance(network.user_agent, str):
        errors.append("network.user_agent must be a string")
    if not _is_number(network.timeout_seconds) or network.timeout_seconds <= 0:
        errors.append("network.timeout_seconds must be a positive number")

    max_concurrent = config.verify.max_concurrent
    if (
        isinstance(max_concurrent, bool)
        or not isinstance(max_concurrent, int)
        or max_concurrent <= 0
    ):
        errors.append("verify.max_concurrent must be a positive integer")

    max_file_size_mb = config.security.max_file_size_mb
    if not _is_number(max_file_size_mb) or max_file_size_mb <= 0:
        errors.append("security.max_file_size_mb must be a positive number")

    log_level = config.logging.log_level
    if not isinstance(log_level, str) or log_level.upper() not in LOG_LEVELS:
        errors.append("logging.log_level must be a standard logging level name")

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            suffix = config_path.suffix.lower()
            if suffix in [".yaml", ".yml"]:
                return yaml.safe_load(f)
            elif suffix == ".toml":
                return toml.load(f)
            elif suffix == ".json":
                return json.load(f)
    except (OSError, ValueError, yaml.YAMLError, toml.TomlDecodeError) as e:
        console.print(
            f"⚠️  Error loading config from {config_path}: {e}", style="yellow"
        )
        get_error_handler().warning(
            ErrorCategory.CONFIGURATION,
            f"Cannot load config file: {e}",
            "cli_config",
            "load_config_file",
            details={"config_file": str(config_path)},
            exception=e,
        )

    return None


def find_config_file(search_dir: Optional[Path] = None) -> Optional[Path]:
    """Find config file in standard locations."""
    base = search_dir or Path.cwd()
    user_dir = Path.home() / ".config" / "dep-mole"
    locations = [base / name for name in CONFIG_FILE_NAMES] + [
        user_dir / "config.json",
        user_dir / "config.yaml",
        user_dir / "config.toml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    if not isinstance(section_data, dict):
        console.print(
            f"⚠️  Config section {section_name} must be a mapping", style="yellow"
        )
        return

    known_keys = {f.name for f in fields(config)}
    for key, value in section_data.items():
        if key in known_keys:
            setattr(config, key, value)
        else:
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )


def load_config(search_dir: Optional[Path] = None) -> ComprehensiveConfig:
    """Load configuration from the first config file found."""
    global _global_config

    if _global_config is not None:
        return _global_config

    config = ComprehensiveConfig()

    config_file = find_config_file(search_dir)
    if config_file:
        file_config = load_config_file(config_file)
        if isinstance(file_config, dict):
            for section_name, section_data in file_config.items():
                if section_name not in SECTION_NAMES:
                    console.print(
                        f"⚠️  Unknown config section: {section_name}", style="yellow"
                    )
                    continue
                apply_config_section(
                    getattr(config, section_name), section_data, section_name
                )

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        get_error_handler().warning(
            ErrorCategory.CONFIGURATION,
            "Invalid configuration values replaced by defaults",
            "cli_config",
            "load_config",
            details={
                "config_file": str(config_file) if config_file else None,
                "errors": validation_errors,
            },
        )
        config = _repair_invalid_sections(config, validation_errors)

    _global_config = config
    return config


def _repair_invalid_sections(
    config: ComprehensiveConfig, errors: List[str]
) -> ComprehensiveConfig:
    defaults = ComprehensiveConfig()
    for section_name in {error.split(".", 1)[0] for error in errors}:
        setattr(config, section_name, getattr(defaults, section_name))
    return config


def get_config() -> ComprehensiveConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate sample configuration."""
    return json.dumps(ComprehensiveConfig().to_dict(), indent=2)
