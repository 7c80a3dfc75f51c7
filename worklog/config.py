"""
Configuration management for work-record summaries.

Provides YAML-based configuration with environment variable overrides,
automatic config file discovery, and sensible defaults. The engine itself
never reads this module; callers resolve a ProviderConfig from it and pass
that in.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from worklog.types import ProviderConfig

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class ProviderSettings:
    """
    LLM backend settings.

    Attributes:
        use_local: Use the local Ollama server instead of a remote API
        local_endpoint: Ollama server address
        local_model: Ollama model name
        remote_url: Full chat-completions URL of the remote API
        remote_api_key: Bearer token for the remote API
        remote_model: Optional remote model override
    """
    use_local: bool = True
    local_endpoint: str = "http://localhost:11434"
    local_model: str = "llama3"
    remote_url: str = ""
    remote_api_key: str = ""
    remote_model: Optional[str] = None

    def to_provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            use_local=self.use_local,
            local_endpoint=self.local_endpoint,
            local_model=self.local_model,
            remote_url=self.remote_url,
            remote_api_key=self.remote_api_key,
            remote_model=self.remote_model or None,
        )


@dataclass
class StorageSettings:
    """
    Where the day files of work-log entries live.

    Attributes:
        log_dir: Directory holding one <YYYY-MM-DD>.json file per day
    """
    log_dir: str = "~/work_records"


@dataclass
class OutputSettings:
    """
    Where generated summaries are written.

    Attributes:
        output_dir: Directory for summary Markdown files
    """
    output_dir: str = "~/work_records/summaries"


@dataclass
class WorkRecordConfig:
    """
    Complete configuration.

    Aggregates all configuration sections and provides methods for
    loading, saving, and managing configuration files.
    """
    provider: ProviderSettings = field(default_factory=ProviderSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    output: OutputSettings = field(default_factory=OutputSettings)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> WorkRecordConfig:
        """
        Load configuration from a YAML file or discover the default one.

        Args:
            config_path: Explicit path to config file. If None, searches default locations.

        Returns:
            WorkRecordConfig instance with loaded settings

        Raises:
            FileNotFoundError: If explicit config_path is provided but doesn't exist
            ValueError: If the file is not valid YAML or has unknown fields
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            logger.info(f"Loading configuration from: {config_path}")
            return cls._load_from_file(config_path)

        found_config = cls._find_config_file()
        if found_config:
            logger.info(f"Found configuration file: {found_config}")
            return cls._load_from_file(found_config)

        logger.info("No configuration file found, using defaults")
        return cls._from_dict(cls._apply_env_overrides({}))

    @classmethod
    def _find_config_file(cls) -> Optional[Path]:
        """
        Search for configuration file in default locations.

        Search order:
            1. ./work-record.yaml
            2. ~/.work-record/config.yaml
            3. ~/.config/work-record/config.yaml
        """
        search_paths = [
            Path.cwd() / "work-record.yaml",
            Path.home() / ".work-record" / "config.yaml",
            Path.home() / ".config" / "work-record" / "config.yaml",
        ]

        for path in search_paths:
            if path.exists() and path.is_file():
                logger.debug(f"Found config file at: {path}")
                return path

        logger.debug("No config file found in default locations")
        return None

    @classmethod
    def _load_from_file(cls, config_path: Path) -> WorkRecordConfig:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            if not isinstance(data, dict):
                raise ValueError(f"Top level of {config_path} must be a mapping")

            data = cls._apply_env_overrides(data)
            config = cls._from_dict(data)

            logger.info("Configuration loaded successfully")
            return config

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise ValueError(f"Invalid YAML configuration: {e}") from e
        except TypeError as e:
            logger.error(f"Invalid configuration structure: {e}")
            raise ValueError(f"Configuration has invalid fields: {e}") from e

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> WorkRecordConfig:
        return cls(
            provider=ProviderSettings(**(data.get("provider") or {})),
            storage=StorageSettings(**(data.get("storage") or {})),
            output=OutputSettings(**(data.get("output") or {})),
        )

    @classmethod
    def _apply_env_overrides(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Override configuration values with environment variables.

        Supported environment variables:
            - WORK_RECORD_LOG_DIR: storage.log_dir
            - WORK_RECORD_OUTPUT_DIR: output.output_dir
            - WORK_RECORD_USE_LOCAL: provider.use_local (1/true/yes/on)
            - WORK_RECORD_OLLAMA_ENDPOINT: provider.local_endpoint
            - WORK_RECORD_OLLAMA_MODEL: provider.local_model
            - WORK_RECORD_LLM_API_URL: provider.remote_url
            - WORK_RECORD_LLM_API_KEY: provider.remote_api_key
            - WORK_RECORD_LLM_MODEL: provider.remote_model
        """
        for section in ("provider", "storage", "output"):
            if not isinstance(data.get(section), dict):
                data[section] = {}

        overrides = {
            "WORK_RECORD_LOG_DIR": ("storage", "log_dir"),
            "WORK_RECORD_OUTPUT_DIR": ("output", "output_dir"),
            "WORK_RECORD_OLLAMA_ENDPOINT": ("provider", "local_endpoint"),
            "WORK_RECORD_OLLAMA_MODEL": ("provider", "local_model"),
            "WORK_RECORD_LLM_API_URL": ("provider", "remote_url"),
            "WORK_RECORD_LLM_API_KEY": ("provider", "remote_api_key"),
            "WORK_RECORD_LLM_MODEL": ("provider", "remote_model"),
        }
        for env_name, (section, key) in overrides.items():
            if env_name in os.environ:
                data[section][key] = os.environ[env_name]
                # never echo the key itself
                shown = "***" if key == "remote_api_key" else os.environ[env_name]
                logger.debug(f"Applied {env_name} override: {shown}")

        if "WORK_RECORD_USE_LOCAL" in os.environ:
            value = os.environ["WORK_RECORD_USE_LOCAL"].strip().lower()
            data["provider"]["use_local"] = value in _TRUE_VALUES
            logger.debug(f"Applied WORK_RECORD_USE_LOCAL override: {value}")

        return data

    def save(self, config_path: Optional[Path] = None) -> Path:
        """
        Save configuration to a YAML file.

        Args:
            config_path: Path to save config file. If None, saves to ~/.work-record/config.yaml

        Returns:
            Path the configuration was written to
        """
        if config_path is None:
            config_path = Path.home() / ".work-record" / "config.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = asdict(self)

        try:
            with open(config_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

            logger.info(f"Configuration saved to: {config_path}")
            return config_path

        except OSError as e:
            logger.error(f"Failed to save configuration: {e}", exc_info=True)
            raise

    def get_log_directory(self) -> Path:
        """Return the log storage directory with ~ expanded."""
        return Path(os.path.expanduser(self.storage.log_dir))

    def get_output_directory(self) -> Path:
        """Return the summary output directory with ~ expanded."""
        return Path(os.path.expanduser(self.output.output_dir))


# Global configuration instance
_global_config: Optional[WorkRecordConfig] = None


def get_config() -> WorkRecordConfig:
    """
    Get or create the global configuration instance.

    Returns:
        Global WorkRecordConfig instance
    """
    global _global_config

    if _global_config is None:
        logger.debug("Initializing global configuration")
        _global_config = WorkRecordConfig.load()

    return _global_config


def reload_config(config_path: Optional[Path] = None) -> WorkRecordConfig:
    """
    Reload the global configuration from file.

    Args:
        config_path: Optional explicit path to config file

    Returns:
        Reloaded WorkRecordConfig instance
    """
    global _global_config

    logger.info("Reloading configuration")
    _global_config = WorkRecordConfig.load(config_path)

    return _global_config


def reset_config() -> WorkRecordConfig:
    """
    Reset the global configuration to defaults.

    Returns:
        New WorkRecordConfig instance with default values
    """
    global _global_config

    logger.info("Resetting configuration to defaults")
    _global_config = WorkRecordConfig()

    return _global_config
