# config/config_loader.py

import logging
import os
from pathlib import Path
from typing import Any, ClassVar

import yaml


def _get_project_root() -> Path:
    """Derive project root from this file's location: config/config_loader.py -> project root."""
    return Path(__file__).resolve().parent.parent


class ConfigLoader:
    """
    Singleton class to load and provide access to the YAML configuration.

    Observability:
        - Logs INFO on successful config load with path
        - Logs WARNING on missing config file (degraded mode)
        - Logs ERROR on YAML parse errors
        - Tracks config_status for health reporting
    """

    _config: ClassVar[dict[str, Any]] = {}
    _config_status: ClassVar[str] = "not_loaded"  # "ok", "degraded", "error"
    _config_path: ClassVar[str | None] = None

    @classmethod
    def load_config(cls, config_path: str | None = None) -> dict[str, Any]:
        """Load the configuration from a YAML file if not already loaded.

        Args:
            config_path: Path to the configuration file. If not provided,
                uses CONFIG_PATH env var or defaults to project_root/config/config.yaml.

        Returns:
            Dict[str, Any]: Loaded configuration dictionary.
        """
        if not cls._config:
            # Resolve config path with priority: explicit arg > env var > default
            if config_path is None:
                config_path = os.environ.get("CONFIG_PATH")
                if config_path:
                    logging.info(
                        "Config path overridden via CONFIG_PATH env: %s", config_path
                    )

            if config_path is None:
                config_path = str(_get_project_root() / "config" / "config.yaml")

            cls._config_path = config_path

            try:
                with Path(config_path).open(encoding="utf-8") as file:
                    cls._config = yaml.safe_load(file) or {}

                if not isinstance(cls._config, dict):
                    logging.warning(
                        "Configuration file didn't contain a mapping; "
                        "using empty config."
                    )
                    cls._config = {}
                    cls._config_status = "degraded"
                else:
                    cls._config_status = "ok"
                    logging.info(
                        "Configuration loaded successfully from %s", config_path
                    )

                cls._validate_logging_level()

            except FileNotFoundError:
                logging.warning(
                    "Configuration file not found at path: %s; "
                    "using empty/default config (degraded mode).",
                    config_path,
                )
                cls._config = {}
                cls._config_status = "degraded"
            except (yaml.YAMLError, UnicodeDecodeError) as e:
                logging.exception(
                    "Error reading configuration at %s: %s; "
                    "using empty/default config.",
                    config_path,
                    e,
                )
                cls._config = {}
                cls._config_status = "error"
        return cls._config

    @classmethod
    def get_config_status(cls) -> dict[str, Any]:
        """Return config health status for the heartbeat log."""
        return {
            "config_status": cls._config_status,
            "config_path": cls._config_path,
            "config_loaded": bool(cls._config),
        }

    @classmethod
    def _validate_logging_level(cls) -> None:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        logging_config = cls._config.get("logging") or {}
        level = str(logging_config.get("level", "INFO")).upper()
        if level not in valid_levels:
            logging.warning(
                f"Invalid logging level '{level}' in config. Defaulting to 'INFO'."
            )
            logging_cfg = cls._config.setdefault("logging", {})
            logging_cfg["level"] = "INFO"

    @classmethod
    def reset(cls) -> None:
        """Reset the config loader state (useful for testing)."""
        cls._config = {}
        cls._config_status = "not_loaded"
        cls._config_path = None
