"""
Configuration loading with validation.

Supports YAML and JSON formats with JSON Schema validation, followed by
construction of the typed PlantConfig model.
"""

import yaml
import json
from pathlib import Path
from typing import Dict, Any, Optional
import jsonschema
import logging

from pydantic import ValidationError

from chiller_plant.config.models import PlantConfig
from chiller_plant.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    Configuration loader with schema validation.

    Example:
        loader = ConfigLoader()
        config = loader.load_yaml("configs/chiller_baseline.yaml")
    """

    def __init__(self, schema_path: Optional[Path] = None):
        """
        Initialize configuration loader.

        Args:
            schema_path: Path to JSON schema file (uses default if None)
        """
        if schema_path is None:
            schema_path = Path(__file__).parent / "schemas" / "chiller_schema_v1.json"

        self.schema_path = Path(schema_path)
        self.schema = self._load_schema()

    def _load_schema(self) -> Dict[str, Any]:
        """Load JSON schema from file."""
        try:
            with open(self.schema_path, 'r') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load schema from {self.schema_path}: {e}")
            return {}

    def load_yaml(self, config_path: Path | str) -> PlantConfig:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            PlantConfig instance

        Raises:
            ConfigurationError: If file not found or validation fails
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML: {e}") from e

        return self.dict_to_config(config_dict)

    def load_json(self, config_path: Path | str) -> PlantConfig:
        """
        Load configuration from JSON file.

        Args:
            config_path: Path to JSON configuration file

        Returns:
            PlantConfig instance
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config_dict = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Failed to parse JSON: {e}") from e

        return self.dict_to_config(config_dict)

    def dict_to_config(self, config_dict: Any) -> PlantConfig:
        """
        Convert dictionary to PlantConfig with validation.

        Args:
            config_dict: Configuration dictionary from YAML/JSON

        Returns:
            PlantConfig instance

        Raises:
            ConfigurationError: If schema or model validation fails
        """
        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping, got {type(config_dict).__name__}"
            )

        # JSON Schema validation
        if self.schema:
            try:
                jsonschema.validate(instance=config_dict, schema=self.schema)
                logger.debug("JSON schema validation passed")
            except jsonschema.ValidationError as e:
                location = "/".join(str(p) for p in e.absolute_path) or "<root>"
                raise ConfigurationError(f"Schema validation failed at {location}: {e.message}") from e

        try:
            config = PlantConfig.model_validate(config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        logger.info(
            f"Loaded configuration: {config.name} v{config.version} "
            f"({len(config.chillers)} chillers, {len(config.curves)} curves)"
        )
        return config


def load_plant_config(config_path: Path | str) -> PlantConfig:
    """
    Convenience function to load plant configuration.

    Automatically detects YAML or JSON based on file extension.

    Args:
        config_path: Path to configuration file (.yaml, .yml, or .json)

    Returns:
        Validated PlantConfig instance

    Example:
        config = load_plant_config("configs/chiller_baseline.yaml")
    """
    loader = ConfigLoader()
    config_path = Path(config_path)

    if config_path.suffix in ['.yaml', '.yml']:
        return loader.load_yaml(config_path)
    elif config_path.suffix == '.json':
        return loader.load_json(config_path)
    else:
        raise ConfigurationError(f"Unsupported file format: {config_path.suffix}")
