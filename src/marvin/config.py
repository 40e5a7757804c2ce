"""Configuration for Marvin.

Two layers live here:

- ``Settings``: process-level settings read from ``MARVIN_*`` environment
  variables (and an optional ``.env`` file).
- ``ProjectConfig``: the per-project ``config.yaml`` stored inside the
  project directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILE = "config.yaml"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="MARVIN_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    project_dir_name: str = ".marvin"
    default_conflict: str = "renumber"
    log_level: str = "INFO"
    log_dir: Optional[str] = None


settings = Settings()


class GitConfig(BaseModel):
    remote: Optional[str] = None


class PersonaConfigOverride(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    enabled: Optional[bool] = None
    extra_instructions: Optional[str] = Field(default=None, alias="extraInstructions")


class ProjectConfig(BaseModel):
    """Contents of ``<project>/.marvin/config.yaml``.

    Unknown top-level keys (methodology-specific state such as ``aem``) are
    preserved so that a load/save cycle does not drop them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    methodology: Optional[str] = None
    personas: Dict[str, PersonaConfigOverride] = Field(default_factory=dict)
    document_types: Optional[List[str]] = Field(default=None, alias="documentTypes")
    git: Optional[GitConfig] = None
    skills: Optional[Dict[str, List[str]]] = None

    def to_yaml_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def load_project_config(marvin_dir: Path) -> ProjectConfig:
    """Load and validate the project config.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or lacks a name
    """
    config_path = Path(marvin_dir) / PROJECT_CONFIG_FILE
    if not config_path.exists():
        raise ConfigError(f"Project config not found at {config_path}. Initialize a project first.")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse project config at {config_path}: {e}") from e

    if not isinstance(data, dict) or not data.get("name"):
        raise ConfigError("Project config must have a 'name' field.")

    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid project config at {config_path}: {e}") from e


def save_project_config(marvin_dir: Path, config: ProjectConfig) -> Path:
    config_path = Path(marvin_dir) / PROJECT_CONFIG_FILE
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_yaml_dict(), f, default_flow_style=False, sort_keys=False)
    logger.debug(f"Wrote project config: {config_path}")
    return config_path
