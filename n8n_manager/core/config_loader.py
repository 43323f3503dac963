"""Configuration loader for manager settings and the environment file."""

import shutil
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from .env_file import EnvFile, EnvironmentConfig
from .errors import ManagerError, PreconditionError


SETTINGS_FILE = "n8n-manager.yaml"


class ManagerSettings(BaseModel):
    """Settings of the management tool itself."""
    compose_file: str = "docker-compose.yml"
    compose_command: str = ""  # Empty means auto-detect
    env_file: str = ".env"
    env_template: str = ".env.example"
    data_dir: str = "data"
    app_service: str = "n8n"
    worker_service: str = "n8n-worker"
    db_service: str = "postgres"
    db_user: str = "n8n"
    db_name: str = "n8n"
    default_port: int = 5678

    @field_validator('app_service', 'worker_service', 'db_service', 'db_user', 'db_name')
    @classmethod
    def validate_name(cls, v):
        """Validate service and database names are non-empty."""
        if not v.strip():
            raise ValueError("Name must not be empty")
        return v


class ConfigLoader:
    """Loads and manages the files of a deployment directory."""

    def __init__(self, project_dir: Optional[Path] = None):
        """Initialize config loader with the deployment directory."""
        if project_dir is None:
            project_dir = Path.cwd()
        self.project_dir = Path(project_dir)
        self._settings: Optional[ManagerSettings] = None

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML file from the project directory."""
        filepath = self.project_dir / filename
        if not filepath.exists():
            return {}

        with open(filepath) as f:
            return yaml.safe_load(f) or {}

    def load_settings(self, reload: bool = False) -> ManagerSettings:
        """Load manager settings, falling back to defaults."""
        if self._settings is None or reload:
            data = self._load_yaml(SETTINGS_FILE)
            try:
                self._settings = ManagerSettings(**data)
            except ValidationError as e:
                raise ManagerError(f"Invalid {SETTINGS_FILE}: {e}")
        return self._settings

    @property
    def env_path(self) -> Path:
        return self.project_dir / self.load_settings().env_file

    @property
    def template_path(self) -> Path:
        return self.project_dir / self.load_settings().env_template

    @property
    def compose_path(self) -> Path:
        return self.project_dir / self.load_settings().compose_file

    @property
    def data_path(self) -> Path:
        return self.project_dir / self.load_settings().data_dir

    def env_exists(self) -> bool:
        """Check if the environment file exists."""
        return self.env_path.is_file()

    def require_env(self) -> None:
        """Abort unless the environment file exists."""
        if not self.env_exists():
            raise PreconditionError(
                f"{self.env_path.name} file not found.",
                hint=(
                    f"Run 'n8n-manager setup' or copy {self.template_path.name} "
                    f"to {self.env_path.name} and edit it before starting services."
                ),
            )

    def copy_template(self) -> None:
        """Copy the environment template over the environment file."""
        if not self.template_path.is_file():
            raise PreconditionError(
                f"{self.template_path.name} not found!",
                hint="Please make sure all files are present.",
            )
        shutil.copyfile(self.template_path, self.env_path)

    def load_env_file(self) -> EnvFile:
        """Load the raw environment document."""
        return EnvFile.load(self.env_path)

    def load_environment(self) -> EnvironmentConfig:
        """Load the typed environment configuration."""
        self.require_env()
        try:
            return EnvironmentConfig.from_env(self.load_env_file().as_dict())
        except ValidationError as e:
            raise ManagerError(f"Invalid {self.env_path.name}: {e}")

    def save_environment(self, config: EnvironmentConfig) -> None:
        """Write the typed configuration into the environment file.

        Lines for keys the model does not know about are left untouched.
        """
        env_file = self.load_env_file() if self.env_exists() else EnvFile()
        env_file.update(config.to_env())
        env_file.save(self.env_path)
