"""Core modules for n8n Manager."""

from .command_runner import CommandResult, CommandRunner, get_command_runner
from .config_loader import ConfigLoader, ManagerSettings
from .docker_manager import ContainerStatus, DockerManager
from .env_file import EnvFile, EnvironmentConfig
from .errors import CommandError, ManagerError, PreconditionError, PrerequisiteError
from .keygen import GeneratedKeys, generate_keys, generate_password, generate_secret

__all__ = [
    "CommandResult",
    "CommandRunner",
    "get_command_runner",
    "ConfigLoader",
    "ManagerSettings",
    "ContainerStatus",
    "DockerManager",
    "EnvFile",
    "EnvironmentConfig",
    "CommandError",
    "ManagerError",
    "PreconditionError",
    "PrerequisiteError",
    "GeneratedKeys",
    "generate_keys",
    "generate_password",
    "generate_secret",
]
