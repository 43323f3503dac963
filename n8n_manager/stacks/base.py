"""Base stack class with the Compose lifecycle operations."""

import logging
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..core.command_runner import CommandResult
from ..core.config_loader import ConfigLoader, ManagerSettings
from ..core.docker_manager import ContainerStatus, DockerManager
from ..core.errors import CommandError, PreconditionError, PrerequisiteError


logger = logging.getLogger(__name__)

BACKUP_PREFIX = "backup_"
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
DIRECTORY_MODE = 0o755


@dataclass
class StackInfo:
    """Information about a stack."""
    name: str
    display_name: str
    services: list[str]
    data_dirs: list[str] = field(default_factory=list)


def backup_filename(now: Optional[datetime] = None) -> str:
    """Return the file name for a backup taken at the given time."""
    now = now or datetime.now()
    return f"{BACKUP_PREFIX}{now.strftime(BACKUP_TIMESTAMP_FORMAT)}.sql"


class BaseStack(ABC):
    """Base class for a Compose stack managed from a project directory."""

    def __init__(
        self,
        config_loader: ConfigLoader,
        docker_manager: Optional[DockerManager] = None
    ):
        """Initialize base stack."""
        self.config_loader = config_loader
        self.settings: ManagerSettings = config_loader.load_settings()
        self.docker = docker_manager or DockerManager(
            project_dir=config_loader.project_dir,
            compose_file=self.settings.compose_file,
            compose_command=self.settings.compose_command or None,
            env_file=self.settings.env_file,
        )

    @property
    @abstractmethod
    def info(self) -> StackInfo:
        """Return stack information."""
        pass

    @abstractmethod
    def generate_compose(self) -> str:
        """Generate docker-compose.yml content."""
        pass

    @abstractmethod
    def generate_env_template(self) -> str:
        """Generate the environment template content."""
        pass

    @property
    def project_dir(self) -> Path:
        return self.config_loader.project_dir

    @staticmethod
    def _check(result: CommandResult) -> CommandResult:
        """Raise CommandError unless the command succeeded."""
        if not result.success:
            raise CommandError(result.command, result.return_code, result.stderr)
        return result

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def check_prerequisites(self) -> None:
        """Verify Docker is installed and running and Compose is available."""
        if not self.docker.is_docker_installed():
            raise PrerequisiteError(
                "Docker is not installed. Please install Docker first.",
                hint="Visit: https://docs.docker.com/get-docker/",
            )

        if not self.docker.is_docker_running():
            raise PrerequisiteError("Docker is not running. Please start Docker first.")

        if not self.docker.is_compose_installed():
            raise PrerequisiteError(
                "Docker Compose is not installed. Please install Docker Compose first.",
                hint="Visit: https://docs.docker.com/compose/install/",
            )

    def create_directories(self) -> list[Path]:
        """Create the persisted data directories with fixed permissions."""
        data_path = self.config_loader.data_path
        data_path.mkdir(parents=True, exist_ok=True)
        data_path.chmod(DIRECTORY_MODE)

        created = []
        for relative in self.info.data_dirs:
            directory = data_path / relative
            directory.mkdir(parents=True, exist_ok=True)
            (directory / ".gitkeep").touch()
            directory.chmod(DIRECTORY_MODE)
            created.append(directory)
        return created

    def write_missing_files(self) -> list[Path]:
        """Write the environment template and topology if they are absent."""
        written = []
        template_path = self.config_loader.template_path
        if not template_path.exists():
            template_path.write_text(self.generate_env_template())
            written.append(template_path)

        compose_path = self.config_loader.compose_path
        if not compose_path.exists():
            compose_path.write_text(self.generate_compose())
            written.append(compose_path)

        return written

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Bring up the full topology in the background."""
        self.config_loader.require_env()
        self._check(self.docker.compose_up(detach=True))

    def stop(self) -> None:
        """Tear down all services."""
        self._check(self.docker.compose_down())

    def restart(self) -> None:
        """Restart all services."""
        self._check(self.docker.compose_restart())

    def status(self) -> list[ContainerStatus]:
        """Get per-service container state."""
        return self.docker.compose_ps()

    def print_status(self) -> None:
        """Print plain Compose status output."""
        self._check(self.docker.compose_ps_raw())

    def logs(self, service: Optional[str] = None) -> None:
        """Follow logs for all services or a single one."""
        self._check(self.docker.compose_logs(service=service, follow=True))

    def scale(self, replicas: str) -> None:
        """Set the worker replica count; the value is passed through as given."""
        if not replicas:
            raise PreconditionError(
                "Please specify number of workers.",
                hint="Example: n8n-manager scale 3",
            )
        self.config_loader.require_env()
        self._check(self.docker.compose_up(
            detach=True,
            scale={self.settings.worker_service: replicas},
        ))

    def update(self) -> None:
        """Pull newer images and re-apply the topology."""
        self.config_loader.require_env()
        self._check(self.docker.compose_pull())
        self._check(self.docker.compose_up(detach=True))

    def cleanup(self) -> None:
        """Remove containers, networks and volumes, then prune the system."""
        self._check(self.docker.compose_down(remove_volumes=True))
        self._check(self.docker.system_prune())

    # -------------------------------------------------------------------------
    # Backup and restore
    # -------------------------------------------------------------------------

    def backup(self, now: Optional[datetime] = None) -> Path:
        """Dump the database into a timestamped file in the project directory."""
        backup_path = self.project_dir / backup_filename(now)
        command = f"pg_dump -U {shlex.quote(self.settings.db_user)} {shlex.quote(self.settings.db_name)}"
        logger.debug("Writing backup to %s", backup_path)

        self._check(self.docker.compose_exec(
            self.settings.db_service, command, stdout_path=backup_path.resolve()
        ))
        return backup_path

    def resolve_backup_file(self, backup_file: Optional[str]) -> Path:
        """Validate a restore argument and return its path."""
        if not backup_file:
            raise PreconditionError(
                "Please specify backup file.",
                hint="Example: n8n-manager restore backup_20240101_120000.sql",
            )

        path = Path(backup_file)
        if not path.is_absolute() and not path.exists():
            path = self.project_dir / path
        if not path.is_file():
            raise PreconditionError(f"Backup file not found: {backup_file}")
        return path

    @property
    def restore_services(self) -> list[str]:
        """Services stopped while the database is being restored."""
        return [self.settings.app_service, self.settings.worker_service]

    def restore(
        self,
        backup_file: str,
        progress_callback: Callable[[str], None] = None,
    ) -> None:
        """
        Stream a dump into the database while the application is stopped.

        There is no rollback: a failure partway leaves the database partially
        restored and the application services stopped.

        Args:
            backup_file: Path of the SQL dump, absolute or project-relative
            progress_callback: Optional callback for progress updates
        """
        def log(msg: str):
            if progress_callback:
                progress_callback(msg)

        path = self.resolve_backup_file(backup_file)
        self.config_loader.require_env()
        command = f"psql -U {shlex.quote(self.settings.db_user)} {shlex.quote(self.settings.db_name)}"

        log("Stopping n8n to restore database...")
        self._check(self.docker.compose_stop(self.restore_services))

        log(f"Restoring database from: {path.name}")
        self._check(self.docker.compose_exec(
            self.settings.db_service, command, stdin_path=path.resolve()
        ))

        log("Starting services...")
        self._check(self.docker.compose_start(self.restore_services))
