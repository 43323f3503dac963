"""Docker and Docker Compose management on the local host."""

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .command_runner import CommandResult, CommandRunner, get_command_runner


COMPOSE_PS_FORMAT = "{{.Service}}|{{.Name}}|{{.Image}}|{{.Status}}|{{.Ports}}"


@dataclass
class ContainerStatus:
    """Status of a Docker Compose container."""
    service: str
    name: str
    image: str
    status: str
    ports: str
    running: bool


class DockerManager:
    """Manages Docker Compose operations for a project directory."""

    def __init__(
        self,
        project_dir: Path,
        compose_file: str = "docker-compose.yml",
        compose_command: Optional[str] = None,
        env_file: Optional[str] = None,
        runner: Optional[CommandRunner] = None
    ):
        """Initialize Docker manager."""
        self.project_dir = Path(project_dir)
        self.compose_file = compose_file
        self.env_file = env_file
        self.runner = runner or get_command_runner()
        self._compose_command = compose_command

    def is_docker_installed(self) -> bool:
        """Check if Docker is installed."""
        return self.runner.run("docker --version").success

    def is_docker_running(self) -> bool:
        """Check if the Docker engine answers."""
        return self.runner.run("docker info").success

    def get_docker_version(self) -> Optional[str]:
        """Get the installed Docker version."""
        result = self.runner.run("docker --version")
        if result.success:
            return result.stdout
        return None

    def detect_compose_command(self) -> Optional[str]:
        """Return the available Compose command, or None."""
        # Try docker compose (v2) first
        if self.runner.run("docker compose version").success:
            return "docker compose"
        # Fall back to docker-compose (v1)
        if self.runner.run("docker-compose --version").success:
            return "docker-compose"
        return None

    def is_compose_installed(self) -> bool:
        """Check if Docker Compose is installed."""
        return self.compose_command is not None

    @property
    def compose_command(self) -> Optional[str]:
        """Compose command in use, detected on first access."""
        if self._compose_command is None:
            self._compose_command = self.detect_compose_command()
        return self._compose_command

    def _compose(self, args: str) -> str:
        """Build a Compose command line run inside the project directory."""
        command = self.compose_command or "docker compose"
        command += f" -f {shlex.quote(self.compose_file)}"
        # Compose reads .env on its own; anything else must be named
        if self.env_file and self.env_file != ".env":
            command += f" --env-file {shlex.quote(self.env_file)}"
        return f"cd {shlex.quote(str(self.project_dir))} && {command} {args}"

    def compose_up(
        self,
        detach: bool = True,
        scale: Optional[dict[str, str]] = None
    ) -> CommandResult:
        """Run docker compose up, optionally scaling services."""
        args = "up"
        if detach:
            args += " -d"
        for service, replicas in (scale or {}).items():
            args += f" --scale {shlex.quote(f'{service}={replicas}')}"
        return self.runner.run(self._compose(args), hide=False)

    def compose_down(self, remove_volumes: bool = False) -> CommandResult:
        """Run docker compose down."""
        args = "down"
        if remove_volumes:
            args += " -v"
        return self.runner.run(self._compose(args), hide=False)

    def compose_restart(self) -> CommandResult:
        """Restart all services."""
        return self.runner.run(self._compose("restart"), hide=False)

    def compose_stop(self, services: list[str]) -> CommandResult:
        """Stop the given services without removing them."""
        names = " ".join(shlex.quote(s) for s in services)
        return self.runner.run(self._compose(f"stop {names}"), hide=False)

    def compose_start(self, services: list[str]) -> CommandResult:
        """Start previously stopped services."""
        names = " ".join(shlex.quote(s) for s in services)
        return self.runner.run(self._compose(f"start {names}"), hide=False)

    def compose_pull(self) -> CommandResult:
        """Pull latest images for all services."""
        return self.runner.run(self._compose("pull"), hide=False)

    def compose_logs(
        self,
        service: Optional[str] = None,
        follow: bool = True
    ) -> CommandResult:
        """Stream logs to the terminal; blocks while following."""
        args = "logs"
        if follow:
            args += " -f"
        if service:
            args += f" {shlex.quote(service)}"
        return self.runner.run(self._compose(args), hide=False)

    def compose_ps(self) -> list[ContainerStatus]:
        """Get container status for the project."""
        result = self.runner.run(
            self._compose(f"ps --format {shlex.quote(COMPOSE_PS_FORMAT)}")
        )

        containers = []
        if result.success and result.stdout:
            for line in result.stdout.split('\n'):
                if '|' in line:
                    parts = line.split('|')
                    if len(parts) >= 5:
                        running = "Up" in parts[3] or "running" in parts[3].lower()
                        containers.append(ContainerStatus(
                            service=parts[0],
                            name=parts[1],
                            image=parts[2],
                            status=parts[3],
                            ports=parts[4],
                            running=running
                        ))
        return containers

    def compose_ps_raw(self) -> CommandResult:
        """Print plain docker compose ps output to the terminal."""
        return self.runner.run(self._compose("ps"), hide=False)

    def compose_exec(
        self,
        service: str,
        command: str,
        stdin_path: Optional[Path] = None,
        stdout_path: Optional[Path] = None
    ) -> CommandResult:
        """Run a command inside a service container without a TTY.

        Dump files are attached with shell redirection.
        """
        args = f"exec -T {shlex.quote(service)} {command}"
        if stdin_path is not None:
            args += f" < {shlex.quote(str(stdin_path))}"
        if stdout_path is not None:
            args += f" > {shlex.quote(str(stdout_path))}"
        return self.runner.run(self._compose(args), hide=False)

    def system_prune(self) -> CommandResult:
        """Remove unused Docker data."""
        return self.runner.run("docker system prune -f", hide=False)
