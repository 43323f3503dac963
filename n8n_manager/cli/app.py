"""Typer application exposing the deployment controller commands."""

import functools
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table
from typer.core import TyperGroup

from ..core.config_loader import ConfigLoader
from ..core.errors import ManagerError
from ..core.keygen import generate_keys
from ..stacks.definitions import N8NEnterpriseStack
from .output import configure_logging, console, log_error, log_info, log_success, log_warning
from .setup_wizard import build_environment, prompt_answers


PROG = "n8n-manager"

USAGE = f"""n8n Enterprise Management

Usage: {PROG} [command]

Commands:
  setup       Auto-setup n8n Enterprise (interactive)
  start       Start all services
  stop        Stop all services
  restart     Restart all services
  status      Show service status
  logs [svc]  Show logs (optionally for specific service)
  backup      Create database backup
  restore <f> Restore database from backup file
  scale <n>   Scale workers to n replicas
  update      Update Docker images
  keys        Generate encryption keys
  cleanup     Remove all containers and volumes
  help        Show this help message

Examples:
  {PROG} setup
  {PROG} start
  {PROG} logs n8n
  {PROG} scale 4
  {PROG} backup
  {PROG} restore backup_20240101_120000.sql
"""


def print_usage() -> None:
    console.print(USAGE, markup=False)


class ManagerGroup(TyperGroup):
    """Command group that answers unknown commands with the full usage text."""

    def resolve_command(self, ctx: typer.Context, args: list[str]):
        cmd_name = args[0] if args else None
        if cmd_name and not cmd_name.startswith("-") and self.get_command(ctx, cmd_name) is None:
            log_error(f"Unknown command: {cmd_name}")
            console.print()
            print_usage()
            ctx.exit(1)
        return super().resolve_command(ctx, args)


app = typer.Typer(
    cls=ManagerGroup,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Manage a self-hosted n8n Enterprise deployment with Docker Compose.",
)


def handle_errors(func):
    """Report controller errors and exit non-zero."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ManagerError as e:
            log_error(e.message)
            if e.hint:
                console.print(e.hint, markup=False)
            raise typer.Exit(code=1)

    return wrapper


def _stack(ctx: typer.Context) -> N8NEnterpriseStack:
    return ctx.obj


def _confirm(question: str, default: bool = False) -> bool:
    return typer.confirm(question, default=default)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    project_dir: Optional[Path] = typer.Option(
        None,
        "--project-dir",
        "-C",
        envvar="N8N_MANAGER_DIR",
        file_okay=False,
        help="Deployment directory (defaults to the current directory).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every delegated command."),
):
    """Manage a self-hosted n8n Enterprise deployment with Docker Compose."""
    configure_logging(verbose)

    try:
        ctx.obj = N8NEnterpriseStack(ConfigLoader(project_dir))
    except ManagerError as e:
        log_error(e.message)
        raise typer.Exit(code=1)

    if ctx.invoked_subcommand is None:
        log_info("Welcome to n8n Enterprise Management!")
        console.print()
        log_info(f"For first-time setup, run: {PROG} setup")
        console.print()
        print_usage()
        raise typer.Exit(code=1)


def _start_services(stack: N8NEnterpriseStack) -> str:
    """Start the stack and return the URL it is served on."""
    stack.config_loader.require_env()
    url = stack.config_loader.load_environment().webhook_url

    log_info(f"Starting {stack.info.display_name} stack...")
    stack.start()
    log_success("Services started successfully!")

    console.print()
    log_info(f"n8n will be available at: {url}")
    log_info(f"Use '{PROG} logs' to view logs")
    return url


@app.command()
@handle_errors
def setup(ctx: typer.Context):
    """Auto-setup n8n Enterprise (interactive)."""
    stack = _stack(ctx)
    loader = stack.config_loader

    log_info("Starting n8n Enterprise auto-setup...")
    console.print()

    log_info("Checking prerequisites...")
    stack.check_prerequisites()
    docker_version = stack.docker.get_docker_version()
    if docker_version:
        log_info(docker_version)
    log_success("All prerequisites are met!")
    console.print()

    log_info("Creating data directories...")
    stack.create_directories()
    log_success("Data directories created successfully!")
    for path in stack.write_missing_files():
        log_info(f"Created {path.name}")
    console.print()

    if loader.env_exists():
        log_warning(f"{loader.env_path.name} file already exists!")
        if not _confirm("Do you want to overwrite it?", default=False):
            log_info(f"Setup cancelled. Using existing {loader.env_path.name} file.")
            return

    loader.copy_template()
    log_success(f"{loader.env_path.name} file created from template!")
    console.print()

    log_info("Generating encryption keys...")
    keys = generate_keys()
    console.print()

    log_info("Let's configure your n8n Enterprise setup...")
    console.print()
    answers = prompt_answers()

    log_info("Updating configuration file...")
    config = build_environment(loader.load_environment(), keys, answers)
    loader.save_environment(config)
    log_success("Configuration completed!")
    console.print()

    if not _confirm("Do you want to start the services now?", default=True):
        log_info(f"Setup completed! Run '{PROG} start' when ready.")
        return

    console.print()
    url = _start_services(stack)
    console.print()
    log_success("Setup completed successfully!")
    console.print()
    log_info("Next steps:")
    console.print(f"1. Open your browser and go to: {url}", markup=False)
    console.print("2. Follow the setup wizard to create your admin account")
    console.print("3. Start inviting team members!")
    console.print()
    if not config.is_local:
        log_warning(f"For production deployment with domain '{config.host}':")
        console.print("- Make sure your domain points to this server")
        console.print("- Make sure ports 80 and 443 are reachable for Let's Encrypt")
        console.print(f"- Set ACME_EMAIL in {loader.env_path.name} to receive certificate notices")


@app.command()
@handle_errors
def start(ctx: typer.Context):
    """Start all services."""
    _start_services(_stack(ctx))


@app.command()
@handle_errors
def stop(ctx: typer.Context):
    """Stop all services."""
    stack = _stack(ctx)
    log_info(f"Stopping {stack.info.display_name} stack...")
    stack.stop()
    log_success("Services stopped successfully!")


@app.command()
@handle_errors
def restart(ctx: typer.Context):
    """Restart all services."""
    stack = _stack(ctx)
    log_info(f"Restarting {stack.info.display_name} stack...")
    stack.restart()
    log_success("Services restarted successfully!")


@app.command()
@handle_errors
def status(ctx: typer.Context):
    """Show service status."""
    stack = _stack(ctx)
    log_info("Service status:")

    containers = stack.status()
    if not containers:
        stack.print_status()
        return

    table = Table()
    table.add_column("Service", style="bright_green", no_wrap=True)
    table.add_column("Container")
    table.add_column("Status")
    table.add_column("Ports", style="dim")
    for container in containers:
        state = "green" if container.running else "red"
        table.add_row(
            escape(container.service),
            escape(container.name),
            f"[{state}]{escape(container.status)}[/{state}]",
            escape(container.ports),
        )
    console.print(table)


@app.command()
@handle_errors
def logs(
    ctx: typer.Context,
    service: Optional[str] = typer.Argument(None, help="Only show logs of this service."),
):
    """Show logs (optionally for specific service)."""
    _stack(ctx).logs(service)


@app.command()
@handle_errors
def backup(ctx: typer.Context):
    """Create database backup."""
    log_info("Creating database backup...")
    backup_path = _stack(ctx).backup()
    log_success(f"Database backup created: {backup_path.name}")


@app.command()
@handle_errors
def restore(
    ctx: typer.Context,
    backup_file: Optional[str] = typer.Argument(None, help="SQL dump produced by 'backup'."),
):
    """Restore database from backup file."""
    stack = _stack(ctx)
    stack.resolve_backup_file(backup_file)
    stack.config_loader.require_env()

    log_warning("This will overwrite the current database!")
    if not _confirm("Are you sure?", default=False):
        log_info("Restore cancelled")
        return

    stack.restore(backup_file, progress_callback=log_info)
    log_success("Database restored successfully!")


@app.command()
@handle_errors
def scale(
    ctx: typer.Context,
    replicas: Optional[str] = typer.Argument(None, help="Number of worker replicas."),
):
    """Scale workers to n replicas."""
    stack = _stack(ctx)
    if replicas:
        log_info(f"Scaling workers to {replicas} replicas...")
    stack.scale(replicas)
    log_success(f"Workers scaled to {replicas} replicas")


@app.command()
@handle_errors
def update(ctx: typer.Context):
    """Update Docker images."""
    log_info("Updating Docker images...")
    _stack(ctx).update()
    log_success("Images updated successfully!")


@app.command()
def keys():
    """Generate encryption keys."""
    log_info("Generating secure encryption keys...")
    generated = generate_keys()
    console.print()
    console.print("Generated keys (add these to your .env file):")
    console.print(f"N8N_ENCRYPTION_KEY={generated.encryption_key}", markup=False, soft_wrap=True)
    console.print(f"N8N_USER_MANAGEMENT_JWT_SECRET={generated.jwt_secret}", markup=False, soft_wrap=True)


@app.command()
@handle_errors
def cleanup(ctx: typer.Context):
    """Remove all containers and volumes."""
    log_warning("This will remove all containers, networks, and volumes!")
    if not _confirm("Are you sure?", default=False):
        log_info("Cleanup cancelled")
        return

    _stack(ctx).cleanup()
    log_success("Cleanup completed!")


@app.command("help")
def help_command():
    """Show this help message."""
    print_usage()


def run() -> None:
    """Console script entry point."""
    app(prog_name=PROG)
