"""Interactive first-run configuration prompts."""

from dataclasses import dataclass

import typer

from ..core.env_file import EnvironmentConfig
from ..core.keygen import GeneratedKeys, generate_password
from .output import console, log_info, log_warning


DEFAULT_SMTP_PORT = "587"


@dataclass
class SetupAnswers:
    """Values collected from the operator during setup."""
    postgres_password: str
    domain: str
    license_key: str
    smtp_host: str = ""
    smtp_port: str = DEFAULT_SMTP_PORT
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_sender: str = ""


def _ask(text: str, hidden: bool = False, default: str = "") -> str:
    """Prompt for a value; an empty answer returns the default."""
    return typer.prompt(
        text,
        default=default,
        show_default=bool(default),
        hide_input=hidden,
    ).strip()


def prompt_answers() -> SetupAnswers:
    """Ask for database, domain, license and optional email settings."""
    postgres_password = _ask("Enter PostgreSQL password (or press Enter for random)", hidden=True)
    if not postgres_password:
        postgres_password = generate_password()
        log_info("Generated random PostgreSQL password")

    domain = _ask("Enter your domain name (or press Enter for localhost)")

    license_key = _ask("Enter your n8n Enterprise license key (required)", hidden=True)
    if not license_key:
        log_warning("No license key provided. You can add it later in the .env file.")

    console.print()
    log_info("Email configuration (optional - press Enter to skip):")
    answers = SetupAnswers(
        postgres_password=postgres_password,
        domain=domain,
        license_key=license_key,
    )
    answers.smtp_host = _ask("SMTP Host")
    answers.smtp_port = _ask("SMTP Port", default=DEFAULT_SMTP_PORT)
    answers.smtp_user = _ask("SMTP User")
    answers.smtp_password = _ask("SMTP Password", hidden=True)
    answers.smtp_sender = _ask("Sender Email")
    return answers


def build_environment(
    base: EnvironmentConfig,
    keys: GeneratedKeys,
    answers: SetupAnswers,
) -> EnvironmentConfig:
    """Apply generated keys and operator answers on top of the template values."""
    config = base.model_copy()
    config.postgres_password = answers.postgres_password
    config.encryption_key = keys.encryption_key
    config.jwt_secret = keys.jwt_secret
    if answers.license_key:
        config.license_key = answers.license_key
    config.apply_domain(answers.domain)

    # Email settings are only applied when a relay host was given
    if answers.smtp_host:
        config.smtp_host = answers.smtp_host
        config.smtp_port = answers.smtp_port or DEFAULT_SMTP_PORT
        config.smtp_user = answers.smtp_user
        config.smtp_password = answers.smtp_password
        config.smtp_sender = answers.smtp_sender

    # Assignments above bypass validation
    return EnvironmentConfig.model_validate(config.model_dump())
