"""n8n Enterprise stack definition."""

import yaml

from ...core.env_file import EnvironmentConfig, format_value
from ..base import BaseStack, StackInfo


N8N_IMAGE = "docker.n8n.io/n8nio/n8n:latest"
POSTGRES_IMAGE = "postgres:16-alpine"
REDIS_IMAGE = "redis:7-alpine"
TRAEFIK_IMAGE = "traefik:v3.1"

ENV_TEMPLATE_SECTIONS = [
    ("Database", ["POSTGRES_USER", "POSTGRES_DB", "POSTGRES_PASSWORD"]),
    ("Security (generate with: n8n-manager keys)", [
        "N8N_ENCRYPTION_KEY",
        "N8N_USER_MANAGEMENT_JWT_SECRET",
    ]),
    ("Enterprise license", ["N8N_LICENSE_ACTIVATION_KEY"]),
    ("Host", [
        "N8N_HOST",
        "N8N_PROTOCOL",
        "WEBHOOK_URL",
        "N8N_SECURE_COOKIE",
        "GENERIC_TIMEZONE",
        "ACME_EMAIL",
    ]),
    ("Email (optional)", [
        "N8N_EMAIL_MODE",
        "N8N_SMTP_HOST",
        "N8N_SMTP_PORT",
        "N8N_SMTP_USER",
        "N8N_SMTP_PASS",
        "N8N_SMTP_SENDER",
    ]),
]

# Shared by the main node and the workers
N8N_ENVIRONMENT = {
    "DB_TYPE": "postgresdb",
    "DB_POSTGRESDB_HOST": "postgres",
    "DB_POSTGRESDB_PORT": "5432",
    "DB_POSTGRESDB_DATABASE": "${POSTGRES_DB}",
    "DB_POSTGRESDB_USER": "${POSTGRES_USER}",
    "DB_POSTGRESDB_PASSWORD": "${POSTGRES_PASSWORD}",
    "EXECUTIONS_MODE": "queue",
    "QUEUE_BULL_REDIS_HOST": "redis",
    "QUEUE_BULL_REDIS_PORT": "6379",
    "QUEUE_HEALTH_CHECK_ACTIVE": "true",
    "N8N_ENCRYPTION_KEY": "${N8N_ENCRYPTION_KEY}",
    "N8N_USER_MANAGEMENT_JWT_SECRET": "${N8N_USER_MANAGEMENT_JWT_SECRET}",
    "N8N_LICENSE_ACTIVATION_KEY": "${N8N_LICENSE_ACTIVATION_KEY}",
    "GENERIC_TIMEZONE": "${GENERIC_TIMEZONE}",
}


class N8NEnterpriseStack(BaseStack):
    """n8n in queue mode with PostgreSQL, Redis and Traefik."""

    @property
    def info(self) -> StackInfo:
        return StackInfo(
            name="n8n",
            display_name="n8n Enterprise",
            services=[
                "traefik",
                self.settings.db_service,
                "redis",
                self.settings.app_service,
                self.settings.worker_service,
            ],
            data_dirs=[
                "postgres",
                "postgres/data",
                "redis",
                "redis/data",
                "n8n",
            ],
        )

    def generate_env_template(self) -> str:
        values = EnvironmentConfig().to_env()
        lines = [
            "# n8n Enterprise configuration",
            "# Copy to .env or run 'n8n-manager setup'",
            "",
        ]
        for title, keys in ENV_TEMPLATE_SECTIONS:
            lines.append(f"# {title}")
            lines.extend(f"{key}={format_value(values[key])}" for key in keys)
            lines.append("")
        return "\n".join(lines)

    def _n8n_depends_on(self) -> dict:
        return {
            self.settings.db_service: {"condition": "service_healthy"},
            "redis": {"condition": "service_healthy"},
        }

    def generate_compose(self) -> str:
        settings = self.settings
        port = settings.default_port
        data_dir = f"./{settings.data_dir}"

        compose = {
            "services": {
                "traefik": {
                    "image": TRAEFIK_IMAGE,
                    "restart": "unless-stopped",
                    "command": [
                        "--providers.docker=true",
                        "--providers.docker.exposedbydefault=false",
                        "--entrypoints.web.address=:80",
                        "--entrypoints.websecure.address=:443",
                        "--certificatesresolvers.letsencrypt.acme.httpchallenge=true",
                        "--certificatesresolvers.letsencrypt.acme.httpchallenge.entrypoint=web",
                        "--certificatesresolvers.letsencrypt.acme.email=${ACME_EMAIL}",
                        "--certificatesresolvers.letsencrypt.acme.storage=/letsencrypt/acme.json",
                    ],
                    "ports": ["80:80", "443:443"],
                    "volumes": [
                        "traefik-letsencrypt:/letsencrypt",
                        "/var/run/docker.sock:/var/run/docker.sock:ro",
                    ],
                },
                settings.db_service: {
                    "image": POSTGRES_IMAGE,
                    "restart": "unless-stopped",
                    "environment": {
                        "POSTGRES_USER": "${POSTGRES_USER}",
                        "POSTGRES_PASSWORD": "${POSTGRES_PASSWORD}",
                        "POSTGRES_DB": "${POSTGRES_DB}",
                    },
                    "volumes": [f"{data_dir}/postgres/data:/var/lib/postgresql/data"],
                    "healthcheck": {
                        "test": ["CMD-SHELL", "pg_isready -U ${POSTGRES_USER} -d ${POSTGRES_DB}"],
                        "interval": "5s",
                        "timeout": "5s",
                        "retries": 10,
                    },
                },
                "redis": {
                    "image": REDIS_IMAGE,
                    "restart": "unless-stopped",
                    "volumes": [f"{data_dir}/redis/data:/data"],
                    "healthcheck": {
                        "test": ["CMD", "redis-cli", "ping"],
                        "interval": "5s",
                        "timeout": "5s",
                        "retries": 10,
                    },
                },
                settings.app_service: {
                    "image": N8N_IMAGE,
                    "restart": "unless-stopped",
                    "ports": [f"{port}:5678"],
                    "environment": {
                        **N8N_ENVIRONMENT,
                        "N8N_HOST": "${N8N_HOST}",
                        "N8N_PROTOCOL": "${N8N_PROTOCOL}",
                        "N8N_PORT": "5678",
                        "WEBHOOK_URL": "${WEBHOOK_URL}",
                        "N8N_SECURE_COOKIE": "${N8N_SECURE_COOKIE}",
                        "N8N_EMAIL_MODE": "${N8N_EMAIL_MODE}",
                        "N8N_SMTP_HOST": "${N8N_SMTP_HOST}",
                        "N8N_SMTP_PORT": "${N8N_SMTP_PORT}",
                        "N8N_SMTP_USER": "${N8N_SMTP_USER}",
                        "N8N_SMTP_PASS": "${N8N_SMTP_PASS}",
                        "N8N_SMTP_SENDER": "${N8N_SMTP_SENDER}",
                    },
                    "volumes": [f"{data_dir}/n8n:/home/node/.n8n"],
                    "labels": [
                        "traefik.enable=true",
                        "traefik.http.routers.n8n.rule=Host(`${N8N_HOST}`)",
                        "traefik.http.routers.n8n.entrypoints=websecure",
                        "traefik.http.routers.n8n.tls.certresolver=letsencrypt",
                        "traefik.http.services.n8n.loadbalancer.server.port=5678",
                    ],
                    "depends_on": self._n8n_depends_on(),
                },
                settings.worker_service: {
                    "image": N8N_IMAGE,
                    "restart": "unless-stopped",
                    "command": "worker",
                    "environment": dict(N8N_ENVIRONMENT),
                    "depends_on": {
                        settings.app_service: {"condition": "service_started"},
                        **self._n8n_depends_on(),
                    },
                },
            },
            "volumes": {
                "traefik-letsencrypt": {},
            },
        }

        return yaml.safe_dump(compose, default_flow_style=False, sort_keys=False)
