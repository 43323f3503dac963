"""Environment file model and serialization."""

import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


PLACEHOLDER_POSTGRES_PASSWORD = "your_secure_postgres_password_here"
PLACEHOLDER_ENCRYPTION_KEY = "your_32_character_encryption_key_here"
PLACEHOLDER_JWT_SECRET = "your_jwt_secret_here"
PLACEHOLDER_LICENSE_KEY = "your_enterprise_license_key_here"

LOCAL_HOST = "localhost"
LOCAL_WEBHOOK_URL = "http://localhost:5678"

_LINE_RE = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=(.*)$")
_SAFE_VALUE_RE = re.compile(r"[A-Za-z0-9_./:@+=,%-]*")


def format_value(value: str) -> str:
    """Render a value so Compose reads it back literally."""
    if _SAFE_VALUE_RE.fullmatch(value):
        return value
    if "'" not in value:
        return f"'{value}'"
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("$", "$$")
    return f'"{escaped}"'


def parse_value(raw: str) -> str:
    """Parse the right-hand side of a KEY=value line."""
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] == "'":
        return raw[1:-1]
    if len(raw) >= 2 and raw[0] == raw[-1] == '"':
        inner = raw[1:-1].replace("$$", "$")
        return re.sub(r'\\(["\\])', r"\1", inner)
    # Unquoted values may carry an inline comment
    if " #" in raw:
        raw = raw.split(" #", 1)[0].rstrip()
    return raw


class EnvFile:
    """An order-preserving KEY=value document.

    Comments, blank lines and keys the controller does not know about are
    kept as they are; only assigned keys are rewritten.
    """

    def __init__(self, lines: Optional[list[str]] = None):
        self.lines = list(lines or [])

    @classmethod
    def parse(cls, text: str) -> "EnvFile":
        return cls(text.splitlines())

    @classmethod
    def load(cls, path: Path) -> "EnvFile":
        return cls.parse(Path(path).read_text())

    def _find(self, key: str) -> Optional[int]:
        for index, line in enumerate(self.lines):
            match = _LINE_RE.match(line)
            if match and match.group(1) == key:
                return index
        return None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        index = self._find(key)
        if index is None:
            return default
        return parse_value(_LINE_RE.match(self.lines[index]).group(2))

    def set(self, key: str, value: str) -> None:
        """Assign a key in place, appending it if absent."""
        line = f"{key}={format_value(value)}"
        index = self._find(key)
        if index is None:
            self.lines.append(line)
        else:
            self.lines[index] = line

    def update(self, values: dict[str, str]) -> None:
        for key, value in values.items():
            self.set(key, value)

    def as_dict(self) -> dict[str, str]:
        values = {}
        for line in self.lines:
            match = _LINE_RE.match(line)
            if match:
                values[match.group(1)] = parse_value(match.group(2))
        return values

    def render(self) -> str:
        return "\n".join(self.lines) + "\n"

    def save(self, path: Path) -> None:
        Path(path).write_text(self.render())


class EnvironmentConfig(BaseModel):
    """Typed view of the n8n environment file."""
    model_config = ConfigDict(populate_by_name=True)

    # Database
    postgres_user: str = Field("n8n", alias="POSTGRES_USER")
    postgres_db: str = Field("n8n", alias="POSTGRES_DB")
    postgres_password: str = Field(PLACEHOLDER_POSTGRES_PASSWORD, alias="POSTGRES_PASSWORD")

    # Secrets
    encryption_key: str = Field(PLACEHOLDER_ENCRYPTION_KEY, alias="N8N_ENCRYPTION_KEY")
    jwt_secret: str = Field(PLACEHOLDER_JWT_SECRET, alias="N8N_USER_MANAGEMENT_JWT_SECRET")
    license_key: str = Field(PLACEHOLDER_LICENSE_KEY, alias="N8N_LICENSE_ACTIVATION_KEY")

    # Host and routing
    host: str = Field(LOCAL_HOST, alias="N8N_HOST")
    protocol: str = Field("http", alias="N8N_PROTOCOL")
    webhook_url: str = Field(LOCAL_WEBHOOK_URL, alias="WEBHOOK_URL")
    secure_cookie: bool = Field(False, alias="N8N_SECURE_COOKIE")
    timezone: str = Field("UTC", alias="GENERIC_TIMEZONE")
    acme_email: str = Field("admin@example.com", alias="ACME_EMAIL")

    # Email
    email_mode: str = Field("smtp", alias="N8N_EMAIL_MODE")
    smtp_host: str = Field("smtp.gmail.com", alias="N8N_SMTP_HOST")
    smtp_port: str = Field("587", alias="N8N_SMTP_PORT")
    smtp_user: str = Field("your_email@domain.com", alias="N8N_SMTP_USER")
    smtp_password: str = Field("your_app_password", alias="N8N_SMTP_PASS")
    smtp_sender: str = Field("your_email@domain.com", alias="N8N_SMTP_SENDER")

    @field_validator("*")
    @classmethod
    def validate_single_line(cls, v):
        """Reject values that would break the line-oriented file."""
        if isinstance(v, str) and ("\n" in v or "\r" in v):
            raise ValueError("Value must not contain line breaks")
        return v

    @property
    def is_local(self) -> bool:
        """Check whether this is a localhost-only configuration."""
        return self.host == LOCAL_HOST

    def apply_domain(self, domain: str) -> None:
        """Point host, protocol, webhook URL and cookies at a domain.

        An empty domain selects the local plain-HTTP configuration.
        """
        if not domain:
            self.host = LOCAL_HOST
            self.protocol = "http"
            self.webhook_url = LOCAL_WEBHOOK_URL
            self.secure_cookie = False
        else:
            self.host = domain
            self.protocol = "https"
            self.webhook_url = f"https://{domain}"
            self.secure_cookie = True

    def to_env(self) -> dict[str, str]:
        """Serialize to environment key/value strings."""
        values = {}
        for key, value in self.model_dump(by_alias=True).items():
            if isinstance(value, bool):
                value = "true" if value else "false"
            values[key] = str(value)
        return values

    @classmethod
    def from_env(cls, values: dict[str, str]) -> "EnvironmentConfig":
        """Build from parsed environment values, ignoring unknown keys."""
        known = {
            field.alias for field in cls.model_fields.values() if field.alias
        }
        return cls.model_validate({k: v for k, v in values.items() if k in known})
