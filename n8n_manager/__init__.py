"""n8n Manager - Docker Compose operations for self-hosted n8n."""

__version__ = "1.0.0"
