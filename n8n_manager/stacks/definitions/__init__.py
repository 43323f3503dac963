"""Stack definitions."""

from .n8n import N8NEnterpriseStack

__all__ = [
    "N8NEnterpriseStack",
]
