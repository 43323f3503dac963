"""Stack management module."""

from .base import BaseStack, StackInfo, backup_filename

__all__ = [
    "BaseStack",
    "StackInfo",
    "backup_filename",
]
