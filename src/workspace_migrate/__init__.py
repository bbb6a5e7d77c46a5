"""Workspace Migration Tool

Moves user-owned projects into per-user workspaces and relocates their
branch and version artifacts to the per-project storage layout. Every
mutating step checks for existing state first, so re-running is safe.
"""

__version__ = '0.1.0'

from .cli import main

__all__ = ['main']
