"""Workflow module."""

from .workflow import Workflow

__all__ = ["Workflow"]
