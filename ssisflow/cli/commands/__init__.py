"""CLI command handlers."""

from .run import run_workflow, validate_workflow

__all__ = ['run_workflow', 'validate_workflow']
