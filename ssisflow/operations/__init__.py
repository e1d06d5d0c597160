"""
Operation dispatch for the workflow engine.

Provides the registry that maps step types to external operations.
"""

from .types import InvocationContext, OperationFunc
from .registry import OperationRegistry


__all__ = [
    "InvocationContext",
    "OperationFunc",
    "OperationRegistry",
]
