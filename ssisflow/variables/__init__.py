"""
Variable resolution module.
Placeholder resolution for workflow parameters and SSIS expression expansion.
"""

from .pointers import PointerResolver
from .substitution import PlaceholderResolver
from .expressions import ExpressionResolver, resolve_expression

__all__ = ['PointerResolver', 'PlaceholderResolver', 'ExpressionResolver', 'resolve_expression']
