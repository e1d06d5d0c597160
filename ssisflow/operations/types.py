"""
Operation type definitions.

Defines the callable shape of external operations and the context handed to
each invocation.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional


@dataclass(frozen=True)
class InvocationContext:
    """
    Context for a single operation invocation.

    Attributes:
        step_name: Name of the step being executed
        loop_index: Iteration index for loop steps, None otherwise
        workflow_dir: Directory of the workflow document, if loaded from a file
    """
    step_name: str
    loop_index: Optional[int] = None
    workflow_dir: Optional[Path] = None


# An operation receives fully resolved parameters and returns its result.
# Returning text is preferred; dicts/lists are serialized to JSON by the
# step executor. Failures are signalled by raising.
OperationFunc = Callable[[Dict[str, Any], InvocationContext], Any]
