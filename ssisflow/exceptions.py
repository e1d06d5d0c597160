"""Workflow engine exceptions."""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass


@dataclass
class ValidationError:
    """Single validation error."""
    message: str
    path: str = ""
    exit_code: int = 2


class WorkflowValidationError(Exception):
    """Raised when a workflow definition is invalid.

    The loader and the executor collect every definition problem first and
    raise them together, so the CLI can report all of them and map the run to
    the validation exit code.
    """

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors
        self.exit_code = 2

        messages = []
        for error in errors:
            messages.append(f"Validation error: {error.message}")

        super().__init__("\n".join(messages))


class ReferenceResolutionError(ValueError):
    """A placeholder refers to a step, output or JSON path that is not available."""


class LoopExpansionError(ReferenceResolutionError):
    """A loop's input could not be turned into a list of items."""


class OperationError(Exception):
    """An external operation failed or produced unusable output."""


class OperationNotFoundError(OperationError):
    """No operation is registered under the requested name."""

    def __init__(self, name: str, available: Optional[List[str]] = None):
        self.name = name
        self.available = sorted(available or [])
        super().__init__(f"unsupported operation: {name}")


class StepExecutionError(Exception):
    """Raised when a step fails; the run stops at the first one.

    Attributes:
        step_name: Name of the failing step
        loop_index: Iteration index when the failure happened inside a loop
        kind: 'resolution' or 'invocation'
        cause: The underlying exception
        results: Outputs captured by the steps that completed before the failure
    """

    RESOLUTION = "resolution"
    INVOCATION = "invocation"

    def __init__(
        self,
        step_name: str,
        cause: Exception,
        kind: str = INVOCATION,
        loop_index: Optional[int] = None,
        results: Optional[Dict[str, Dict[str, Any]]] = None
    ):
        self.step_name = step_name
        self.cause = cause
        self.kind = kind
        self.loop_index = loop_index
        self.results = results if results is not None else {}

        where = f"step '{step_name}'"
        if loop_index is not None:
            where += f" (loop {loop_index})"
        super().__init__(f"{where}: {cause}")


class MaterializationError(Exception):
    """Writing a step's combined output to its destination failed."""

    def __init__(self, step_name: str, path: str, reason: str):
        self.step_name = step_name
        self.path = path
        self.reason = reason
        super().__init__(f"step '{step_name}': failed to write {path}: {reason}")
