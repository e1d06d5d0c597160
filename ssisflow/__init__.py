"""
ssisflow - declarative step workflows for SSIS package analysis.

Load a workflow document, run its steps against an operation registry and
write the combined outputs:

    registry = OperationRegistry({"list_packages": list_packages})
    workflow, results = run_file("workflow.yaml", registry)
    OutputMaterializer().write_all(workflow, results)
"""

from pathlib import Path
from typing import Tuple, Union

from .loader import WorkflowLoader
from .workflow import Workflow, WorkflowExecutor
from .exec import OutputMaterializer
from .operations import OperationRegistry, InvocationContext
from .state import ExecutionResults, StepResult
from .variables import PlaceholderResolver, ExpressionResolver, resolve_expression

__version__ = "0.1.0"


def run_file(workflow_path: Union[str, Path], registry: OperationRegistry) -> Tuple[Workflow, ExecutionResults]:
    """Load the workflow at workflow_path and execute it with registry."""
    workflow = WorkflowLoader().load(workflow_path)
    results = WorkflowExecutor(workflow, registry).execute()
    return workflow, results


__all__ = [
    "WorkflowLoader",
    "Workflow",
    "WorkflowExecutor",
    "OutputMaterializer",
    "OperationRegistry",
    "InvocationContext",
    "ExecutionResults",
    "StepResult",
    "PlaceholderResolver",
    "ExpressionResolver",
    "resolve_expression",
    "run_file",
]
