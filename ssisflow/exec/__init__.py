"""
Execution module for the workflow engine.
Handles step invocation, output capture, and output materialization.
"""

from .output_capture import OutputCapture
from .step_executor import StepExecutor, ExecutionResult
from .materializer import OutputMaterializer, MaterializationReport

__all__ = [
    "OutputCapture",
    "StepExecutor",
    "ExecutionResult",
    "OutputMaterializer",
    "MaterializationReport",
]
