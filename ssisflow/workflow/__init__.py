"""Workflow model and execution module."""

from .types import Workflow, Step, StepOutput, LoopSpec
from .validation import WorkflowValidator
from .loops import LoopExpander
from .executor import WorkflowExecutor

__all__ = ['Workflow', 'Step', 'StepOutput', 'LoopSpec', 'WorkflowValidator', 'LoopExpander', 'WorkflowExecutor']
