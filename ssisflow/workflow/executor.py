"""
Workflow executor.
Runs steps strictly in declaration order, fanning loop steps out over their
discovered items and collecting every captured output.
"""

import logging
from typing import Optional

from ..exceptions import StepExecutionError
from ..exec.step_executor import StepExecutor
from ..operations.registry import OperationRegistry
from ..state import ExecutionResults, RunSummary, StepRecord
from .types import Workflow
from .validation import WorkflowValidator

logger = logging.getLogger(__name__)


class WorkflowExecutor:
    """
    Main workflow execution engine.

    Execution is sequential: a step only ever sees outputs of steps declared
    before it. The first failing step stops the run.
    """

    def __init__(
        self,
        workflow: Workflow,
        registry: OperationRegistry,
        step_executor: Optional[StepExecutor] = None
    ):
        """
        Initialize workflow executor.

        Args:
            workflow: Loaded workflow
            registry: Operations the steps dispatch to
            step_executor: Custom step executor (default: one bound to registry)
        """
        self.workflow = workflow
        self.registry = registry
        self.step_executor = step_executor or StepExecutor(registry, workflow.base_dir)
        self.results: ExecutionResults = {}
        self._summary: Optional[RunSummary] = None

    def execute(self) -> ExecutionResults:
        """
        Execute the workflow.

        Returns:
            Mapping of step name -> output name -> StepResult

        Raises:
            WorkflowValidationError: If the workflow definition is invalid
            StepExecutionError: On the first failing step; partial results are
                available as error.results
        """
        WorkflowValidator().validate(self.workflow)

        results: ExecutionResults = {}
        self.results = results
        summary = RunSummary(
            workflow_path=str(self.workflow.source_path) if self.workflow.source_path else None,
            status="running",
            steps=[
                StepRecord(name=step.name, type=step.type, enabled=step.enabled)
                for step in self.workflow.steps
            ]
        )
        self._summary = summary

        logger.info(f"Running workflow with {len(self.workflow.steps)} steps")

        for step, record in zip(self.workflow.steps, summary.steps):
            if not step.enabled:
                record.status = "skipped"
                logger.info(f"Skipping disabled step: {step.name}")
                continue

            logger.info(f"Executing step '{step.name}' ({step.operation_name})")
            try:
                execution = self.step_executor.execute(step, results, record)
            except StepExecutionError as e:
                record.status = "failed"
                record.error = str(e.cause)
                summary.status = "failed"
                summary.error = str(e)
                e.results = results
                logger.error(f"Workflow stopped: {e}")
                raise

            results[step.name] = execution.outputs
            record.status = "captured"
            record.outputs = dict(execution.outputs)
            record.duration_ms = execution.duration_ms
            record.loop_iterations = execution.loop_iterations
            logger.info(f"Step '{step.name}' completed in {execution.duration_ms} ms")

        summary.status = "completed"
        return results

    def summary(self) -> Optional[RunSummary]:
        """Summary of the most recent run, or None before execute()."""
        return self._summary
