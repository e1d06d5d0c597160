"""
Step executor module for running workflow steps against the operation registry.
Resolves parameters, expands loops, invokes operations and captures output.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from dataclasses import dataclass

from .output_capture import OutputCapture
from ..exceptions import ReferenceResolutionError, StepExecutionError
from ..operations.registry import OperationRegistry
from ..operations.types import InvocationContext
from ..state import ExecutionResults, StepRecord, StepResult
from ..variables.substitution import PlaceholderResolver
from ..workflow.loops import LoopExpander
from ..workflow.types import Step


logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Result of step execution."""
    step_name: str
    outputs: Dict[str, StepResult]
    duration_ms: int
    loop_iterations: Optional[int] = None


class StepExecutor:
    """
    Executes workflow steps.
    Handles parameter resolution, loop fan-out and output capture.
    """

    # Parameters holding file system paths; relative values are anchored to
    # the workflow document's directory.
    PATH_PARAMETERS = (
        'file_path',
        'file_paths',
        'output_file_path',
        'template_file_path',
        'json_file_path',
        'package_directory',
    )
    OUTPUT_PATH_PARAMETER = 'output_file_path'

    def __init__(
        self,
        registry: OperationRegistry,
        workflow_dir: Optional[Path] = None,
        resolver: Optional[PlaceholderResolver] = None
    ):
        """
        Initialize step executor.

        Args:
            registry: Operations available to steps
            workflow_dir: Directory relative paths are resolved against
            resolver: Placeholder resolver (default: a new PlaceholderResolver)
        """
        self.registry = registry
        self.workflow_dir = workflow_dir
        self.resolver = resolver or PlaceholderResolver()
        self.loop_expander = LoopExpander(self.resolver)
        self.output_capture = OutputCapture()

    def execute(
        self,
        step: Step,
        results: ExecutionResults,
        record: Optional[StepRecord] = None
    ) -> ExecutionResult:
        """
        Execute one enabled step.

        Args:
            step: Step definition
            results: Results captured by earlier steps (read only)
            record: Optional record whose status is advanced as the step runs

        Returns:
            ExecutionResult with the step's captured outputs

        Raises:
            StepExecutionError: On resolution or invocation failure
        """
        start_time = time.time()

        if step.loop is not None:
            outputs, iterations = self._execute_loop(step, results, record)
        else:
            outputs, iterations = self._execute_single(step, results, record), None

        duration_ms = int((time.time() - start_time) * 1000)
        return ExecutionResult(
            step_name=step.name,
            outputs=outputs,
            duration_ms=duration_ms,
            loop_iterations=iterations
        )

    def _execute_single(
        self,
        step: Step,
        results: ExecutionResults,
        record: Optional[StepRecord]
    ) -> Dict[str, StepResult]:
        self._set_status(record, "resolving")
        try:
            params = self.resolver.resolve(step.parameters, results)
        except ReferenceResolutionError as e:
            raise StepExecutionError(step.name, e, kind=StepExecutionError.RESOLUTION) from e

        if step.output_file_path:
            params[self.OUTPUT_PATH_PARAMETER] = step.output_file_path
        params = self.anchor_paths(params)

        self._set_status(record, "invoking")
        text = self._invoke(step, params, None)
        return {step.output_name: StepResult(value=text, format=step.output_format)}

    def _execute_loop(
        self,
        step: Step,
        results: ExecutionResults,
        record: Optional[StepRecord]
    ) -> Tuple[Dict[str, StepResult], int]:
        loop = step.loop
        self._set_status(record, "resolving")
        try:
            items = self.loop_expander.discover_items(loop, results)
        except ReferenceResolutionError as e:
            raise StepExecutionError(step.name, e, kind=StepExecutionError.RESOLUTION) from e

        logger.info(f"Step '{step.name}': looping over {len(items)} items as '{loop.item_name}'")

        texts = []
        for index, item in enumerate(items):
            self._set_status(record, "resolving")
            try:
                params = self.loop_expander.apply_item(loop, step.parameters, item, results)
            except ReferenceResolutionError as e:
                raise StepExecutionError(step.name, e, kind=StepExecutionError.RESOLUTION, loop_index=index) from e

            if step.output_file_path and self.OUTPUT_PATH_PARAMETER not in params:
                params[self.OUTPUT_PATH_PARAMETER] = step.output_file_path
            params = self.anchor_paths(params)

            self._set_status(record, "invoking")
            texts.append(self._invoke(step, params, index))

        combined = self.output_capture.combine(texts, step.output_format)
        return {step.output_name: combined}, len(items)

    def _invoke(self, step: Step, params: Dict[str, Any], loop_index: Optional[int]) -> str:
        context = InvocationContext(
            step_name=step.name,
            loop_index=loop_index,
            workflow_dir=self.workflow_dir
        )
        where = f"{step.name}[{loop_index}]" if loop_index is not None else step.name
        logger.debug(f"Invoking '{step.operation_name}' for {where} with {params}")

        try:
            raw = self.registry.invoke(step.operation_name, params, context)
            return self.output_capture.to_text(raw, step.name)
        except Exception as e:
            raise StepExecutionError(step.name, e, kind=StepExecutionError.INVOCATION, loop_index=loop_index) from e

    def anchor_paths(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Resolve relative path parameters against the workflow directory."""
        if self.workflow_dir is None:
            return params

        anchored = dict(params)
        for key in self.PATH_PARAMETERS:
            value = anchored.get(key)
            if isinstance(value, str):
                anchored[key] = self._anchor(value)
            elif isinstance(value, list):
                anchored[key] = [self._anchor(v) if isinstance(v, str) else v for v in value]
        return anchored

    def _anchor(self, value: str) -> str:
        if not value.strip() or Path(value).is_absolute():
            return value
        return str(self.workflow_dir / value)

    @staticmethod
    def _set_status(record: Optional[StepRecord], status: str) -> None:
        if record is not None:
            record.status = status
