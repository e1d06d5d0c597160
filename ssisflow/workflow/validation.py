"""Step graph validation shared by the loader and the executor."""

from typing import List, Set

from ..exceptions import ValidationError, WorkflowValidationError
from .types import Workflow


class WorkflowValidator:
    """Checks the step graph invariants the executor relies on."""

    def __init__(self):
        self.errors: List[ValidationError] = []

    def validate(self, workflow: Workflow) -> None:
        """Validate a workflow, raising WorkflowValidationError on problems."""
        if self.collect(workflow):
            self._raise_validation_errors()

    def collect(self, workflow: Workflow) -> List[ValidationError]:
        """Return every problem found in the workflow without raising."""
        self.errors = []

        if not workflow.steps:
            self._add_error("workflow contains no steps")
            return self.errors

        seen: Set[str] = set()
        for i, step in enumerate(workflow.steps):
            if not step.name or not step.name.strip():
                self._add_error(f"step {i} is missing a Name", f"Steps[{i}].Name")
                continue
            if step.name in seen:
                self._add_error(f"duplicate step name detected: {step.name}", f"Steps[{i}].Name")
            seen.add(step.name)

            if not step.type or not step.type.strip():
                self._add_error(f"step {step.name} is missing a Type", f"Steps[{i}].Type")

            if step.loop is not None:
                if not step.loop.input_data or not step.loop.input_data.strip():
                    self._add_error(f"step {step.name} loop is missing input_data", f"Steps[{i}].loop.input_data")
                if not step.loop.item_name or not step.loop.item_name.strip():
                    self._add_error(f"step {step.name} loop is missing item_name", f"Steps[{i}].loop.item_name")

        return self.errors

    def _add_error(self, message: str, path: str = "", exit_code: int = 2):
        self.errors.append(ValidationError(message, path, exit_code))

    def _raise_validation_errors(self):
        raise WorkflowValidationError(self.errors)
