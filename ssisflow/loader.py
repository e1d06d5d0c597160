"""Workflow loader and definition validation."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union
import yaml

from ssisflow.exceptions import ValidationError, WorkflowValidationError
from ssisflow.variables.substitution import PlaceholderResolver
from ssisflow.workflow.types import LoopSpec, Step, StepOutput, Workflow, DEFAULT_OUTPUT_FORMAT
from ssisflow.workflow.validation import WorkflowValidator


logger = logging.getLogger(__name__)


def _lookup(mapping: Dict[str, Any], key: str) -> Any:
    """Fetch a document field, matching the key case-insensitively."""
    if key in mapping:
        return mapping[key]
    lowered = key.lower()
    for name, value in mapping.items():
        if isinstance(name, str) and name.lower() == lowered:
            return value
    return None


class WorkflowLoader:
    """Loads workflow documents (JSON or YAML) into an immutable Workflow."""

    STEP_FIELDS = {'name', 'type', 'parameters', 'enabled', 'output', 'loop', 'output_file_path'}
    LOOP_FIELDS = {'input_data', 'item_name'}
    OUTPUT_FIELDS = {'name', 'format'}

    def __init__(self):
        """Initialize loader."""
        self.errors: List[ValidationError] = []
        self.placeholders = PlaceholderResolver()

    def load(self, workflow_path: Union[str, Path]) -> Workflow:
        """Load and validate a workflow document from disk."""
        self.errors = []
        path = Path(workflow_path).resolve()

        try:
            text = path.read_text(encoding='utf-8')
        except OSError as e:
            self._add_error(f"Failed to load workflow: {e}")
            self._raise_validation_errors()

        document = self.parse(text, path)
        return self.load_dict(document, source_path=path)

    def parse(self, text: str, path: Optional[Path] = None) -> Any:
        """Decode a workflow document, trying JSON first and YAML second."""
        try:
            return json.loads(text)
        except ValueError as json_error:
            try:
                return yaml.safe_load(text)
            except yaml.YAMLError as yaml_error:
                self._add_error(f"failed to parse workflow {path or '<document>'}: {json_error}; {yaml_error}")
                self._raise_validation_errors()

    def load_dict(self, document: Any, source_path: Optional[Path] = None) -> Workflow:
        """Build a Workflow from an already-decoded document."""
        self.errors = []

        if document is None or not isinstance(document, dict):
            self._add_error("Workflow must be a JSON/YAML object")
            self._raise_validation_errors()

        steps_doc = _lookup(document, 'Steps')
        if not steps_doc:
            self._add_error("'Steps' field is required and must not be empty")
            self._raise_validation_errors()
        if not isinstance(steps_doc, list):
            self._add_error("'Steps' must be a list")
            self._raise_validation_errors()

        for key in document:
            if not (isinstance(key, str) and key.lower() == 'steps'):
                logger.warning(f"Ignoring unknown top-level field '{key}'")

        steps = []
        for i, step_doc in enumerate(steps_doc):
            step = self._build_step(step_doc, i)
            if step is not None:
                steps.append(step)

        workflow = Workflow(steps=tuple(steps), source_path=source_path)

        # Graph checks also cover partially malformed steps; messages the
        # field checks already recorded are not repeated.
        reported = {error.message for error in self.errors}
        for error in WorkflowValidator().collect(workflow):
            if error.message not in reported:
                self.errors.append(error)
                reported.add(error.message)

        if self.errors:
            self._raise_validation_errors()

        self._warn_forward_references(workflow)
        return workflow

    def _build_step(self, step_doc: Any, index: int) -> Optional[Step]:
        """Convert one step mapping, recording every problem found."""
        if not isinstance(step_doc, dict):
            self._add_error(f"Step {index} must be an object", f"Steps[{index}]")
            return None

        name = _lookup(step_doc, 'Name')
        if name is None or (isinstance(name, str) and not name.strip()):
            self._add_error(f"step {index} is missing a Name", f"Steps[{index}].Name")
            name = f"<step_{index}>"
        elif not isinstance(name, str):
            self._add_error(f"Step {index} Name must be a string, got {type(name).__name__}", f"Steps[{index}].Name")
            name = f"<step_{index}>"

        step_type = _lookup(step_doc, 'Type')
        if step_type is None or (isinstance(step_type, str) and not step_type.strip()):
            self._add_error(f"step {name} is missing a Type", f"Steps[{index}].Type")
            step_type = ""
        elif not isinstance(step_type, str):
            self._add_error(f"step {name} Type must be a string, got {type(step_type).__name__}", f"Steps[{index}].Type")
            step_type = ""

        parameters = _lookup(step_doc, 'Parameters')
        if parameters is None:
            parameters = {}
        elif not isinstance(parameters, dict):
            self._add_error(f"step {name} Parameters must be an object", f"Steps[{index}].Parameters")
            parameters = {}
        else:
            bad_keys = [k for k in parameters if not isinstance(k, str)]
            if bad_keys:
                self._add_error(f"step {name} Parameters keys must be strings, got {bad_keys}", f"Steps[{index}].Parameters")

        enabled = _lookup(step_doc, 'Enabled')
        if enabled is None:
            enabled = False
        elif not isinstance(enabled, bool):
            self._add_error(f"step {name} Enabled must be a boolean", f"Steps[{index}].Enabled")
            enabled = False

        output = self._build_output(_lookup(step_doc, 'Output'), name, index)
        loop = self._build_loop(_lookup(step_doc, 'loop'), name, index)

        output_file_path = _lookup(step_doc, 'output_file_path')
        if output_file_path is not None and not isinstance(output_file_path, str):
            self._add_error(f"step {name} output_file_path must be a string", f"Steps[{index}].output_file_path")
            output_file_path = None
        if output_file_path is not None and not output_file_path.strip():
            output_file_path = None

        for key in step_doc:
            if not isinstance(key, str) or key.lower() not in self.STEP_FIELDS:
                logger.warning(f"Step '{name}': ignoring unknown field '{key}'")

        return Step(
            name=name,
            type=step_type,
            parameters=parameters,
            enabled=enabled,
            output=output,
            loop=loop,
            output_file_path=output_file_path
        )

    def _build_output(self, output_doc: Any, step_name: str, index: int) -> Optional[StepOutput]:
        if output_doc is None:
            return None
        if not isinstance(output_doc, dict):
            self._add_error(f"step {step_name} Output must be an object", f"Steps[{index}].Output")
            return None

        out_name = _lookup(output_doc, 'Name')
        out_format = _lookup(output_doc, 'Format')
        if out_name is not None and not isinstance(out_name, str):
            self._add_error(f"step {step_name} Output.Name must be a string", f"Steps[{index}].Output.Name")
            return None
        if out_format is not None and not isinstance(out_format, str):
            self._add_error(f"step {step_name} Output.Format must be a string", f"Steps[{index}].Output.Format")
            return None

        for key in output_doc:
            if not isinstance(key, str) or key.lower() not in self.OUTPUT_FIELDS:
                logger.warning(f"Step '{step_name}': ignoring unknown Output field '{key}'")

        return StepOutput(name=out_name or "", format=out_format or DEFAULT_OUTPUT_FORMAT)

    def _build_loop(self, loop_doc: Any, step_name: str, index: int) -> Optional[LoopSpec]:
        if loop_doc is None:
            return None
        if not isinstance(loop_doc, dict):
            self._add_error(f"step {step_name} loop must be an object", f"Steps[{index}].loop")
            return None

        input_data = _lookup(loop_doc, 'input_data')
        item_name = _lookup(loop_doc, 'item_name')

        valid = True
        if not isinstance(input_data, str) or not input_data.strip():
            self._add_error(f"step {step_name} loop is missing input_data", f"Steps[{index}].loop.input_data")
            valid = False
        if not isinstance(item_name, str) or not item_name.strip():
            self._add_error(f"step {step_name} loop is missing item_name", f"Steps[{index}].loop.item_name")
            valid = False
        if not valid:
            return None

        for key in loop_doc:
            if not isinstance(key, str) or key.lower() not in self.LOOP_FIELDS:
                logger.warning(f"Step '{step_name}': ignoring unknown loop field '{key}'")

        return LoopSpec(input_data=input_data, item_name=item_name)

    def _warn_forward_references(self, workflow: Workflow):
        """Warn about placeholders that name steps not declared earlier.

        These fail at run time; the warning surfaces them before anything runs.
        """
        declared: Set[str] = set()
        for step in workflow.steps:
            values: List[Any] = [step.parameters]
            if step.loop is not None:
                values.append(step.loop.input_data)
            for value in values:
                for ref_step, output_spec in self.placeholders.find_references(value):
                    if ref_step not in declared:
                        logger.warning(
                            f"Step '{step.name}' references '{{{ref_step}.{output_spec}}}' "
                            f"but '{ref_step}' is not declared before it"
                        )
            declared.add(step.name)

    def _add_error(self, message: str, path: str = "", exit_code: int = 2):
        """Add validation error."""
        self.errors.append(ValidationError(message, path, exit_code))

    def _raise_validation_errors(self):
        """Raise WorkflowValidationError with accumulated errors."""
        raise WorkflowValidationError(self.errors)
