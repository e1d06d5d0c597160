"""
Pointer resolution for step outputs.
Resolves Step.Output[.json.path] references against captured results.
"""

from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import ReferenceResolutionError
from . import json_text


class PointerResolver:
    """
    Resolves pointers to captured step outputs following the grammar:
    - <Step>.<Output>             - raw captured text
    - <Step>.<Output>.<dot.path>  - nested value inside the captured JSON text
    """

    def __init__(self, results: Dict[str, Dict[str, Any]]):
        """
        Initialize pointer resolver with execution results.

        Args:
            results: Mapping of step name -> output name -> StepResult
        """
        self.results = results

    def resolve(self, step_name: str, output_spec: str) -> Any:
        """
        Resolve a pointer to its value.

        Args:
            step_name: Name of the step that produced the output
            output_spec: Output name, optionally followed by a dotted JSON path

        Returns:
            The captured text when no path is given, otherwise the decoded
            JSON value at the path

        Raises:
            ReferenceResolutionError: If the step, output or path is missing
        """
        if step_name not in self.results:
            raise ReferenceResolutionError(f"referenced step '{step_name}' has not produced outputs")

        parts = output_spec.split('.', 1)
        output_name = parts[0]
        step_outputs = self.results[step_name]
        if output_name not in step_outputs:
            raise ReferenceResolutionError(f"step '{step_name}' does not contain output '{output_name}'")

        captured = step_outputs[output_name].value
        if len(parts) == 1:
            return captured

        field_path = parts[1]
        try:
            data = json_text.loads(captured)
        except ValueError as e:
            raise ReferenceResolutionError(
                f"step '{step_name}' output '{output_spec}': output is not valid JSON: {e}"
            )

        return self.navigate(data, field_path, f"{step_name}.{output_spec}")

    def navigate(self, data: Any, field_path: str, full_path: Optional[str] = None) -> Any:
        """
        Walk a dotted path through decoded JSON.

        Object members are addressed by key; an all-digit segment also indexes
        into an array.
        """
        full_path = full_path or field_path
        current = data
        for part in field_path.split('.'):
            if isinstance(current, dict):
                if part not in current:
                    raise ReferenceResolutionError(f"field '{full_path}' not found - missing key '{part}'")
                current = current[part]
            elif isinstance(current, list) and part.isdigit():
                index = int(part)
                if index >= len(current):
                    raise ReferenceResolutionError(f"field '{full_path}' not found - index {index} out of range")
                current = current[index]
            else:
                raise ReferenceResolutionError(f"field '{full_path}' not found - '{part}' is not an object")
        return current

    def resolve_safe(self, step_name: str, output_spec: str) -> Tuple[bool, Any, Optional[str]]:
        """
        Safely resolve a pointer, returning success status and error message.

        Returns:
            (success, value, error_message) tuple
        """
        try:
            value = self.resolve(step_name, output_spec)
            return True, value, None
        except ReferenceResolutionError as e:
            return False, None, str(e)
