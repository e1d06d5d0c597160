"""
Placeholder substitution implementation.
Handles {Step.Output[.json.path]} resolution against results captured by
earlier steps.
"""

import re
from typing import Any, Dict, List, Tuple, Union

from . import json_text
from .pointers import PointerResolver


class PlaceholderResolver:
    """
    Resolves placeholders in strings and nested parameter structures.

    A placeholder names a step, one of its captured outputs and, optionally, a
    dotted path into that output's JSON text:
    - {ListPackages.Result}
    - {ListPackages.Result.packages}
    - {Analyze.Report.summary.count}

    Resolution is pure: it reads only the results snapshot it is given.
    """

    PLACEHOLDER_PATTERN = re.compile(r'\{([A-Za-z0-9_-]+)\.([A-Za-z0-9_.-]+)\}')

    def resolve(
        self,
        value: Union[str, List, Dict, Any],
        results: Dict[str, Dict[str, Any]]
    ) -> Union[str, List, Dict, Any]:
        """
        Resolve placeholders in a value (string, list, or dict).

        Args:
            value: The value to resolve
            results: Mapping of step name -> output name -> StepResult

        Returns:
            A resolved copy of the value; map keys are never rewritten

        Raises:
            ReferenceResolutionError: If a placeholder cannot be resolved
        """
        if isinstance(value, str):
            return self.resolve_string(value, results)
        elif isinstance(value, list):
            return [self.resolve(item, results) for item in value]
        elif isinstance(value, dict):
            return {k: self.resolve(v, results) for k, v in value.items()}
        else:
            # Non-string/list/dict values pass through unchanged
            return value

    def resolve_string(self, text: str, results: Dict[str, Dict[str, Any]]) -> str:
        """Replace every placeholder in a string, left to right."""
        pointers = PointerResolver(results)

        def replace_placeholder(match):
            value = pointers.resolve(match.group(1), match.group(2))
            return self.stringify(value)

        return self.PLACEHOLDER_PATTERN.sub(replace_placeholder, text)

    @staticmethod
    def stringify(value: Any) -> str:
        """Render a resolved value as text for substitution."""
        if value is None:
            return ''
        elif isinstance(value, str):
            # Strings and number literals are used verbatim
            return str(value)
        else:
            # Booleans render as JSON; complex types get compact JSON
            return json_text.dumps(value)

    def find_references(self, value: Any) -> List[Tuple[str, str]]:
        """List the (step, output_spec) pairs referenced anywhere in a value."""
        refs: List[Tuple[str, str]] = []
        if isinstance(value, str):
            refs.extend(self.PLACEHOLDER_PATTERN.findall(value))
        elif isinstance(value, list):
            for item in value:
                refs.extend(self.find_references(item))
        elif isinstance(value, dict):
            for item in value.values():
                refs.extend(self.find_references(item))
        return refs
