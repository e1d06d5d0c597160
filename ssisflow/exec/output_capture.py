"""
Output capture module for turning operation return values into step results.

Operations are expected to return text; structured return values are
serialized as JSON and bytes are decoded so every capture is a string.
"""

import json
import logging
from typing import Any, List

from ..exceptions import OperationError
from ..state import StepResult


logger = logging.getLogger(__name__)


class OutputCapture:
    """Coerces operation results to text and builds StepResults."""

    LOOP_JOINER = "\n"

    def to_text(self, raw: Any, step_name: str) -> str:
        """
        Convert an operation's return value to text.

        Args:
            raw: Value returned by the operation
            step_name: Step name for error messages

        Returns:
            Textual result

        Raises:
            OperationError: If the operation returned nothing usable
        """
        if isinstance(raw, bytes):
            try:
                text = raw.decode('utf-8')
            except UnicodeDecodeError:
                logger.warning(f"Step '{step_name}' returned non UTF-8 bytes; replacing invalid sequences")
                text = raw.decode('utf-8', errors='replace')
        elif isinstance(raw, str):
            text = raw
        elif isinstance(raw, (dict, list)):
            # Structured results keep their shape as pretty JSON
            text = json.dumps(raw, indent=2, ensure_ascii=False)
        elif raw is None:
            text = ""
        else:
            text = str(raw)

        if not text.strip():
            raise OperationError(f"operation returned no textual content for step '{step_name}'")
        return text

    def combine(self, texts: List[str], output_format: str) -> StepResult:
        """Combine per-iteration texts of a loop into one result."""
        return StepResult(value=self.LOOP_JOINER.join(texts), format=output_format)
