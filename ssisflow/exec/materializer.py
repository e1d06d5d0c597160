"""
Output materialization for steps declaring an output_file_path.

JSON captures are normalized into {"data": [...]}; everything else is written
as text with a single trailing newline.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from ..exceptions import MaterializationError
from ..state import ExecutionResults, StepResult
from ..variables import json_text
from ..workflow.types import Step, Workflow


logger = logging.getLogger(__name__)


@dataclass
class MaterializationReport:
    """Files written and per-step failures of one materialization pass."""
    written: List[str] = field(default_factory=list)
    errors: List[MaterializationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def decode_json_values(text: str) -> List[Any]:
    """
    Decode one or more top-level JSON values from text.

    Handles a single value as well as values concatenated with or without
    whitespace between them, as produced by loop iterations.

    Raises:
        ValueError: If the text is not a sequence of JSON values (NaN and
            Infinity are rejected)
    """
    decoder = json_text.DECODER
    values = []
    index = 0
    length = len(text)
    while True:
        while index < length and text[index].isspace():
            index += 1
        if index >= length:
            break
        value, index = decoder.raw_decode(text, index)
        values.append(value)

    if not values:
        raise ValueError("no JSON value found")
    return values


def normalize_json_values(values: List[Any]) -> List[Any]:
    """Flatten decoded values into the canonical list stored under 'data'."""
    if len(values) == 1:
        if isinstance(values[0], list):
            return values[0]
        return [values[0]]
    return list(values)


class OutputMaterializer:
    """Writes combined step outputs to their declared destinations."""

    FILE_FIELDS = ('file', 'file_path')
    PACKAGE_FIELD = 'package'

    def write_all(self, workflow: Workflow, results: ExecutionResults) -> MaterializationReport:
        """
        Materialize every step that declares an output_file_path.

        A failure for one step is recorded and the remaining steps are still
        written.
        """
        report = MaterializationReport()

        for step in workflow.steps:
            if not step.output_file_path or not step.output_file_path.strip():
                continue

            captured = results.get(step.name, {}).get(step.output_name)
            if captured is None:
                logger.debug(f"Step '{step.name}' produced no '{step.output_name}' output; nothing to write")
                continue
            if not captured.value.strip():
                logger.debug(f"Step '{step.name}' output is empty; nothing to write")
                continue

            destination = workflow.resolve_path(step.output_file_path)
            try:
                self.write_step(step, captured, destination)
            except MaterializationError as e:
                logger.error(str(e))
                report.errors.append(e)
                continue

            report.written.append(self.display_path(destination, workflow.base_dir))

        return report

    def write_step(self, step: Step, captured: StepResult, destination: Path) -> None:
        """
        Write one step's output.

        Raises:
            MaterializationError: If the directory or file cannot be written
        """
        content = self.render(step, captured)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MaterializationError(step.name, str(destination.parent), f"cannot create directory: {e}") from e

        try:
            destination.write_text(content, encoding='utf-8')
        except OSError as e:
            raise MaterializationError(step.name, str(destination), str(e)) from e

        logger.info(f"Wrote output of step '{step.name}' to {destination}")

    def render(self, step: Step, captured: StepResult) -> str:
        """Produce the file content for a captured result."""
        if step.output_format.lower() == 'json' or captured.is_json:
            try:
                values = decode_json_values(captured.value)
            except ValueError as e:
                logger.warning(f"Step '{step.name}' declared JSON output that could not be decoded ({e}); writing raw text")
            else:
                data = [self._with_package(item) for item in normalize_json_values(values)]
                return json_text.dumps({"data": data}, indent=2) + "\n"

        return captured.value.rstrip("\n") + "\n"

    def _with_package(self, item: Any) -> Any:
        """Add a 'package' field derived from the item's file path, never replacing one."""
        if not isinstance(item, dict) or self.PACKAGE_FIELD in item:
            return item
        for key in self.FILE_FIELDS:
            value = item.get(key)
            if isinstance(value, str) and value:
                enriched = dict(item)
                enriched[self.PACKAGE_FIELD] = self.package_name(value)
                return enriched
        return item

    @staticmethod
    def package_name(file_value: str) -> str:
        base = re.split(r'[\\/]', file_value.rstrip('\\/'))[-1]
        return os.path.splitext(base)[0]

    @staticmethod
    def display_path(path: Path, base_dir: Optional[Path]) -> str:
        """Path relative to the workflow directory when beneath it, else absolute."""
        if base_dir is not None:
            try:
                return str(path.resolve().relative_to(base_dir.resolve()))
            except ValueError:
                pass
        return str(path)
