"""
Workflow type definitions.

Defines the immutable step graph produced by the loader: Workflow, Step,
StepOutput and LoopSpec.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union


# A parameter value: a string, a list of values or a map of string to value.
# Scalars coming from YAML/JSON (numbers, booleans, null) pass through untouched.
Value = Union[str, List[Any], Dict[str, Any], int, float, bool, None]

DEFAULT_OUTPUT_NAME = "Result"
DEFAULT_OUTPUT_FORMAT = "text"


@dataclass(frozen=True)
class StepOutput:
    """
    Named output captured from a step.

    Attributes:
        name: Output name referenced as {Step.<name>}
        format: Declared format of the captured text ('json', 'text', ...)
    """
    name: str
    format: str = DEFAULT_OUTPUT_FORMAT


@dataclass(frozen=True)
class LoopSpec:
    """
    Fan-out configuration for a step.

    Attributes:
        input_data: Placeholder-bearing expression that resolves to the collection
        item_name: Token name substituted as {item_name} in each iteration
    """
    input_data: str
    item_name: str

    @property
    def item_token(self) -> str:
        return "{" + self.item_name + "}"


@dataclass(frozen=True)
class Step:
    """
    A single declared unit of work.

    Attributes:
        name: Unique step name
        type: Name of the external operation (an optional leading '#' is ignored)
        parameters: Parameters forwarded to the operation after resolution
        enabled: Disabled steps are skipped without invoking anything
        output: Declared output capture, if any
        loop: Loop configuration, if the step fans out
        output_file_path: Destination for the step's combined output
    """
    name: str
    type: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    enabled: bool = False
    output: Optional[StepOutput] = None
    loop: Optional[LoopSpec] = None
    output_file_path: Optional[str] = None

    @property
    def operation_name(self) -> str:
        return self.type[1:] if self.type.startswith("#") else self.type

    @property
    def output_name(self) -> str:
        if self.output and self.output.name:
            return self.output.name
        return DEFAULT_OUTPUT_NAME

    @property
    def output_format(self) -> str:
        if self.output and self.output.name:
            return self.output.format
        return DEFAULT_OUTPUT_FORMAT


@dataclass(frozen=True)
class Workflow:
    """
    Ordered, immutable collection of steps.

    Attributes:
        steps: Steps in declaration order
        source_path: Document the workflow was loaded from (None if built in code)
    """
    steps: Tuple[Step, ...]
    source_path: Optional[Path] = None

    @property
    def base_dir(self) -> Optional[Path]:
        """Directory that relative paths in the document are resolved against."""
        if self.source_path is None:
            return None
        return self.source_path.parent

    def get_step(self, name: str) -> Optional[Step]:
        for step in self.steps:
            if step.name == name:
                return step
        return None

    def resolve_path(self, target: str) -> Path:
        """Expand a path relative to the workflow document's directory."""
        path = Path(target)
        if path.is_absolute() or self.base_dir is None:
            return path
        return self.base_dir / path
