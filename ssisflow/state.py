"""Run state for the workflow engine.

Holds captured step results, per-step execution records and the run summary.
State lives in memory for the duration of one run.
"""

from dataclasses import dataclass, asdict, field
from typing import Dict, Any, Optional, List, Literal


StepStatus = Literal["pending", "resolving", "invoking", "captured", "failed", "skipped"]
RunStatus = Literal["pending", "running", "completed", "failed"]


@dataclass(frozen=True)
class StepResult:
    """Text captured from a step under one output name."""
    value: str
    format: str = "text"

    @property
    def is_json(self) -> bool:
        return self.format.lower() == "json"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# step name -> output name -> StepResult
ExecutionResults = Dict[str, Dict[str, StepResult]]


@dataclass
class StepRecord:
    """Execution record of a single step."""
    name: str
    type: str
    enabled: bool
    status: StepStatus = "pending"
    loop_iterations: Optional[int] = None
    duration_ms: Optional[int] = None
    error: Optional[str] = None
    outputs: Dict[str, StepResult] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, omitting None values."""
        result = {}
        for k, v in asdict(self).items():
            if v is not None:
                result[k] = v
        if not self.outputs:
            result.pop("outputs", None)
        return result


@dataclass
class RunSummary:
    """Summary of one workflow run."""
    workflow_path: Optional[str]
    status: RunStatus = "pending"
    steps: List[StepRecord] = field(default_factory=list)
    files_written: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def get_step(self, name: str) -> Optional[StepRecord]:
        for record in self.steps:
            if record.name == name:
                return record
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        result: Dict[str, Any] = {
            "workflow_path": self.workflow_path,
            "status": self.status,
            "steps": [record.to_dict() for record in self.steps],
        }
        if self.files_written:
            result["files_written"] = list(self.files_written)
        if self.error:
            result["error"] = self.error
        return result

    def to_markdown(self) -> str:
        """Render the summary as a markdown document."""
        markers = {"captured": "✅", "skipped": "⏭️", "failed": "❌"}

        lines = ["# Workflow Execution Summary", ""]
        lines.append(f"**Workflow:** {self.workflow_path or '<in-memory>'}")
        lines.append("")
        lines.append(f"**Status:** {self.status}")
        lines.append("")
        lines.append("## Steps")
        lines.append("")

        for i, record in enumerate(self.steps, start=1):
            marker = markers.get(record.status, "•")
            line = f"{i}. {marker} {record.name} ({record.type})"
            if record.loop_iterations is not None:
                line += f" - {record.loop_iterations} iterations"
            lines.append(line)
            if record.error:
                lines.append(f"   - Error: {record.error}")
            if record.outputs:
                lines.append("   - Outputs:")
                for output_name, output in record.outputs.items():
                    lines.append(f"     - {output_name} ({output.format}): {len(output.value)} chars")
            lines.append("")

        if self.files_written:
            lines.append("## Files Written")
            lines.append("")
            for path in self.files_written:
                lines.append(f"- {path}")
            lines.append("")

        return "\n".join(lines)
