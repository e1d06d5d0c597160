"""
Tests for the ssisflow command line.
Covers run/validate exit codes, output writing and summaries.
"""

import json
import sys
import textwrap
import pytest
from pathlib import Path

from ssisflow.cli.main import create_parser, main


OPERATIONS_MODULE = "ssisflow_cli_test_ops"

OPERATIONS_SOURCE = """
    import json
    from pathlib import Path


    def list_packages(params, context):
        return json.dumps({"packages": ["a.dtsx", "b.dtsx"]})


    def analyze(params, context):
        return json.dumps({"file": params["file_path"], "tasks": 2})


    def fail(params, context):
        raise RuntimeError("analysis failed")


    def register_operations(registry):
        registry.register("list_packages", list_packages)
        registry.register("analyze", analyze)
        registry.register("fail", fail)
"""


@pytest.fixture
def operations_module(tmp_path, monkeypatch):
    module_dir = tmp_path / "ops"
    module_dir.mkdir()
    (module_dir / f"{OPERATIONS_MODULE}.py").write_text(textwrap.dedent(OPERATIONS_SOURCE))
    monkeypatch.syspath_prepend(str(module_dir))
    monkeypatch.delitem(sys.modules, OPERATIONS_MODULE, raising=False)
    return OPERATIONS_MODULE


def write_workflow(workspace: Path, analyze_type="analyze") -> Path:
    path = workspace / "workflow.json"
    path.write_text(json.dumps({
        "Steps": [
            {
                "Name": "List",
                "Type": "list_packages",
                "Enabled": True,
                "Output": {"Name": "Packages", "Format": "json"}
            },
            {
                "Name": "Analyze",
                "Type": analyze_type,
                "Enabled": True,
                "Parameters": {"file_path": "{pkg}"},
                "loop": {"input_data": "{List.Packages}", "item_name": "pkg"},
                "Output": {"Name": "Report", "Format": "json"},
                "output_file_path": "out/report.json"
            }
        ]
    }))
    return path


class TestCLIParser:

    def test_run_arguments(self):
        args = create_parser().parse_args([
            "run", "wf.yaml",
            "--operations", "a", "--operations", "b",
            "--summary", "markdown", "--no-write"
        ])

        assert args.command == "run"
        assert args.workflow == "wf.yaml"
        assert args.operations == ["a", "b"]
        assert args.summary == "markdown"
        assert args.no_write is True
        assert args.dry_run is False

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out


class TestRunCommand:

    def test_run_writes_outputs(self, tmp_path, operations_module):
        path = write_workflow(tmp_path)

        exit_code = main(["run", str(path), "--operations", operations_module])

        assert exit_code == 0
        report = json.loads((tmp_path / "out" / "report.json").read_text(encoding='utf-8'))
        files = [item["file"] for item in report["data"]]
        assert files == [str(tmp_path.resolve() / "a.dtsx"), str(tmp_path.resolve() / "b.dtsx")]
        assert [item["package"] for item in report["data"]] == ["a", "b"]

    def test_json_summary_on_stdout(self, tmp_path, operations_module, capsys):
        path = write_workflow(tmp_path)

        exit_code = main(["run", str(path), "--operations", operations_module, "--summary", "json"])

        assert exit_code == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["status"] == "completed"
        assert summary["files_written"] == [str(Path("out") / "report.json")]
        assert summary["steps"][1]["loop_iterations"] == 2

    def test_markdown_summary_file(self, tmp_path, operations_module):
        path = write_workflow(tmp_path)
        summary_path = tmp_path / "reports" / "summary.md"

        exit_code = main([
            "run", str(path),
            "--operations", operations_module,
            "--summary", "markdown",
            "--summary-file", str(summary_path)
        ])

        assert exit_code == 0
        content = summary_path.read_text(encoding='utf-8')
        assert content.startswith("# Workflow Execution Summary")
        assert "## Files Written" in content

    def test_no_write(self, tmp_path, operations_module):
        path = write_workflow(tmp_path)

        assert main(["run", str(path), "--operations", operations_module, "--no-write"]) == 0
        assert not (tmp_path / "out").exists()

    def test_step_failure_exit_code(self, tmp_path, operations_module, capsys):
        path = write_workflow(tmp_path, analyze_type="fail")

        exit_code = main(["run", str(path), "--operations", operations_module, "--summary", "json"])

        assert exit_code == 1
        summary = json.loads(capsys.readouterr().out)
        assert summary["status"] == "failed"
        assert "analysis failed" in summary["error"]
        assert not (tmp_path / "out").exists()

    def test_unknown_operation_exit_code(self, tmp_path):
        path = write_workflow(tmp_path)

        assert main(["run", str(path)]) == 1

    def test_dry_run_does_not_invoke(self, tmp_path):
        path = write_workflow(tmp_path)

        # No operations are registered, so a real run would fail
        assert main(["run", str(path), "--dry-run"]) == 0
        assert not (tmp_path / "out").exists()

    def test_invalid_workflow_exit_code(self, tmp_path):
        path = tmp_path / "workflow.json"
        path.write_text(json.dumps({"Steps": [{"Name": "A"}]}))

        assert main(["run", str(path)]) == 2

    def test_missing_workflow_file(self, tmp_path):
        assert main(["run", str(tmp_path / "missing.json")]) == 1

    def test_missing_operations_module(self, tmp_path):
        path = write_workflow(tmp_path)

        assert main(["run", str(path), "--operations", "ssisflow_no_such_module"]) == 1

    def test_materialization_failure_exit_code(self, tmp_path, operations_module):
        path = write_workflow(tmp_path)
        (tmp_path / "out").write_text("a file where a directory is expected")

        assert main(["run", str(path), "--operations", operations_module]) == 1


class TestValidateCommand:

    def test_lists_steps(self, tmp_path, capsys):
        path = write_workflow(tmp_path)

        assert main(["validate", str(path)]) == 0

        out = capsys.readouterr().out
        assert "List: list_packages (enabled)" in out
        assert "Analyze: analyze (enabled, loop over {List.Packages} as pkg)" in out

    def test_invalid(self, tmp_path):
        path = tmp_path / "workflow.yaml"
        path.write_text("Steps:\n  - Name: A\n    Type: op\n  - Name: A\n    Type: op\n")

        assert main(["validate", str(path)]) == 2
