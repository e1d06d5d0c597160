"""Run and validate command implementations."""

import json
import logging
from argparse import Namespace
from pathlib import Path
from typing import List, Optional

from ssisflow.exceptions import StepExecutionError, WorkflowValidationError
from ssisflow.exec.materializer import OutputMaterializer
from ssisflow.loader import WorkflowLoader
from ssisflow.operations.registry import OperationRegistry
from ssisflow.state import RunSummary
from ssisflow.workflow.executor import WorkflowExecutor


logger = logging.getLogger(__name__)


def configure_logging(args: Namespace) -> None:
    """Set up root logging from --log-level/--debug/--quiet/--verbose."""
    level_name = getattr(args, 'log_level', 'info')
    log_level = getattr(logging, 'WARNING' if level_name == 'warn' else level_name.upper())
    if getattr(args, 'debug', False):
        log_level = logging.DEBUG
    elif getattr(args, 'quiet', False):
        log_level = logging.ERROR
    elif getattr(args, 'verbose', False):
        log_level = logging.DEBUG

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_registry(module_names: Optional[List[str]]) -> OperationRegistry:
    """Create a registry populated by each --operations module."""
    registry = OperationRegistry()
    for module_name in module_names or []:
        registry.register_from_module(module_name)
    return registry


def write_summary(summary: RunSummary, fmt: str, summary_file: Optional[str]) -> None:
    """Emit the run summary as JSON or markdown to a file or stdout."""
    if fmt == 'none':
        return

    if fmt == 'markdown':
        content = summary.to_markdown()
    else:
        content = json.dumps(summary.to_dict(), indent=2, ensure_ascii=False)

    if summary_file:
        path = Path(summary_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content + "\n", encoding='utf-8')
        logger.info(f"Summary written to {path}")
    else:
        print(content)


def validate_workflow(args: Namespace) -> int:
    """Load and validate a workflow without running it."""
    configure_logging(args)

    workflow_path = Path(args.workflow).resolve()
    if not workflow_path.exists():
        logger.error(f"Workflow file not found: {workflow_path}")
        return 1

    try:
        workflow = WorkflowLoader().load(workflow_path)
    except WorkflowValidationError as e:
        for error in e.errors:
            logger.error(f"Validation error: {error.message}")
        return e.exit_code

    for step in workflow.steps:
        state = "enabled" if step.enabled else "disabled"
        loop = f", loop over {step.loop.input_data} as {step.loop.item_name}" if step.loop else ""
        print(f"{step.name}: {step.operation_name} ({state}{loop})")
    return 0


def run_workflow(args: Namespace) -> int:
    """
    Run a workflow and materialize its outputs.

    Exit codes: 0 success, 1 run or write failure, 2 invalid workflow.
    """
    configure_logging(args)

    try:
        workflow_path = Path(args.workflow).resolve()
        if not workflow_path.exists():
            logger.error(f"Workflow file not found: {workflow_path}")
            return 1

        logger.info(f"Loading workflow: {workflow_path}")
        try:
            workflow = WorkflowLoader().load(workflow_path)
        except WorkflowValidationError as e:
            for error in e.errors:
                logger.error(f"Validation error: {error.message}")
            return e.exit_code

        if args.dry_run:
            logger.info("[DRY RUN] Workflow validation successful")
            return 0

        registry = build_registry(args.operations)
        executor = WorkflowExecutor(workflow, registry)

        try:
            results = executor.execute()
        except StepExecutionError as e:
            summary = executor.summary()
            if summary is not None:
                write_summary(summary, args.summary, args.summary_file)
            logger.error(f"Workflow run failed: {e}")
            return 1

        summary = executor.summary()
        exit_code = 0
        if not args.no_write:
            report = OutputMaterializer().write_all(workflow, results)
            summary.files_written = report.written
            for path in report.written:
                logger.info(f"Combined output written: {path}")
            if not report.ok:
                exit_code = 1

        write_summary(summary, args.summary, args.summary_file)
        return exit_code

    except ImportError as e:
        logger.error(f"Could not load operations: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Validation error: {e}")
        return 2
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1
