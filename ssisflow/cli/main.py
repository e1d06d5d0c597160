"""Main CLI entry point for ssisflow."""

import argparse
import sys
from typing import Optional

from .commands import run_workflow, validate_workflow


def _add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress non-error output'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warn', 'error'],
        default='info',
        help='Set log level'
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the ssisflow CLI."""
    parser = argparse.ArgumentParser(
        prog='ssisflow',
        description='Declarative workflows for SSIS package analysis'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Run command
    run_parser = subparsers.add_parser('run', help='Run a workflow')
    run_parser.add_argument(
        'workflow',
        type=str,
        help='Path to workflow JSON or YAML file'
    )
    run_parser.add_argument(
        '--operations',
        action='append',
        metavar='MODULE',
        help='Module defining register_operations(registry) (can be specified multiple times)'
    )
    run_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate without execution'
    )
    run_parser.add_argument(
        '--no-write',
        action='store_true',
        help='Do not write step output files'
    )
    run_parser.add_argument(
        '--summary',
        choices=['none', 'json', 'markdown'],
        default='none',
        help='Print an execution summary'
    )
    run_parser.add_argument(
        '--summary-file',
        type=str,
        metavar='PATH',
        help='Write the summary to PATH instead of stdout'
    )
    _add_logging_arguments(run_parser)

    # Validate command
    validate_parser = subparsers.add_parser('validate', help='Validate a workflow and list its steps')
    validate_parser.add_argument(
        'workflow',
        type=str,
        help='Path to workflow JSON or YAML file'
    )
    _add_logging_arguments(validate_parser)

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'run':
        return run_workflow(parsed_args)
    elif parsed_args.command == 'validate':
        return validate_workflow(parsed_args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
