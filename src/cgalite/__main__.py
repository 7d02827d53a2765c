#!/usr/bin/env python3
"""
Command line front end for the CGA-lite rules engine.

Usage:
    python -m cgalite check PROGRAM.yaml
    python -m cgalite run PROGRAM.yaml FOOTPRINT.yaml [--json] [--stl OUT.stl]
    python -m cgalite samples

Examples:
    # Validate a rule program
    python -m cgalite check tower.yaml

    # Run a bundled sample against a footprint and export the solid
    python -m cgalite run sample:stepped_building lot.yaml --stl lot.stl
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import EngineConfig, load_config
from .engine import RulesEngine
from .errors import InputError, SchemaError
from .io import load_context, load_program, result_to_json, write_stl
from .samples import SAMPLE_RULES, get_rule_by_name
from .schema import describe_schema_error

SAMPLE_PREFIX = 'sample:'


def _resolve_program(ref: str):
    """Load ``ref`` as a file path or a ``sample:<name>`` reference."""
    if ref.startswith(SAMPLE_PREFIX):
        name = ref[len(SAMPLE_PREFIX):]
        program = get_rule_by_name(name)
        if program is None:
            raise InputError(f"Unknown sample '{name}' (try: {', '.join(SAMPLE_RULES)})")
        return program
    return load_program(ref)


def cmd_check(args):
    """Check a rule program file for schema errors."""
    try:
        program = _resolve_program(args.program)
    except InputError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except SchemaError as e:
        print(f"Invalid program: {describe_schema_error(e)}")
        return 1

    print(f"OK: {program.name} - {len(program.rules)} rule(s)")
    return 0


def cmd_samples(args):
    """List the bundled sample programs."""
    for key, program in SAMPLE_RULES.items():
        print(f"  {key:<18} {program.name} - {len(program.rules)} rule(s)")
    return 0


def cmd_run(args):
    """Execute a rule program against a footprint."""
    try:
        program = _resolve_program(args.program)
        context = load_context(args.footprint)
        config = load_config(args.config) if args.config else EngineConfig()
    except InputError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except SchemaError as e:
        print(f"Invalid program: {describe_schema_error(e)}")
        return 1

    result = RulesEngine(config).execute_program(program, context)

    if args.json:
        print(result_to_json(result))
    elif result.success:
        attrs = result.attributes
        print(f"Executed {program.name}: {result.metadata.operation_count} operation(s) "
              f"in {result.metadata.execution_time_ms:.2f} ms")
        print(f"  totalHeight: {attrs.get('totalHeight', 0):.2f}")
        print(f"  totalVolume: {attrs.get('totalVolume', 0):.2f}")
        print(f"  baseArea:    {attrs.get('baseArea', 0):.2f}")

    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    if args.stl:
        if result.geometry is None or not result.geometry.is_solid:
            print("Warning: Cannot export non-solid geometry", file=sys.stderr)
            return 0
        output_path = Path(args.stl)
        count = write_stl(result.geometry, str(output_path), binary=not args.ascii, name=program.name)
        if not args.json:
            print(f"Exported {count} triangle(s) to: {output_path}")

    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog='python -m cgalite',
        description='CGA-lite procedural building rules',
    )
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Log progress (-vv for per-rule detail)')

    subparsers = parser.add_subparsers(dest='action', required=True)

    check_parser = subparsers.add_parser('check', help='Validate a rule program')
    check_parser.add_argument('program', help='Program file (YAML/JSON) or sample:<name>')

    run_parser = subparsers.add_parser('run', help='Run a rule program on a footprint')
    run_parser.add_argument('program', help='Program file (YAML/JSON) or sample:<name>')
    run_parser.add_argument('footprint', help='Footprint file (YAML/JSON)')
    run_parser.add_argument('--json', action='store_true', help='Print the full result as JSON')
    run_parser.add_argument('--stl', metavar='FILE', help='Export the resulting solid to STL')
    run_parser.add_argument('--ascii', action='store_true', help='Write ASCII instead of binary STL')
    run_parser.add_argument('-c', '--config', metavar='FILE', help='Engine configuration (YAML)')

    subparsers.add_parser('samples', help='List bundled sample programs')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format='%(levelname)s %(name)s: %(message)s',
        )

    if args.action == 'check':
        return cmd_check(args)
    elif args.action == 'run':
        return cmd_run(args)
    elif args.action == 'samples':
        return cmd_samples(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
