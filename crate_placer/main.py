import sys
import json
import argparse
import logging
from typing import List, Optional

from . import __version__, __description__
from .collector import collect_definition
from .config import Config, LOG_LEVELS, OUTPUT_FORMATS
from .core.anchor_registry import load_registry
from .core.placement_pipeline import PlacementPipeline
from .utils.error_handler import RegistryError
from .utils.logger import get_logger, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="crate-placer", description=__description__)
    parser.add_argument('--version', action='version', version=__version__)
    parser.add_argument('--config', help='Path to a JSON settings file')
    parser.add_argument('--log-level', choices=LOG_LEVELS, help='Logging level')
    parser.add_argument('--log-dir', help='Directory for log files (enables file logging)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    run = subparsers.add_parser('run', help='Place containers for a mapgrouppos.xml scene')
    run.add_argument('--scene', help='Path to the scene document (mapgrouppos.xml)')
    run.add_argument('--output', help='Path to the output file')
    run.add_argument('--registry', help='Path to an anchor registry JSON file')
    run.add_argument('--format', choices=OUTPUT_FORMATS, help='Output rendering')
    run.add_argument('--append', action='store_true', help='Append to the output file instead of clearing it')
    run.add_argument('--parallel', action='store_true', help='Place scene records on a thread pool')
    run.add_argument('--error-report', help='Write a JSON report of all diagnostics to this path')

    subparsers.add_parser('collect', help='Collect a new anchor definition interactively')

    anchors = subparsers.add_parser('anchors', help='List known anchor types')
    anchors.add_argument('--registry', help='Path to an anchor registry JSON file')

    return parser


def load_config(args: argparse.Namespace) -> Config:
    """Load settings and apply command line overrides"""
    config = Config(args.config)
    config.load()

    if args.log_level:
        config.performance.log_level = args.log_level
    if args.log_dir:
        config.paths.log_dir = args.log_dir

    if args.command == 'run':
        if args.scene:
            config.paths.scene_file = args.scene
        if args.output:
            config.paths.output_file = args.output
        if args.registry:
            config.paths.registry_file = args.registry
        if args.format:
            config.placement.output_format = args.format
        if args.parallel:
            config.performance.use_multithreading = True

    return config


def run_placement(args: argparse.Namespace, config: Config) -> int:
    if config.has_errors():
        print(config.get_error_summary(), file=sys.stderr)
        return 1

    app_logger = get_logger()
    app_logger.start_section("Placement run")

    pipeline = PlacementPipeline(config)
    success, output_path, message = pipeline.run(truncate=not args.append)
    app_logger.end_section("Placement run", success)

    if args.error_report:
        pipeline.error_handler.create_error_report(args.error_report)

    if success:
        print(f"✓ SUCCESS: {message}")
        print(f"Output file: {output_path}")
        return 0

    print(f"✗ FAILED: {message}", file=sys.stderr)
    return 1


def run_collect() -> int:
    try:
        definition = collect_definition(input, report=lambda error: print(f"Invalid input: {error}"))
    except EOFError:
        print("\n✗ FAILED: input ended before the definition was complete", file=sys.stderr)
        return 1
    print(json.dumps(definition.to_dict(), indent=4))
    return 0


def run_list_anchors(args: argparse.Namespace) -> int:
    try:
        registry = load_registry(args.registry)
    except RegistryError as e:
        print(f"✗ FAILED: {e}", file=sys.stderr)
        return 1

    for definition in registry:
        print(f"{definition.type_id}\t{len(definition.items)}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_config(args)

    setup_logging(
        level=config.performance.log_level,
        log_dir=config.paths.log_dir or None,
        enable_file=bool(config.paths.log_dir),
    )
    logger.debug(f"Running '{args.command}' with settings from {config.config_file}")

    try:
        if args.command == 'run':
            return run_placement(args, config)
        if args.command == 'collect':
            return run_collect()
        return run_list_anchors(args)

    except KeyboardInterrupt:
        print("\n\nCancelled by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
