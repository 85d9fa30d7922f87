"""CLI entry point for running the test agents.

Usage:
  testcrew [--no-linter] [--no-unittest] [--no-apitest] [--no-e2e] [--parallel]
           [--fail-fast] [--timeout SECONDS] [--retries N] [--output DIR]
           [--project-root DIR] [--config FILE] [--mock] [-v]
  python -m testcrew.execution ...
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from testcrew.execution.config import ManagerConfig, load_config
from testcrew.execution.exceptions import ConfigError

EPILOG = """\
examples:
  testcrew                      run all agents
  testcrew --no-e2e             skip E2E tests
  testcrew --parallel           run agents in parallel
  testcrew --output ./results   custom output directory
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="testcrew",
        description="Run lint, unit, API and E2E test agents and report the results",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--no-linter", action="store_true", help="Skip linter agent")
    parser.add_argument("--no-unittest", action="store_true", help="Skip unit test agent")
    parser.add_argument("--no-apitest", action="store_true", help="Skip API test agent")
    parser.add_argument("--no-e2e", action="store_true", help="Skip E2E test agent")
    parser.add_argument("--parallel", action="store_true", default=None, help="Run agents in parallel")
    parser.add_argument(
        "--fail-fast", action="store_true", default=None,
        help="Stop sequential runs at the first failing agent",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Per-attempt timeout in seconds")
    parser.add_argument("--retries", type=int, default=None, help="Retries per failing agent")
    parser.add_argument("--output", default=None, help="Output directory for results")
    parser.add_argument("--project-root", default=None, help="Project root path")
    parser.add_argument("--config", default=None, help="YAML configuration file")
    parser.add_argument("--mock", action="store_true", help="Use mock agents (skip real execution)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def build_config(args: argparse.Namespace) -> ManagerConfig:
    """Merge defaults, the optional YAML file and command-line flags."""
    config = load_config(Path(args.config)) if args.config else ManagerConfig()

    if args.project_root is not None:
        config.project_root = Path(args.project_root)
        if args.output is None and not args.config:
            config.output_dir = config.project_root / "test-results"
    if args.output is not None:
        config.output_dir = Path(args.output)
    for name in ("linter", "unittest", "apitest", "e2e"):
        if getattr(args, f"no_{name}"):
            config.agents.disable(name)
    if args.parallel is not None:
        config.parallel = True
    if args.fail_fast is not None:
        config.fail_fast = True
    if args.timeout is not None:
        config.timeout_seconds = args.timeout
    if args.retries is not None:
        config.retries = args.retries

    config.validate()
    return config


async def _run(config: ManagerConfig, mock: bool) -> int:
    from testcrew.execution.convenience import create_manager
    from testcrew.execution.summary import exit_code

    manager = create_manager(config, mock=mock)
    await manager.run_all()
    summary = manager.get_summary()

    print("\nTest Summary:")
    print(json.dumps(summary.to_dict(), indent=2))
    return exit_code(summary)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    print("Starting test agents...\n")
    print("Configuration:", json.dumps(config.to_dict(), indent=2), "\n")

    try:
        code = asyncio.run(_run(config, args.mock))
    except Exception as e:
        print(f"\nFatal error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
