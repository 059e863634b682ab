"""
Command-line interface for tonsilatlas-pipeline.

Usage:
    tonsilatlas-pipeline run
    tonsilatlas-pipeline run --config config/default.yaml -o results/figures
    tonsilatlas-pipeline -v --log-file run.log run
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger("tonsilatlas_pipeline")


def _setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Configure logging for CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=fmt, handlers=handlers)


def write_tables(result, results_dir: Path) -> list[Path]:
    """Write pseudobulk tables and the correlation summary as CSV."""
    from tonsilatlas_pipeline.plotting.style import safe_name

    results_dir = Path(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)
    written = []

    for metric, table in result.pseudobulk.items():
        path = results_dir / f"pseudobulk_{safe_name(metric)}.csv"
        table.data.to_csv(path, index=False)
        written.append(path)

    path = results_dir / "correlations.csv"
    result.correlation_table().to_csv(path, index=False)
    written.append(path)

    for path in written:
        logger.info("Wrote %s", path)
    return written


def cmd_run(args: argparse.Namespace) -> int:
    """Run the full analysis from a YAML config file."""
    from tonsilatlas_pipeline.core.exceptions import TonsilAtlasError
    from tonsilatlas_pipeline.pipeline import create_pipeline

    if args.config and not Path(args.config).exists():
        logger.error("Config file not found: %s", args.config)
        return 1

    try:
        pipeline = create_pipeline(args.config)
        if args.output:
            pipeline.config.output_dir = Path(args.output)
        pipeline.resolver.ensure_output_dirs()
        result = pipeline.run()
    except TonsilAtlasError as e:
        logger.error("Pipeline failed: %s", e)
        return 1
    except FileNotFoundError as e:
        logger.error("Input not found: %s", e)
        return 1
    except (TypeError, ValueError) as e:
        logger.error("Invalid configuration or input: %s", e)
        return 1

    write_tables(result, pipeline.resolver.results)
    logger.info("Run complete: %s", result.metrics)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="tonsilatlas-pipeline",
        description="TBX21 expression and regulon activity in tonsil naive/memory B cells",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--log-file", type=str, help="Log file path")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- run ---
    p_run = subparsers.add_parser("run", help="Run the full analysis")
    p_run.add_argument(
        "--config",
        help="YAML config file (default: config/default.yaml under $TONSILATLAS_ROOT, "
        "the source checkout, or the current directory)",
    )
    p_run.add_argument("--output", "-o", help="Figure output directory")
    p_run.set_defaults(func=cmd_run)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    _setup_logging(verbose=args.verbose, log_file=args.log_file)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
