# src/main.py — v2
"""CLI entry point: serve, process, batch, steps commands.

Usage:
    amrsp serve [--host HOST] [--port PORT]
    amrsp process <file> [--document-id ID] [--json]
    amrsp batch [directory]
    amrsp steps
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from amrsp.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from amrsp.config.settings import ConfigurationError, load_settings
    from amrsp.logging.logger import setup_logging_from_settings

    try:
        overrides = {"log_level": "DEBUG"} if args.verbose else {}
        settings = load_settings(**overrides)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    setup_logging_from_settings(settings)

    try:
        return args.func(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="amrsp",
        description=f"AMRSP v{__version__}: research submission processing pipeline",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    p_serve.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    p_serve.set_defaults(func=_cmd_serve)

    # --- process ---
    p_process = subparsers.add_parser("process", help="Process a single document")
    p_process.add_argument("file", type=Path, help="Path to document (PDF or DOCX)")
    p_process.add_argument("--document-id", default=None, help="Document ID (default: random)")
    p_process.add_argument(
        "--json", action="store_true", help="Print the full report as JSON",
    )
    p_process.set_defaults(func=_cmd_process)

    # --- batch ---
    p_batch = subparsers.add_parser(
        "batch", help="Process every pending document in the watch folder",
    )
    p_batch.add_argument(
        "directory", type=Path, nargs="?", default=None,
        help="Folder to scan (default: INGESTION_WATCH_FOLDER)",
    )
    p_batch.set_defaults(func=_cmd_batch)

    # --- steps ---
    p_steps = subparsers.add_parser("steps", help="List the pipeline stages")
    p_steps.set_defaults(func=_cmd_steps)

    return parser


def _cmd_serve(args: argparse.Namespace, settings) -> int:
    """Run the FastAPI application under uvicorn."""
    import uvicorn

    from amrsp.api.app import create_app

    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)
    return 0


def _cmd_process(args: argparse.Namespace, settings) -> int:
    """Process one document and print a summary."""
    from amrsp.api.facade import AmrspService

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    service = AmrspService(settings)
    report = asyncio.run(
        service.process(file_path.name, file_path.read_bytes(), document_id=args.document_id)
    )

    if args.json:
        print(report.model_dump_json(by_alias=True, indent=2))
    else:
        _print_report(report)
    return 0 if report.overall_succeeded else 3


def _cmd_batch(args: argparse.Namespace, settings) -> int:
    """Process the watch folder (or the given directory)."""
    from amrsp.api.facade import AmrspService

    if args.directory is not None:
        if not args.directory.is_dir():
            logger.error("Not a directory: %s", args.directory)
            return 1
        settings = settings.model_copy(update={"ingestion_watch_folder": args.directory})

    service = AmrspService(settings)
    result = asyncio.run(service.process_pending())

    print("\nBatch complete:")
    print(f"  Folder:       {result.watch_folder}")
    print(f"  Files found:  {result.total_files_found}")
    print(f"  Processed:    {result.processed}")
    print(f"  Failed:       {result.failed}")
    print(f"  Duration:     {result.duration_seconds:.1f}s")
    for entry in result.entries:
        status = entry.error or ("ok" if entry.overall_succeeded else "completed with errors")
        print(f"    {entry.document_id}  {entry.file_name}: {status}")
    return 0 if result.failed == 0 else 1


def _cmd_steps(args: argparse.Namespace, settings) -> int:
    from amrsp.config.stages import PIPELINE_STAGES

    for stage in PIPELINE_STAGES:
        print(f"{stage.id:>2}. {stage.icon} {stage.name}: {stage.description}")
    return 0


def _print_report(report) -> None:
    """Print a human-readable summary of a PipelineReport."""
    print("\nPipeline complete:")
    print(f"  Document ID:  {report.document_id}")
    print(f"  Run ID:       {report.run_id}")
    print(f"  Status:       {'OK' if report.overall_succeeded else 'completed with errors'}")
    print(f"  Duration:     {report.total_elapsed_ms}ms")
    for index, step in enumerate(report.steps, start=1):
        mark = "ok" if step.succeeded else f"FAILED ({step.error})"
        print(f"  {index:>2}. {step.name:<28} {step.elapsed_ms:>6}ms  {mark}")


if __name__ == "__main__":
    sys.exit(main())
