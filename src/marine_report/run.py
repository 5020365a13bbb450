"""Main entry point for Marine Report."""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from aiohttp import web

from .collector import collect_report
from .models.report import AggregatedReport
from .models.settings import Settings, default_settings, load_settings
from .server import create_app
from .utils.logging_config import setup_logging

logger = logging.getLogger("run")


def _load(config_path: Optional[str]) -> Settings:
    if config_path is None:
        return default_settings()
    return load_settings(config_path)


async def run_once(settings: Settings) -> AggregatedReport:
    """Collect a single report."""
    return await collect_report(settings)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Marine Report - aggregated marine conditions")
    parser.add_argument("--config", default=None, help="Path to configuration file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-dir", default="logs", help="Directory for log files")
    parser.add_argument("--serve", action="store_true", help="Serve GET /weather instead of printing one report")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind with --serve")
    parser.add_argument("--port", type=int, default=8080, help="Port to bind with --serve")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = parse_args(argv)

    try:
        settings = _load(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    debug = args.debug or settings.general.debug
    setup_logging(log_dir=str(Path(args.log_dir)), log_level="DEBUG" if debug else "INFO")

    if args.serve:
        logger.info(f"Serving reports on http://{args.host}:{args.port}/weather")
        web.run_app(create_app(settings), host=args.host, port=args.port, print=None)
        return 0

    try:
        report = asyncio.run(run_once(settings))
    except KeyboardInterrupt:
        print("\nReport collection interrupted by user", file=sys.stderr)
        return 130

    print(json.dumps(report.to_json_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
