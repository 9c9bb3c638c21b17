"""
Command-line entry point for t-docker.

  t-docker              interactive dashboard
  t-docker ps           print the container table once and exit
  t-docker --version    print the version
"""

import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from . import __version__, get_log_path
from .app import TDockerApp
from .backend import CommandDispatcher
from .config import ConfigManager
from .model import DashboardState
from .parser import parse
from .renderer import render_status, render_table

logger = logging.getLogger(__name__)


def setup_logging(config: ConfigManager) -> None:
    log_config = config.get_config().logging
    log_path = config.get_custom_log_path()
    if log_path:
        Path(log_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        Path(log_path).expanduser() if log_path else get_log_path(),
        maxBytes=log_config.max_size_mb * 1024 * 1024,
        backupCount=log_config.backup_count,
    )
    handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.get_log_level(), logging.INFO))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="t-docker", description="A TUI for the docker CLI")
    parser.add_argument("--version", action="version", version=f"t-docker v{__version__}")
    parser.add_argument("--config-dir", type=Path, default=None,
                        help="configuration directory (default: ~/.config/t-docker)")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("ps", help="List docker containers")
    return parser


def print_containers(config: ConfigManager, console: Optional[Console] = None) -> int:
    console = console or Console()
    result = CommandDispatcher(config.docker).list_units_sync()
    if not result.ok:
        console.print(result.error, style=config.theme.error, markup=False)
        return 1
    parsed = parse(result.output)
    state = DashboardState(records=parsed.records, selected=-1, loading=False,
                           ready=True, skipped_lines=parsed.skipped)
    console.print(render_table(state, config.theme))
    if parsed.skipped:
        console.print(render_status(state, config.theme))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = ConfigManager(args.config_dir)
    setup_logging(config)
    logger.info(f"t-docker {__version__} started (command={args.command or 'dashboard'})")

    if args.command == "ps":
        return print_containers(config)

    try:
        TDockerApp(config).run()
    except Exception as e:
        logger.error(f"Error running program: {e}", exc_info=True)
        print(f"Error running program: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
