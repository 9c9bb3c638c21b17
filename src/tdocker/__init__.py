"""
t-docker - A terminal dashboard for the docker CLI.

Lists every container reported by ``docker ps --all`` and lets the operator
act on the selected one without leaving the terminal.

Features:
  - Live container table, refreshed on startup and after every action
  - Stopped/exited containers rendered dimmed
  - Attach (exec shell), stop, restart, delete, open mapped port in browser
  - Duplicate keystroke suppression for in-flight actions

Main Components:
  - parser.py: tab-separated ``docker ps`` output -> Record list
  - projection.py: Record list -> styled display rows
  - backend.py: the only place that spawns docker / opener processes
  - controller.py: event -> (state, effects) state machine
  - renderer.py: state -> rich renderable
  - app.py: Textual host that owns the terminal

Usage:
  t-docker
  python -m tdocker

Dependencies:
  - textual / rich
  - PyYAML
  - Python 3.10+
"""

import os
from pathlib import Path

__version__ = "0.1.0"


def get_log_path() -> str:
    """
    Get the log file path following XDG Base Directory spec.

    Returns XDG_DATA_HOME/t-docker/logs/t-docker.log with fallback to /tmp.
    Creates directory if it doesn't exist.
    """
    xdg_data_home = os.environ.get('XDG_DATA_HOME')
    if not xdg_data_home:
        xdg_data_home = Path.home() / '.local' / 'share'
    else:
        xdg_data_home = Path(xdg_data_home)

    log_dir = xdg_data_home / 't-docker' / 'logs'

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        return str(log_dir / 't-docker.log')
    except (PermissionError, OSError):
        return '/tmp/t-docker.log'
