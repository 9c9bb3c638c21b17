"""
Docker CLI wrapper: the only module that spawns external processes.

Two invocation modes:
  - Captured (list, stop, restart, delete, open): output is captured and
    returned as a Result; the work runs in a worker thread via
    asyncio.to_thread so the event loop never blocks on process I/O.
  - Interactive handoff (attach): the child inherits the terminal and the
    caller blocks until it exits. The caller must have released the
    terminal first (see TDockerApp.suspend()).

All operations follow a fail-safe pattern: launch failures, non-zero exits
and validation problems come back as Failure values carrying a
human-readable cause. Nothing here raises into the dashboard.

Key Classes:
  - CommandDispatcher: builds argv lists and classifies outcomes

Error Handling:
  - OSError on launch -> Failure("failed to launch ...")
  - non-zero exit     -> Failure(<combined output>)
  - stopped container on attach / no tcp port on open -> Failure before spawn
"""

import asyncio
import functools
import logging
import re
import subprocess
from typing import Callable, Dict, List, Optional, Union

from .config import DockerConfig
from .exceptions import PortNotFoundError
from .model import ActionKind, Failure, Record, Result, Success
from .parser import PS_FORMAT

logger = logging.getLogger(__name__)

PORT_RE = re.compile(r"(\d+)->\d+/tcp")


def extract_port(port_mapping: str) -> str:
    """First host port of a ``0.0.0.0:8080->80/tcp, ...`` mapping."""
    match = PORT_RE.search(port_mapping)
    if not match:
        raise PortNotFoundError(f"no port found in {port_mapping!r}")
    return match.group(1)


def validate_action(kind: ActionKind, record: Record) -> Optional[Failure]:
    """Reject actions the target is not eligible for, before anything is spawned."""
    if kind is ActionKind.ATTACH and record.state == "stopped":
        return Failure(f"Cannot attach to stopped container {record.names}: {record.status}")
    if kind is ActionKind.OPEN:
        try:
            extract_port(record.ports)
        except PortNotFoundError as e:
            return Failure(f"Cannot open {record.names}: {e}")
    return None


def command_safe(func: Callable[..., Result]) -> Callable[..., Result]:
    """
    Decorator for process-spawning methods.

    Converts launch errors into Failure results and logs them, so a missing
    docker binary or a permission problem shows up inline instead of
    crashing the UI.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Result:
        try:
            return func(*args, **kwargs)
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"Command failed to launch in {func.__name__}: {e}", exc_info=True)
            return Failure(f"failed to launch: {e}")
    return wrapper


class CommandDispatcher:
    def __init__(self, docker_config: Optional[DockerConfig] = None):
        self.config = docker_config or DockerConfig()
        self._handlers: Dict[ActionKind, Callable[[Record], Result]] = {
            ActionKind.STOP: self.stop_container,
            ActionKind.RESTART: self.restart_container,
            ActionKind.DELETE: self.remove_container,
            ActionKind.OPEN: self.open_endpoint,
        }

    def _docker(self, *args: str) -> List[str]:
        return [self.config.binary, *args]

    @command_safe
    def _run_captured(self, argv: List[str], combine: bool = True) -> Result:
        logger.debug(f"Running {' '.join(argv)}")
        result = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if combine else subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
        if result.returncode != 0:
            detail = (result.stdout if combine else result.stderr or result.stdout) or ""
            message = f"{' '.join(argv[:2])} failed (exit {result.returncode})"
            if detail.strip():
                message = f"{message}: {detail.strip()}"
            logger.error(message)
            return Failure(message)
        return Success(result.stdout or "")

    # --- DATA SOURCE ---

    async def list_units(self) -> Result:
        """Raw ``docker ps --all`` output, one tab-separated row per container."""
        argv = self._docker("ps", "--all", "--format", PS_FORMAT)
        return await asyncio.to_thread(self._run_captured, argv, False)

    def list_units_sync(self) -> Result:
        return self._run_captured(self._docker("ps", "--all", "--format", PS_FORMAT), False)

    # --- CAPTURED ACTIONS ---

    def stop_container(self, record: Record) -> Result:
        result = self._run_captured(self._docker("stop", record.id))
        if result.ok:
            logger.info(f"Container '{record.names}' stopped")
            return Success(f"Stopped {record.names}")
        return result

    def restart_container(self, record: Record) -> Result:
        result = self._run_captured(self._docker("restart", record.id))
        if result.ok:
            logger.info(f"Container '{record.names}' restarted")
            return Success(f"Restarted {record.names}")
        return result

    def remove_container(self, record: Record) -> Result:
        args = ["rm", "--volumes", record.id] if self.config.remove_volumes else ["rm", record.id]
        result = self._run_captured(self._docker(*args))
        if result.ok:
            logger.info(f"Container '{record.names}' removed")
            return Success(f"Deleted {record.names}")
        return result

    def endpoint_url(self, record: Record) -> str:
        return self.config.url_template.format(port=extract_port(record.ports))

    @command_safe
    def open_endpoint(self, record: Record) -> Result:
        rejection = validate_action(ActionKind.OPEN, record)
        if rejection is not None:
            return rejection
        url = self.endpoint_url(record)
        # Detached: the opener may outlive the dashboard.
        subprocess.Popen(
            [self.config.opener, url],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        logger.info(f"Opened {url}")
        return Success(f"Opened {url}")

    # --- INTERACTIVE HANDOFF ---

    def attach_command(self, record: Record) -> Union[List[str], Failure]:
        """argv for a shell inside the container, or a Failure if it is not running."""
        rejection = validate_action(ActionKind.ATTACH, record)
        if rejection is not None:
            return rejection
        return self._docker("exec", "-it", record.id, self.config.default_shell)

    @command_safe
    def run_interactive(self, argv: List[str]) -> Result:
        """Run argv on the inherited terminal and block until it exits."""
        logger.info(f"Handing terminal to {' '.join(argv)}")
        return_code = subprocess.call(argv)
        if return_code != 0:
            return Failure(f"Command failed (exit {return_code}): {' '.join(argv[:3])}")
        return Success(f"{' '.join(argv[:3])} exited")

    async def invoke(self, kind: ActionKind, record: Record) -> Result:
        """
        Run a captured action against `record` in a worker thread.

        ATTACH is not captured: it needs the terminal, so the host suspends
        itself and calls attach_command/run_interactive instead.
        """
        handler = self._handlers.get(kind)
        if handler is None:
            logger.error(f"{kind.value} cannot run captured")
            return Failure(f"{kind.value} needs the terminal and cannot run in the background")
        return await asyncio.to_thread(handler, record)
