"""Helpers for running external query tools (modinfo, ioreg)."""

import subprocess
from typing import List

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import CommandError
from .logging import get_logger

logger = get_logger(__name__)


@retry(
    retry=retry_if_exception_type(subprocess.TimeoutExpired),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    reraise=True,
)
def _run(cmd: List[str], timeout: float) -> subprocess.CompletedProcess:
    logger.debug(f"Running command: {' '.join(cmd)}")
    return subprocess.run(
        cmd,
        capture_output=True,
        timeout=timeout,
        check=True
    )


def run_command(cmd: List[str], timeout: float = 3) -> bytes:
    """Run a read-only query command and return its raw stdout.

    Timeouts are retried a few times before giving up.
    """
    try:
        return _run(cmd, timeout).stdout
    except FileNotFoundError as e:
        raise CommandError(f"Command not found: {cmd[0]}") from e
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode(errors="replace").strip() if e.stderr else ""
        raise CommandError(f"Command failed: {' '.join(cmd)}: {stderr}") from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(f"Command timed out: {' '.join(cmd)}") from e


def run_text_command(cmd: List[str], timeout: float = 3) -> str:
    """Run a command and decode its stdout as text."""
    return run_command(cmd, timeout).decode(errors="replace")
