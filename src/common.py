"""Common utilities and types for host provisioning."""

import logging
import os
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Result returned by an action."""
    success: bool
    message: str = ''
    duration: float = 0.0
    context_updates: dict = field(default_factory=dict)
    continue_on_failure: bool = False


def run_command(
    cmd: list[str],
    cwd: Optional[Path] = None,
    timeout: int = 600,
    capture: bool = True,
    env: Optional[dict] = None
) -> tuple[int, str, str]:
    """Run a command and return (returncode, stdout, stderr)."""
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=capture,
            text=True,
            timeout=timeout,
            env=env,
            check=False  # We handle return codes explicitly
        )
        return result.returncode, result.stdout or '', result.stderr or ''
    except subprocess.TimeoutExpired:
        return -1, '', f'Command timed out after {timeout}s'
    except OSError as e:
        return -1, '', str(e)


def run_steps(steps: list[list[str]], timeout: int = 600,
              env: Optional[dict] = None,
              stop_on_failure: bool = True) -> tuple[bool, str]:
    """Run commands in order.

    With stop_on_failure=False every command runs and all failures are
    collected.

    Returns:
        (success, error) tuple; error names each failed command.
    """
    errors = []
    for cmd in steps:
        rc, out, err = run_command(cmd, timeout=timeout, env=env)
        if rc != 0:
            detail = (err or out).strip()[-300:]
            errors.append(f"'{' '.join(cmd)}' exited {rc}: {detail}")
            if stop_on_failure:
                break
    return not errors, '; '.join(errors)


def is_root() -> bool:
    """True when running with an effective uid of 0."""
    return os.geteuid() == 0


def container_running(name: str) -> bool:
    """Check docker's view of a container's running state."""
    rc, out, _ = run_command(
        ['docker', 'inspect', '-f', '{{.State.Running}}', name],
        timeout=30
    )
    return rc == 0 and out.strip() == 'true'


def container_logs(name: str, tail: int = 50) -> str:
    """Return the last lines of a container's combined output."""
    rc, out, err = run_command(['docker', 'logs', '--tail', str(tail), name], timeout=30)
    if rc != 0:
        return err.strip()
    # docker logs writes the container's stderr to our stderr
    return '\n'.join(part for part in (out.strip(), err.strip()) if part)


def wait_for_container(
    name: str,
    timeout: float = 30,
    interval: float = 1.0,
    max_interval: float = 8.0
) -> bool:
    """Poll until a container is running, doubling the delay between checks."""
    logger.info(f"Waiting for container {name}...")
    deadline = time.time() + timeout
    delay = interval
    while True:
        if container_running(name):
            logger.info(f"Container {name} is running")
            return True
        remaining = deadline - time.time()
        if remaining <= 0:
            break
        logger.debug(f"Container {name} not running yet, retrying in {min(delay, remaining):.1f}s...")
        time.sleep(min(delay, remaining))
        delay = min(delay * 2, max_interval)
    logger.error(f"Timeout waiting for container {name}")
    return False


def write_file(path: Path, content: str, mode: Optional[int] = None) -> None:
    """Write text to path, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding='utf-8')
    if mode is not None:
        path.chmod(mode)
