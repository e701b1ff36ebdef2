"""Container lifecycle actions."""

import logging
import time
from dataclasses import dataclass

from common import ActionResult, container_logs, run_command, wait_for_container
from config import DeployConfig
from templates import container_run_args

logger = logging.getLogger(__name__)


@dataclass
class LaunchContainerAction:
    """Replace the Sub-Store container with a fresh one from the latest image."""
    name: str
    pull_timeout: int = 900
    wait_timeout: float = 30
    wait_interval: float = 1.0
    wait_max_interval: float = 8.0

    def run(self, config: DeployConfig, _context: dict) -> ActionResult:
        """Create data dir, remove old container, pull, run, wait for running."""
        start = time.time()
        container = config.container_name

        logger.info(f"[{self.name}] Creating data directory {config.data_dir}...")
        try:
            config.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return ActionResult(
                success=False,
                message=f"Cannot create {config.data_dir}: {e}",
                duration=time.time() - start
            )

        # Absent on first run
        for verb in ('stop', 'rm'):
            rc, _, err = run_command(['docker', verb, container], timeout=60)
            if rc != 0:
                logger.debug(f"[{self.name}] docker {verb} {container}: {err.strip()}")

        logger.info(f"[{self.name}] Pulling {config.image}...")
        rc, out, err = run_command(['docker', 'pull', config.image], timeout=self.pull_timeout)
        if rc != 0:
            return ActionResult(
                success=False,
                message=f"Failed to pull {config.image}: {(err or out).strip()}",
                duration=time.time() - start
            )

        logger.info(f"[{self.name}] Starting {container} on port {config.port}...")
        rc, out, err = run_command(container_run_args(config), timeout=120)
        if rc != 0:
            return ActionResult(
                success=False,
                message=f"Failed to start {container}: {(err or out).strip()}",
                duration=time.time() - start
            )

        if not wait_for_container(
            container,
            timeout=self.wait_timeout,
            interval=self.wait_interval,
            max_interval=self.wait_max_interval
        ):
            logs = container_logs(container)
            logger.error(f"[{self.name}] Container logs:\n{logs}")
            return ActionResult(
                success=False,
                message=f"Container {container} is not running",
                duration=time.time() - start,
                context_updates={'container_logs': logs}
            )

        return ActionResult(
            success=True,
            message=f"Container {container} running",
            duration=time.time() - start,
            context_updates={'container_id': out.strip()[:12]}
        )
