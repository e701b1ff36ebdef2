"""Scheduled jobs and the operator helper script."""

import logging
import time
from dataclasses import dataclass

from common import ActionResult, run_command, write_file
from config import DeployConfig
from templates import render_manage_script, render_renewal_job, render_update_job

logger = logging.getLogger(__name__)


@dataclass
class InstallRenewalJobAction:
    """Install the daily certbot renewal job once a certificate exists."""
    name: str

    def run(self, config: DeployConfig, _context: dict) -> ActionResult:
        """Write /etc/cron.daily/cert_renew."""
        start = time.time()

        if not config.has_certificate():
            return ActionResult(
                success=True,
                message=f"No certificate at {config.cert_path}, renewal job skipped",
                duration=time.time() - start
            )

        logger.info(f"[{self.name}] Writing {config.renewal_job}...")
        try:
            write_file(config.renewal_job, render_renewal_job(), mode=0o755)
        except OSError as e:
            return ActionResult(
                success=False,
                message=f"Cannot write renewal job: {e}",
                duration=time.time() - start,
                continue_on_failure=not config.strict
            )

        return ActionResult(
            success=True,
            message=f"Daily renewal job installed at {config.renewal_job}",
            duration=time.time() - start
        )


@dataclass
class InstallUpdateJobAction:
    """Install the every-third-day image update job and restart cron."""
    name: str

    def run(self, config: DeployConfig, _context: dict) -> ActionResult:
        """Write /etc/cron.d/substore_update."""
        start = time.time()

        logger.info(f"[{self.name}] Writing {config.update_job}...")
        try:
            write_file(config.update_job, render_update_job(config), mode=0o644)
        except OSError as e:
            return ActionResult(
                success=False,
                message=f"Cannot write update job: {e}",
                duration=time.time() - start,
                continue_on_failure=not config.strict
            )

        rc, out, err = run_command(['systemctl', 'restart', 'cron'], timeout=60)
        if rc != 0:
            return ActionResult(
                success=False,
                message=f"cron restart failed: {(err or out).strip()}",
                duration=time.time() - start,
                continue_on_failure=not config.strict
            )

        return ActionResult(
            success=True,
            message=f"Update job installed at {config.update_job}",
            duration=time.time() - start
        )


@dataclass
class WriteManagementScriptAction:
    """Write the start/stop/restart/status/logs/update helper."""
    name: str

    def run(self, config: DeployConfig, _context: dict) -> ActionResult:
        """Write the helper script with mode 0755."""
        start = time.time()

        logger.info(f"[{self.name}] Writing {config.manage_script}...")
        try:
            write_file(config.manage_script, render_manage_script(config), mode=0o755)
        except OSError as e:
            return ActionResult(
                success=False,
                message=f"Cannot write management script: {e}",
                duration=time.time() - start,
                continue_on_failure=not config.strict
            )

        return ActionResult(
            success=True,
            message=f"Management script at {config.manage_script}",
            duration=time.time() - start
        )
