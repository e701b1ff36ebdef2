"""Host preparation actions: privilege, packages, services, firewall."""

import logging
import os
import time
from dataclasses import dataclass, field

from common import ActionResult, is_root, run_steps
from config import DeployConfig

logger = logging.getLogger(__name__)

PACKAGES = ['nginx', 'certbot', 'python3-certbot-nginx', 'docker.io', 'ufw']
SERVICES = ['docker', 'nginx']


@dataclass
class CheckPrivilegeAction:
    """Refuse to continue unless running as root."""
    name: str

    def run(self, _config: DeployConfig, _context: dict) -> ActionResult:
        """Check effective uid."""
        start = time.time()
        if not is_root():
            return ActionResult(
                success=False,
                message="Must be run as root (try sudo)",
                duration=time.time() - start
            )
        return ActionResult(
            success=True,
            message="Running as root",
            duration=time.time() - start
        )


@dataclass
class InstallPackagesAction:
    """Update the system and install nginx, certbot, docker and ufw via apt."""
    name: str
    packages: list = field(default_factory=lambda: list(PACKAGES))
    timeout: int = 1800

    def run(self, config: DeployConfig, _context: dict) -> ActionResult:
        """Run apt-get update, upgrade and install."""
        start = time.time()

        env = dict(os.environ, DEBIAN_FRONTEND='noninteractive')
        errors = []

        logger.info(f"[{self.name}] Updating package lists and upgrading...")
        ok, error = run_steps([
            ['apt-get', 'update'],
            ['apt-get', 'upgrade', '-y'],
        ], timeout=self.timeout, env=env)
        if not ok:
            logger.warning(f"[{self.name}] {error}")
            errors.append(error)

        # install still runs after a failed update unless strict
        if ok or not config.strict:
            logger.info(f"[{self.name}] Installing {', '.join(self.packages)}...")
            ok, error = run_steps([['apt-get', 'install', '-y'] + self.packages],
                                  timeout=self.timeout, env=env)
            if not ok:
                errors.append(error)

        if errors:
            return ActionResult(
                success=False,
                message=f"Package installation failed: {'; '.join(errors)}",
                duration=time.time() - start,
                continue_on_failure=not config.strict
            )

        return ActionResult(
            success=True,
            message=f"Installed {len(self.packages)} packages",
            duration=time.time() - start
        )


@dataclass
class EnableServicesAction:
    """Enable and start docker and nginx as persistent services."""
    name: str
    services: list = field(default_factory=lambda: list(SERVICES))

    def run(self, config: DeployConfig, _context: dict) -> ActionResult:
        """systemctl enable + start each service."""
        start = time.time()

        failed = []
        for service in self.services:
            logger.info(f"[{self.name}] Enabling {service}...")
            ok, error = run_steps([
                ['systemctl', 'enable', service],
                ['systemctl', 'start', service],
            ], timeout=120)
            if not ok:
                logger.debug(f"[{self.name}] {error}")
                failed.append(service)

        if failed:
            return ActionResult(
                success=False,
                message=f"Failed to enable/start: {', '.join(failed)}",
                duration=time.time() - start,
                continue_on_failure=not config.strict
            )

        return ActionResult(
            success=True,
            message=f"Services running: {', '.join(self.services)}",
            duration=time.time() - start
        )


@dataclass
class ConfigureFirewallAction:
    """Enable ufw and open SSH, HTTP, HTTPS and the service port.

    The firewall is enabled before SSH is allowed; `ufw --force enable`
    keeps established sessions, but a new connection can be refused until
    the SSH rule lands.
    """
    name: str

    def run(self, config: DeployConfig, _context: dict) -> ActionResult:
        """Apply ufw rules in order."""
        start = time.time()

        rules = ['ssh', '80', '443', str(config.port)]
        steps = [['ufw', '--force', 'enable']]
        steps += [['ufw', 'allow', rule] for rule in rules]

        logger.info(f"[{self.name}] Opening {', '.join(rules)}...")
        ok, error = run_steps(steps, timeout=60, stop_on_failure=config.strict)
        if not ok:
            return ActionResult(
                success=False,
                message=f"Firewall configuration failed: {error}",
                duration=time.time() - start,
                continue_on_failure=not config.strict
            )

        return ActionResult(
            success=True,
            message=f"Firewall allows {', '.join(rules)}",
            duration=time.time() - start
        )
