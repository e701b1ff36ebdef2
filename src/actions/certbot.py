"""TLS certificate issuance via certbot's nginx plugin."""

import logging
import time
from dataclasses import dataclass

from actions.nginx import install_site, validate_and_reload
from common import ActionResult, run_command
from config import DeployConfig
from prompts import ask_certificate
from templates import render_https_site
from validation import validate_host_resolvable

logger = logging.getLogger(__name__)


def certbot_command(domain: str, email: str = '') -> list[str]:
    """Build a non-interactive certbot invocation for the nginx plugin."""
    cmd = ['certbot', '--nginx', '--agree-tos']
    if email:
        cmd += ['--email', email]
    else:
        cmd += ['--register-unsafely-without-email']
    cmd += ['-d', domain, '--non-interactive']
    return cmd


@dataclass
class IssueCertificateAction:
    """Request a certificate and switch the site to HTTPS.

    Context keys (set from the answers file; prompted for when absent):
    - issue_certificate: bool
    - email: registration address, empty for none
    """
    name: str
    timeout: int = 300

    def run(self, config: DeployConfig, context: dict) -> ActionResult:
        """Run certbot, then install the HTTPS virtual host."""
        start = time.time()

        resolved, result = validate_host_resolvable(config.domain)
        if resolved:
            logger.info(f"[{self.name}] {config.domain} resolves to {result}")
        else:
            logger.warning(f"[{self.name}] {result}")

        if 'issue_certificate' in context:
            issue = context['issue_certificate']
            email = context.get('email') or config.email
        else:
            issue, email = ask_certificate(config)

        if not issue:
            logger.warning(f"[{self.name}] Skipping certificate, keeping HTTP-only site")
            return ActionResult(
                success=True,
                message="Certificate skipped, serving HTTP only",
                duration=time.time() - start
            )

        logger.info(f"[{self.name}] Requesting certificate for {config.domain}...")
        rc, out, err = run_command(certbot_command(config.domain, email), timeout=self.timeout)
        if rc != 0:
            detail = (err or out).strip()[-500:]
            return ActionResult(
                success=False,
                message=f"Certificate request failed, continuing with HTTP: {detail}",
                duration=time.time() - start,
                continue_on_failure=True
            )

        logger.info(f"[{self.name}] Certificate issued, writing HTTPS site...")
        try:
            install_site(config, render_https_site(config))
        except OSError as e:
            return ActionResult(
                success=False,
                message=f"Cannot write nginx site: {e}",
                duration=time.time() - start
            )

        ok, message = validate_and_reload()
        if not ok:
            return ActionResult(
                success=False,
                message=message,
                duration=time.time() - start,
                continue_on_failure=not config.strict,
                context_updates={'certificate_issued': True}
            )

        return ActionResult(
            success=True,
            message=f"Certificate issued, HTTPS enabled for {config.domain}",
            duration=time.time() - start,
            context_updates={'certificate_issued': True}
        )
