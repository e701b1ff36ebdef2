"""nginx virtual host actions."""

import logging
import time
from dataclasses import dataclass

import requests
import urllib3

from common import ActionResult, run_command, write_file
from config import DeployConfig
from templates import render_http_site

# The health probe talks to 127.0.0.1, which never matches the certificate
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

logger = logging.getLogger(__name__)


def install_site(config: DeployConfig, content: str) -> None:
    """Write the site file and enable it, dropping nginx's default site."""
    write_file(config.nginx_conf, content)

    if not config.nginx_link.exists() and not config.nginx_link.is_symlink():
        config.nginx_link.parent.mkdir(parents=True, exist_ok=True)
        config.nginx_link.symlink_to(config.nginx_conf)

    default_site = config.nginx_sites_enabled / 'default'
    if default_site.exists() or default_site.is_symlink():
        logger.info(f"Removing {default_site}")
        default_site.unlink()


def validate_and_reload() -> tuple[bool, str]:
    """Validate the nginx configuration and reload only if it passes.

    Returns:
        (success, message) tuple
    """
    rc, out, err = run_command(['nginx', '-t'], timeout=30)
    if rc != 0:
        # nginx -t reports on stderr
        detail = (err or out).strip()[-500:]
        return False, f"nginx -t failed, reload skipped: {detail}"

    rc, out, err = run_command(['systemctl', 'reload', 'nginx'], timeout=60)
    if rc != 0:
        return False, f"nginx reload failed: {(err or out).strip()}"
    return True, "nginx reloaded"


@dataclass
class WriteProxyConfigAction:
    """Install the HTTP-only virtual host for the domain."""
    name: str

    def run(self, config: DeployConfig, _context: dict) -> ActionResult:
        """Render, enable, test and reload."""
        start = time.time()

        logger.info(f"[{self.name}] Writing {config.nginx_conf}...")
        try:
            install_site(config, render_http_site(config))
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
                continue_on_failure=not config.strict
            )

        return ActionResult(
            success=True,
            message=f"HTTP site enabled for {config.domain}",
            duration=time.time() - start
        )


@dataclass
class VerifyProxyAction:
    """Probe the proxy's /health endpoint through nginx."""
    name: str
    timeout: float = 10.0

    def run(self, config: DeployConfig, _context: dict) -> ActionResult:
        """GET /health on the local nginx with the site's Host header."""
        start = time.time()

        scheme = 'https' if config.has_certificate() else 'http'
        url = f"{scheme}://127.0.0.1/health"
        logger.info(f"[{self.name}] Probing {url} (Host: {config.domain})...")

        try:
            resp = requests.get(
                url,
                headers={'Host': config.domain},
                verify=False,
                allow_redirects=False,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            message = f"Timeout probing {url}"
        except requests.exceptions.RequestException as e:
            message = f"Cannot reach {url}: {e}"
        else:
            if resp.status_code == 200 and 'healthy' in resp.text:
                return ActionResult(
                    success=True,
                    message=f"{scheme.upper()} health check passed",
                    duration=time.time() - start
                )
            message = f"Unexpected health response: {resp.status_code} - {resp.text[:100]}"

        return ActionResult(
            success=False,
            message=message,
            duration=time.time() - start,
            continue_on_failure=True
        )
