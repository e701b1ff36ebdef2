"""Pre-flight checks for a deployment.

These run on demand (--preflight) and report what the deployment would
run into, with actionable messages. Nothing here changes the host.
"""

import logging
import shutil
import socket
from typing import Optional

from common import is_root, run_command

logger = logging.getLogger(__name__)

# Commands the deployment calls, and the package that provides each
REQUIRED_TOOLS = {
    'apt-get': 'apt',
    'systemctl': 'systemd',
    'nginx': 'nginx',
    'certbot': 'certbot',
    'docker': 'docker.io',
    'ufw': 'ufw',
}


# -----------------------------------------------------------------------------
# Host Checks
# -----------------------------------------------------------------------------

def validate_root() -> list[str]:
    """Validate the process runs as root.

    Returns:
        List of validation error messages (empty if valid)
    """
    if is_root():
        return []
    return [
        "Not running as root\n"
        "  Run with sudo or as root"
    ]


def find_missing_tools(tools: Optional[dict] = None) -> dict[str, str]:
    """Return {command: package} for commands not found on PATH."""
    tools = REQUIRED_TOOLS if tools is None else tools
    return {cmd: pkg for cmd, pkg in tools.items() if shutil.which(cmd) is None}


def validate_distribution() -> list[str]:
    """Validate the host is apt-based (Debian/Ubuntu)."""
    if shutil.which('apt-get') is None:
        return [
            "apt-get not found\n"
            "  Only Debian and Ubuntu hosts are supported"
        ]
    return []


def service_active(service: str) -> bool:
    """Check whether a systemd unit is active."""
    rc, out, _ = run_command(['systemctl', 'is-active', service], timeout=30)
    return rc == 0 and out.strip() == 'active'


# -----------------------------------------------------------------------------
# Network Checks
# -----------------------------------------------------------------------------

def validate_host_resolvable(hostname: str) -> tuple[bool, str]:
    """Check if hostname resolves to an IP address.

    Args:
        hostname: Hostname or IP to resolve

    Returns:
        (success, ip_or_error) tuple
    """
    try:
        ip = socket.gethostbyname(hostname)
        return True, ip
    except socket.gaierror:
        return False, (
            f"Cannot resolve '{hostname}'. "
            f"Certificate issuance will fail until DNS points at this server."
        )


def validate_host_reachable(host: str, port: int, timeout: float = 2.0) -> tuple[bool, str]:
    """Check if something accepts connections on host:port.

    Args:
        host: Hostname or IP
        port: Port to check
        timeout: Connection timeout in seconds

    Returns:
        (success, message) tuple
    """
    try:
        sock = socket.create_connection((host, port), timeout=timeout)
        sock.close()
        return True, f"Port {port} reachable"
    except socket.timeout:
        return False, f"Timeout connecting to {host}:{port}"
    except OSError as e:
        return False, f"Cannot connect to {host}:{port}: {e}"


def validate_port_free(port: int, container_name: str) -> list[str]:
    """Validate the service port is free or already held by our container.

    Returns:
        List of validation error messages (empty if valid)
    """
    in_use, _ = validate_host_reachable('127.0.0.1', port)
    if not in_use:
        return []

    rc, out, _ = run_command(
        ['docker', 'ps', '--filter', f'publish={port}', '--format', '{{.Names}}'],
        timeout=30
    )
    if rc == 0 and container_name in out.split():
        logger.info(f"Port {port} held by existing {container_name} container (will be replaced)")
        return []
    return [
        f"Port {port} is already in use\n"
        f"  Stop the process listening on {port} or choose another port"
    ]


# -----------------------------------------------------------------------------
# Combined Checks
# -----------------------------------------------------------------------------

def run_preflight_checks(domain: Optional[str] = None,
                         port: Optional[int] = None,
                         container_name: str = 'sub-store') -> tuple[bool, dict]:
    """Run standalone preflight checks.

    Missing tools are informational: the deployment installs them.

    Args:
        domain: Domain to resolve (skipped when None)
        port: Service port to check (skipped when None)
        container_name: Container allowed to hold the port

    Returns:
        (success, results) tuple where results contains check details
    """
    results: dict[str, dict[str, list[str]]] = {
        'host': {'passed': [], 'failed': []},
        'tools': {'passed': [], 'failed': []},
        'network': {'passed': [], 'failed': []},
    }

    # Host checks
    root_errors = validate_root()
    if root_errors:
        results['host']['failed'].extend(root_errors)
    else:
        results['host']['passed'].append("Running as root")

    distro_errors = validate_distribution()
    if distro_errors:
        results['host']['failed'].extend(distro_errors)
    else:
        results['host']['passed'].append("apt-based distribution")

    # Tool checks
    missing = find_missing_tools()
    for cmd in REQUIRED_TOOLS:
        if cmd in missing:
            results['tools']['passed'].append(f"{cmd} not installed yet (package {missing[cmd]} will be installed)")
        else:
            results['tools']['passed'].append(f"{cmd} found")

    if shutil.which('systemctl'):
        for service in ('docker', 'nginx'):
            state = 'active' if service_active(service) else 'inactive'
            results['tools']['passed'].append(f"{service} service {state}")

    # Network checks
    if domain:
        success, result = validate_host_resolvable(domain)
        if success:
            results['network']['passed'].append(f"{domain} resolves to {result}")
        else:
            results['network']['failed'].append(result)

    if port:
        port_errors = validate_port_free(port, container_name)
        if port_errors:
            results['network']['failed'].extend(port_errors)
        else:
            results['network']['passed'].append(f"Port {port} available")

    all_failed = []
    for category in results.values():
        all_failed.extend(category['failed'])

    return len(all_failed) == 0, results


def format_preflight_results(hostname: str, results: dict) -> str:
    """Format preflight check results for display.

    Args:
        hostname: Hostname that was checked
        results: Results dict from run_preflight_checks

    Returns:
        Formatted string for display
    """
    lines = [f"\nPreflight checks for '{hostname}':\n"]

    category_names = {
        'host': 'Host',
        'tools': 'Tools',
        'network': 'Network',
    }

    for key, name in category_names.items():
        category = results.get(key, {'passed': [], 'failed': []})
        if category['passed'] or category['failed']:
            lines.append(f"{name}:")
            for item in category['passed']:
                lines.append(f"✓ {item}")
            for item in category['failed']:
                # Handle multi-line errors
                first_line = item.split('\n')[0]
                lines.append(f"✗ {first_line}")
                for line in item.split('\n')[1:]:
                    lines.append(f"  {line}")
            lines.append("")

    all_passed = all(
        len(cat['failed']) == 0
        for cat in results.values()
    )

    if all_passed:
        lines.append("All checks passed. Ready to deploy.")
    else:
        lines.append("Some checks failed. Fix issues before deploying.")

    return '\n'.join(lines)
