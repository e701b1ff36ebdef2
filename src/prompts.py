"""Interactive collection of deployment settings."""

import logging
from typing import Optional

from config import (
    DEFAULT_PORT,
    DeployConfig,
    generate_api_path,
    is_valid_domain,
    normalize_api_path,
    parse_port,
)

logger = logging.getLogger(__name__)

BANNER = "=================================================="


def confirm(question: str) -> bool:
    """Ask a y/N question. Only 'y' or 'Y' counts as yes."""
    return input(f"{question} (y/N): ").strip() in ('y', 'Y')


def prompt_domain() -> str:
    """Prompt until a well-formed domain is entered."""
    while True:
        domain = input("Domain (e.g. example.com): ").strip()
        if is_valid_domain(domain):
            return domain
        print("Error: enter a valid domain name")


def prompt_port() -> int:
    """Prompt for the service port; empty input keeps the default."""
    while True:
        value = input(f"Service port (default: {DEFAULT_PORT}): ").strip()
        if not value:
            return DEFAULT_PORT
        try:
            return parse_port(value)
        except ValueError:
            print("Error: enter a port number between 1 and 65535")


def prompt_api_path() -> str:
    """Prompt for the backend API path; empty input generates one."""
    value = input("API path (leave empty to generate): ").strip()
    if not value:
        api_path = generate_api_path()
        logger.info(f"Generated API path: {api_path}")
        return api_path
    return normalize_api_path(value)


def prompt_email() -> str:
    """Prompt for an optional certificate notification address."""
    return input("Email for certificate notices (optional): ").strip()


def format_config(config: DeployConfig) -> str:
    """Render the settings shown before confirmation."""
    return '\n'.join([
        "Configuration:",
        f"  Domain:    {config.domain}",
        f"  Port:      {config.port}",
        f"  API path:  {config.api_path}",
        f"  API URL:   {config.api_url}",
        f"  Data dir:  {config.data_dir}",
    ])


def collect_config(answers: Optional[dict] = None, assume_yes: bool = False,
                   **overrides) -> Optional[DeployConfig]:
    """Build a DeployConfig from answers, prompting for whatever is missing.

    Args:
        answers: Values from an answers file (see config.load_answers)
        assume_yes: Skip the final confirmation
        overrides: Extra DeployConfig fields (paths, strict) passed through

    Returns:
        DeployConfig, or None when the operator declines the confirmation
    """
    answers = answers or {}

    print(BANNER)
    print("       Sub-Store deployment")
    print(BANNER)
    print()

    domain = answers.get('domain') or prompt_domain()
    port = answers['port'] if 'port' in answers else prompt_port()
    api_path = answers.get('api_path') or prompt_api_path()

    kwargs = dict(overrides)
    if 'strict' in answers and 'strict' not in kwargs:
        kwargs['strict'] = answers['strict']
    config = DeployConfig(
        domain=domain,
        port=port,
        api_path=api_path,
        email=answers.get('email', ''),
        **kwargs
    )

    print()
    print(format_config(config))
    print()

    if not assume_yes and not confirm("Proceed with this configuration?"):
        return None
    return config


def ask_certificate(config: DeployConfig) -> tuple[bool, str]:
    """Ask whether to request a certificate and which email to register.

    Returns:
        (issue, email) tuple
    """
    logger.warning(f"Make sure {config.domain} resolves to this server's IP address")
    if not confirm("Request a TLS certificate now?"):
        return False, ''
    email = config.email or prompt_email()
    return True, email
