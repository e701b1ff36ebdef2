"""Deployment configuration.

A DeployConfig is assembled once per run from an optional answers file
and interactive prompts, then handed to every phase:
- answers file: YAML with domain, port, api_path, email,
  issue_certificate, strict
- prompts: anything the answers file leaves out (see prompts.py)

Resolution order for the answers file:
1. --config PATH on the command line
2. $SUBSTORE_DEPLOY_CONFIG environment variable
"""

import os
import re
import secrets
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

DOMAIN_PATTERN = re.compile(r'^[a-zA-Z0-9][a-zA-Z0-9.-]*[a-zA-Z0-9]$')
DEFAULT_PORT = 3001
API_PATH_PREFIX = '/api-'
API_PATH_LENGTH = 32
API_PATH_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits

ANSWER_KEYS = ('domain', 'port', 'api_path', 'email', 'issue_certificate', 'strict')


class ConfigError(Exception):
    """Configuration error."""


def is_valid_domain(domain: str) -> bool:
    """Check a hostname against the accepted domain format."""
    return bool(domain) and DOMAIN_PATTERN.fullmatch(domain) is not None


def generate_api_path() -> str:
    """Generate a random backend path such as /api-3fQ...(32 chars)."""
    suffix = ''.join(secrets.choice(API_PATH_ALPHABET) for _ in range(API_PATH_LENGTH))
    return f"{API_PATH_PREFIX}{suffix}"


def normalize_api_path(api_path: str) -> str:
    """Ensure the API path starts with a slash."""
    if not api_path.startswith('/'):
        return f"/{api_path}"
    return api_path


def parse_port(value) -> int:
    """Parse a TCP port, raising ValueError when out of range."""
    if isinstance(value, bool):
        raise ValueError(f"port must be a number, not {value}")
    port = int(value)
    if not 1 <= port <= 65535:
        raise ValueError(f"port {port} out of range 1-65535")
    return port


@dataclass
class DeployConfig:
    """Configuration for a single Sub-Store deployment.

    Only domain, port, api_path and email come from the operator. The
    remaining fields are fixed locations; tests point them at a temporary
    directory.
    """
    domain: str
    port: int = DEFAULT_PORT
    api_path: str = field(default_factory=generate_api_path)
    email: str = ''
    strict: bool = False

    data_dir: Path = Path('/root/sub-store-data')
    container_name: str = 'sub-store'
    image: str = 'xream/sub-store'
    container_data_dir: str = '/opt/app/data'
    container_cron: str = '0 0 * * *'

    nginx_sites_available: Path = Path('/etc/nginx/sites-available')
    nginx_sites_enabled: Path = Path('/etc/nginx/sites-enabled')
    letsencrypt_live: Path = Path('/etc/letsencrypt/live')
    renewal_job: Path = Path('/etc/cron.daily/cert_renew')
    update_job: Path = Path('/etc/cron.d/substore_update')
    update_log: Path = Path('/var/log/substore_update.log')
    manage_script: Path = Path('/root/substore_manage.sh')

    def __post_init__(self):
        if not is_valid_domain(self.domain):
            raise ConfigError(f"Invalid domain: '{self.domain}'")
        try:
            self.port = parse_port(self.port)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid port: {e}") from e
        if not self.api_path:
            self.api_path = generate_api_path()
        self.api_path = normalize_api_path(self.api_path)

        for attr in ('data_dir', 'nginx_sites_available', 'nginx_sites_enabled',
                     'letsencrypt_live', 'renewal_job', 'update_job',
                     'update_log', 'manage_script'):
            value = getattr(self, attr)
            if isinstance(value, str):
                setattr(self, attr, Path(value))

    @property
    def api_url(self) -> str:
        return f"https://{self.domain}{self.api_path}"

    @property
    def nginx_conf(self) -> Path:
        return self.nginx_sites_available / self.domain

    @property
    def nginx_link(self) -> Path:
        return self.nginx_sites_enabled / self.domain

    @property
    def cert_path(self) -> Path:
        return self.letsencrypt_live / self.domain / 'fullchain.pem'

    @property
    def key_path(self) -> Path:
        return self.letsencrypt_live / self.domain / 'privkey.pem'

    def has_certificate(self) -> bool:
        """True once certbot has stored a certificate for the domain."""
        return self.cert_path.is_file()


def _parse_yaml(path: Path) -> dict:
    """Parse a YAML file and return contents."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_answers_path(cli_path: Optional[Path] = None) -> Optional[Path]:
    """Locate the answers file, if any.

    Resolution order:
    1. Path given on the command line
    2. $SUBSTORE_DEPLOY_CONFIG environment variable
    """
    if cli_path is not None:
        if not cli_path.exists():
            raise ConfigError(f"Answers file {cli_path} does not exist")
        return cli_path

    if env_path := os.environ.get('SUBSTORE_DEPLOY_CONFIG'):
        path = Path(env_path)
        if path.exists():
            return path
        raise ConfigError(f"SUBSTORE_DEPLOY_CONFIG={env_path} does not exist")

    return None


def load_answers(path: Path) -> dict:
    """Load and validate an answers file.

    Returns only the keys present in the file, with values normalized.
    """
    try:
        data = _parse_yaml(path)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")

    unknown = sorted(set(data) - set(ANSWER_KEYS))
    if unknown:
        raise ConfigError(
            f"{path}: unknown keys: {', '.join(unknown)}\n"
            f"  Allowed: {', '.join(ANSWER_KEYS)}"
        )

    answers: dict = {}

    # A null or empty domain is left for the prompt
    domain = data.get('domain')
    if domain is not None and not isinstance(domain, str):
        raise ConfigError(f"{path}: invalid domain {domain!r}, expected a string")
    domain = (domain or '').strip()
    if domain:
        if not is_valid_domain(domain):
            raise ConfigError(f"{path}: invalid domain '{domain}'")
        answers['domain'] = domain

    if data.get('port') is not None:
        try:
            answers['port'] = parse_port(data['port'])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{path}: invalid port: {e}") from e

    if data.get('api_path'):
        answers['api_path'] = normalize_api_path(str(data['api_path']).strip())

    if data.get('email'):
        answers['email'] = str(data['email']).strip()

    for key in ('issue_certificate', 'strict'):
        if key in data:
            if not isinstance(data[key], bool):
                raise ConfigError(f"{path}: '{key}' must be true or false")
            answers[key] = data[key]

    return answers
