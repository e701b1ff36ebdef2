"""Rendered host files: nginx virtual hosts, scheduled jobs, helper script."""

import shlex

from config import DeployConfig

SSL_PROTOCOLS = 'TLSv1.2 TLSv1.3'
SSL_CIPHERS = 'ECDHE-RSA-AES128-GCM-SHA256:ECDHE-RSA-AES256-GCM-SHA384'

_PROXY_HEADERS = """\
        proxy_pass http://127.0.0.1:{port};
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;"""

_HEALTH_LOCATION = """\
    location /health {
        access_log off;
        return 200 "healthy\\n";
        add_header Content-Type text/plain;
    }"""


def container_run_args(config: DeployConfig, docker: str = 'docker') -> list[str]:
    """Build the `docker run` invocation for the Sub-Store container."""
    return [
        docker, 'run', '-d', '--restart=always',
        '--name', config.container_name,
        '-e', f'SUB_STORE_CRON={config.container_cron}',
        '-e', f'SUB_STORE_FRONTEND_BACKEND_PATH={config.api_path}',
        '-e', f'API_URL={config.api_url}',
        '-p', f'{config.port}:{config.port}',
        '-v', f'{config.data_dir}:{config.container_data_dir}',
        config.image,
    ]


def render_http_site(config: DeployConfig) -> str:
    """Plain HTTP virtual host proxying to the container."""
    proxy = _PROXY_HEADERS.format(port=config.port)
    return f"""server {{
    listen 80;
    server_name {config.domain};

    location / {{
{proxy}
    }}

{_HEALTH_LOCATION}
}}
"""


def render_https_site(config: DeployConfig) -> str:
    """HTTP->HTTPS redirect plus a TLS virtual host with WebSocket support."""
    proxy = _PROXY_HEADERS.format(port=config.port)
    return f"""server {{
    listen 80;
    server_name {config.domain};
    return 301 https://$host$request_uri;
}}

server {{
    listen 443 ssl http2;
    server_name {config.domain};

    ssl_certificate {config.cert_path};
    ssl_certificate_key {config.key_path};

    ssl_protocols {SSL_PROTOCOLS};
    ssl_ciphers {SSL_CIPHERS};
    ssl_prefer_server_ciphers off;
    ssl_session_cache shared:SSL:10m;
    ssl_session_timeout 1d;

    location / {{
{proxy}

        proxy_http_version 1.1;
        proxy_set_header Upgrade $http_upgrade;
        proxy_set_header Connection "upgrade";
    }}

{_HEALTH_LOCATION}
}}
"""


def render_renewal_job() -> str:
    """Daily certificate renewal, reloading nginx when a cert changes."""
    return """#!/bin/bash
certbot renew --quiet --deploy-hook "systemctl reload nginx"
"""


def render_update_job(config: DeployConfig) -> str:
    """cron.d entry that refreshes the image every third day at 03:00.

    cron has no line continuation, so the whole pipeline is one line, and
    a literal % must be escaped.
    """
    docker = '/usr/bin/docker'
    name = shlex.quote(config.container_name)
    image = shlex.quote(config.image)
    pipeline = ' && '.join([
        f'{docker} pull {image}',
        f'{docker} stop {name}',
        f'{docker} rm {name}',
        shlex.join(container_run_args(config, docker=docker)),
    ]).replace('%', '\\%')
    return (
        "# Sub-Store image update (every 3 days at 03:00)\n"
        "SHELL=/bin/bash\n"
        f"0 3 */3 * * root ({pipeline}) >> {config.update_log} 2>&1\n"
    )


def render_manage_script(config: DeployConfig) -> str:
    """Helper script for day-to-day container control.

    `update` only pulls and removes; the operator re-runs the deployment
    to relaunch with the original settings.
    """
    name = shlex.quote(config.container_name)
    image = shlex.quote(config.image)
    return f"""#!/bin/bash

case "$1" in
    start)
        docker start {name}
        echo "Sub-Store started"
        ;;
    stop)
        docker stop {name}
        echo "Sub-Store stopped"
        ;;
    restart)
        docker restart {name}
        echo "Sub-Store restarted"
        ;;
    status)
        docker ps --filter name={name}
        ;;
    logs)
        docker logs -f {name}
        ;;
    update)
        docker pull {image}
        docker stop {name}
        docker rm {name}
        echo "Image updated and old container removed."
        echo "Re-run substore-deploy to start the new container."
        ;;
    *)
        echo "Usage: $0 {{start|stop|restart|status|logs|update}}"
        exit 1
        ;;
esac
"""
