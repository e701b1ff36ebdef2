"""Sub-Store deployment scenario.

Provisions nginx, a Let's Encrypt certificate and the Sub-Store container
on the local host, then installs the renewal and update jobs.
"""

from typing import Optional

from actions import (
    CheckPrivilegeAction,
    ConfigureFirewallAction,
    EnableServicesAction,
    InstallPackagesAction,
    InstallRenewalJobAction,
    InstallUpdateJobAction,
    IssueCertificateAction,
    LaunchContainerAction,
    VerifyProxyAction,
    WriteManagementScriptAction,
    WriteProxyConfigAction,
)
from config import DeployConfig
from prompts import BANNER


class SubStoreDeploy:
    """Deploy Sub-Store behind nginx with optional TLS."""

    name = 'deploy'
    description = 'Deploy Sub-Store behind nginx with TLS'

    def get_phases(self, _config: Optional[DeployConfig] = None) -> list[tuple[str, object, str]]:
        """Return phases in execution order."""
        return [
            ('check_privilege', CheckPrivilegeAction(name='root'), 'Check root privileges'),
            ('install_packages', InstallPackagesAction(name='apt'), 'Update system and install packages'),
            ('enable_services', EnableServicesAction(name='systemd'), 'Enable docker and nginx'),
            ('configure_firewall', ConfigureFirewallAction(name='ufw'), 'Configure firewall'),
            ('write_proxy_config', WriteProxyConfigAction(name='nginx-http'), 'Write nginx HTTP site'),
            ('issue_certificate', IssueCertificateAction(name='certbot'), 'Request TLS certificate'),
            ('launch_container', LaunchContainerAction(name='docker'), 'Start Sub-Store container'),
            ('verify_proxy', VerifyProxyAction(name='health'), 'Probe /health through nginx'),
            ('install_renewal_job', InstallRenewalJobAction(name='cert-renew'), 'Install certificate renewal job'),
            ('install_update_job', InstallUpdateJobAction(name='image-update'), 'Install image update job'),
            ('write_management_script', WriteManagementScriptAction(name='manage'), 'Write management script'),
        ]


def format_summary(config: DeployConfig) -> str:
    """Render the post-deployment summary.

    URLs use https only when the certificate file is present.
    """
    scheme = 'https' if config.has_certificate() else 'http'
    manage = config.manage_script

    lines = [
        "",
        BANNER,
        "  Sub-Store deployment complete",
        BANNER,
        "",
        "Access:",
        f"  Panel:         {scheme}://{config.domain}",
        f"  Subscriptions: {scheme}://{config.domain}/subs?api={config.api_url}",
        "",
        "Management:",
        f"  Start:    {manage} start",
        f"  Stop:     {manage} stop",
        f"  Restart:  {manage} restart",
        f"  Status:   {manage} status",
        f"  Logs:     {manage} logs",
        "",
        "Files:",
        f"  Data directory:     {config.data_dir}",
        f"  nginx config:       {config.nginx_conf}",
        f"  Management script:  {manage}",
        "",
        f"Keep your API path private, it works as a shared secret: {config.api_path}",
        BANNER,
    ]
    return '\n'.join(lines)
