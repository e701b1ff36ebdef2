"""Host provisioning actions."""

from actions.system import (
    CheckPrivilegeAction,
    InstallPackagesAction,
    EnableServicesAction,
    ConfigureFirewallAction,
)
from actions.nginx import WriteProxyConfigAction, VerifyProxyAction
from actions.certbot import IssueCertificateAction
from actions.docker import LaunchContainerAction
from actions.jobs import (
    InstallRenewalJobAction,
    InstallUpdateJobAction,
    WriteManagementScriptAction,
)

__all__ = [
    'CheckPrivilegeAction',
    'InstallPackagesAction',
    'EnableServicesAction',
    'ConfigureFirewallAction',
    'WriteProxyConfigAction',
    'VerifyProxyAction',
    'IssueCertificateAction',
    'LaunchContainerAction',
    'InstallRenewalJobAction',
    'InstallUpdateJobAction',
    'WriteManagementScriptAction',
]
