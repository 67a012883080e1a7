"""Per-service deployment extras.

A ServiceProfile says what a service needs beyond "push the compose file and
start it": secrets to collect into a .env file before start, an action to
run once the service is up, and an access hint for the operator.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from pvedeploy.cli_support import print_info, print_success
from pvedeploy.core.config import PvedeployConfig
from pvedeploy.core.errors import CommandError, DeployError
from pvedeploy.core.prompts import Prompter, ask_confirmed_secret
from pvedeploy.models.service import ServiceDescriptor
from pvedeploy.services.proxmox.pct import PctClient


@dataclass(frozen=True)
class SecretField:
    """One value written to the service's .env file.

    Secret fields are read without echo and must be entered twice.
    """
    key: str
    label: str
    secret: bool = False
    hint: Optional[str] = None


@dataclass
class PostDeployContext:
    """Everything a post-deploy action may touch."""
    service: ServiceDescriptor
    client: PctClient
    prompter: Prompter
    config: PvedeployConfig
    sleep: Callable[[float], None]


PostDeployAction = Callable[[PostDeployContext], None]


@dataclass(frozen=True)
class ServiceProfile:
    secret_fields: List[SecretField] = field(default_factory=list)
    post_deploy: Optional[PostDeployAction] = None
    info_message: Optional[str] = None

    def render_info(self, service: ServiceDescriptor) -> Optional[str]:
        """Access hint with {ip}, {name} and {id} filled in."""
        if not self.info_message:
            return None
        return self.info_message.format(ip=service.static_ip, name=service.name, id=service.id)


def set_pihole_password(ctx: PostDeployContext) -> None:
    """Set the Pi-hole web admin password inside the running container."""
    console = ctx.prompter.console
    print_info(console, "Setting Pi-hole admin password...")
    print_info(
        console,
        f"Waiting for Pi-hole to initialize ({ctx.config.post_deploy_settle_time:.0f} seconds)...",
    )
    ctx.sleep(ctx.config.post_deploy_settle_time)

    password = ask_confirmed_secret(
        ctx.prompter, "Enter new Pi-hole admin password", "Confirm new password"
    )
    try:
        ctx.client.exec(
            ctx.service.id,
            ['docker', 'exec', 'pihole', 'pihole', 'setpassword', password],
            redact=[password],
        )
    except CommandError as e:
        raise DeployError("Failed to set Pi-hole password.") from e
    print_success(console, "Pi-hole password has been set successfully.")


PROFILES: Dict[str, ServiceProfile] = {
    'pihole': ServiceProfile(
        post_deploy=set_pihole_password,
        info_message="Pi-hole admin is available at: http://{ip}/admin",
    ),
    'wireguard': ServiceProfile(
        secret_fields=[
            SecretField(
                'WG_HOST',
                "Enter WireGuard Host (e.g., my.domain.com or public_ip)",
                hint=(
                    "Please provide the public address for your WireGuard server.\n"
                    "This is the domain name or public IP that clients will use to connect."
                ),
            ),
            SecretField('PASSWORD', "Enter a password for the WireGuard web admin panel", secret=True),
        ],
        info_message="WireGuard UI is available at: http://{ip}:51821",
    ),
    'samba': ServiceProfile(
        secret_fields=[
            SecretField('SAMBA_USER', "Enter the Samba share username"),
            SecretField('SAMBA_PASSWORD', "Enter the Samba share password", secret=True),
        ],
        info_message="Samba share is available at: \\\\{ip}",
    ),
    'rustdesk': ServiceProfile(
        info_message="RustDesk ID/relay server: {ip} (ports 21115-21119)",
    ),
    'nginx-proxy-manager': ServiceProfile(
        info_message="Nginx Proxy Manager admin is available at: http://{ip}:81",
    ),
}

DEFAULT_PROFILE = ServiceProfile()


def get_profile(service: ServiceDescriptor) -> ServiceProfile:
    """Profile for a service; unknown profiles deploy with no extras."""
    return PROFILES.get(service.profile, DEFAULT_PROFILE)
