"""Container provisioning: create, start, wait for network, install Docker."""
import time
from typing import Optional

from pvedeploy.cli_support import print_info, print_success
from pvedeploy.core.config import PvedeployConfig, get_config
from pvedeploy.core.errors import (
    CommandError,
    FatalProvisioningError,
    NetworkTimeoutError,
    ProvisioningError,
)
from pvedeploy.core.logger import get_logger
from pvedeploy.core.prompts import Prompter
from pvedeploy.core.retry import RetryExhausted, poll_until
from pvedeploy.models.environment import EnvironmentConfig
from pvedeploy.models.service import ProvisionResult, ServiceDescriptor
from .destroyer import ContainerDestroyer
from .pct import PctClient

logger = get_logger(__name__)

# Docker inside LXC needs nesting, and keyctl for unprivileged containers.
DOCKER_FEATURES = 'nesting=1,keyctl=1'
BASE_PACKAGES = ['curl', 'sudo']


class ContainerProvisioner:
    """Brings up one container per service, ready for Compose deployment."""

    def __init__(
        self,
        client: PctClient,
        prompter: Prompter,
        destroyer: Optional[ContainerDestroyer] = None,
        config: Optional[PvedeployConfig] = None,
        sleep=None,
    ):
        self.client = client
        self.prompter = prompter
        self.console = prompter.console
        self.destroyer = destroyer or ContainerDestroyer(client, prompter)
        self.config = config or get_config()
        self.sleep = sleep or time.sleep

    def provision(self, service: ServiceDescriptor, env: EnvironmentConfig) -> ProvisionResult:
        """Create and prepare the container for a service.

        Returns:
            READY when Docker is installed, SKIPPED when the operator kept an
            existing container (the service must then not be deployed)

        Raises:
            FatalProvisioningError: pct create failed
            NetworkTimeoutError: The container never reached the network
            ProvisioningError: Base package or Docker installation failed
        """
        print_info(self.console, f"Starting setup for {service.label}...")

        if self.client.exists(service.id):
            if not self._resolve_conflict(service):
                print_info(self.console, f"Skipping {service.name}.")
                return ProvisionResult.SKIPPED

        self.create(service, env)
        self.start_and_wait(service)
        self.install_docker(service)

        print_success(self.console, f"Container {service.name} is ready.")
        return ProvisionResult.READY

    def _resolve_conflict(self, service: ServiceDescriptor) -> bool:
        """Ask what to do with an existing container; True means recreate."""
        answer = self.prompter.ask(
            f"Container {service.id} ({service.name}) already exists. "
            "(s)kip or (d)elete and recreate? [s/d]",
            default="s",
        )
        if answer.strip().lower() != 'd':
            return False

        self.destroyer.destroy(service.id, service.hostname, confirm=False)
        return True

    def create(self, service: ServiceDescriptor, env: EnvironmentConfig) -> None:
        print_info(self.console, f"Creating container {service.label}...")
        try:
            self.client.create(
                vmid=service.id,
                template=env.os_template,
                hostname=service.hostname,
                storage=env.storage_pool,
                disk_size=service.disk_size,
                cores=service.cpu_cores,
                memory=service.ram_mb,
                net0=env.net0_for(service),
                swap=self.config.swap_mb,
                onboot=True,
                unprivileged=True,
                features=DOCKER_FEATURES,
            )
        except CommandError as e:
            logger.error(f"pct create failed for {service.id}: {e}")
            raise FatalProvisioningError(f"Failed to create CT {service.id}.") from e
        logger.info(f"✓ Container {service.id} ({service.name}) created")

    def start_and_wait(self, service: ServiceDescriptor) -> None:
        try:
            self.client.start(service.id)
        except CommandError as e:
            raise ProvisioningError(f"Failed to start CT {service.id}: {e}") from e

        self.sleep(self.config.network_settle_time)
        self.wait_for_network(service.id)

    def wait_for_network(self, vmid: int) -> int:
        """Poll outbound connectivity from inside the container.

        Raises:
            NetworkTimeoutError: When the attempts or time budget run out
        """
        cfg = self.config
        try:
            return poll_until(
                lambda: self.client.ping(vmid, cfg.ping_target),
                max_attempts=cfg.network_poll_attempts,
                delay=cfg.network_poll_delay,
                backoff=cfg.network_poll_backoff,
                max_delay=cfg.network_poll_max_delay,
                timeout=cfg.network_timeout,
                description=f"network in CT {vmid}",
                sleep=self.sleep,
            )
        except RetryExhausted as e:
            raise NetworkTimeoutError(vmid, e.attempts, e.elapsed) from e

    def install_docker(self, service: ServiceDescriptor) -> None:
        print_info(self.console, "Installing Docker and dependencies...")
        steps = [
            ['apt-get', 'update'],
            ['apt-get', 'install', '-y', *BASE_PACKAGES],
            ['bash', '-c', f"curl -fsSL {self.config.docker_install_url} | sh"],
        ]
        for step in steps:
            try:
                self.client.exec(service.id, step, capture=False)
            except CommandError as e:
                raise ProvisioningError(
                    f"Provisioning CT {service.id} failed at '{' '.join(step)}': {e}"
                ) from e
