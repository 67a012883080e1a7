"""Deploy and destroy services, one at a time or in registry order."""
from typing import List

from rich.console import Console

from pvedeploy.cli_support import print_error, print_info, print_warning
from pvedeploy.config.registry import ServiceRegistry
from pvedeploy.core.errors import DeployError, ProvisioningError
from pvedeploy.core.logger import get_logger
from pvedeploy.core.prompts import Prompter
from pvedeploy.models.environment import EnvironmentConfig
from pvedeploy.models.service import DeployOutcome, ProvisionResult, ServiceDescriptor
from pvedeploy.services.docker_compose.deployer import ServiceDeployer
from pvedeploy.services.proxmox.destroyer import ContainerDestroyer
from pvedeploy.services.proxmox.provisioner import ContainerProvisioner

logger = get_logger(__name__)


class DeploymentOrchestrator:
    """Runs provisioner, deployer and destroyer for registry services.

    Batch operations never stop early on a per-service failure; only
    FatalProvisioningError escapes and ends the run.
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        env: EnvironmentConfig,
        provisioner: ContainerProvisioner,
        deployer: ServiceDeployer,
        destroyer: ContainerDestroyer,
        prompter: Prompter,
    ):
        self.registry = registry
        self.env = env
        self.provisioner = provisioner
        self.deployer = deployer
        self.destroyer = destroyer
        self.prompter = prompter

    @property
    def console(self) -> Console:
        return self.prompter.console

    def deploy_service(self, service: ServiceDescriptor) -> DeployOutcome:
        """Provision the container, then deploy the service into it."""
        try:
            result = self.provisioner.provision(service, self.env)
            if result is ProvisionResult.SKIPPED:
                return DeployOutcome(service, "skipped")
            self.deployer.deploy(service)
        except (ProvisioningError, DeployError) as e:
            logger.error(f"{service.name}: {e}")
            print_error(self.console, str(e), prefix="!! ERROR:")
            return DeployOutcome(service, "failed", error=str(e))

        return DeployOutcome(service, "deployed")

    def deploy_all(self) -> List[DeployOutcome]:
        outcomes = [self.deploy_service(service) for service in self.registry]
        self._summarize(outcomes)
        return outcomes

    def destroy_service(self, service: ServiceDescriptor, confirm: bool = True) -> bool:
        return self.destroyer.destroy(service.id, service.hostname, confirm=confirm)

    def destroy_all(self, confirm: bool = True) -> List[bool]:
        """Destroy every registry container after a single confirmation.

        Returns:
            Per-service results in registry order, empty if cancelled
        """
        return self.destroyer.destroy_all(self.registry, confirm=confirm)

    def _summarize(self, outcomes: List[DeployOutcome]) -> None:
        deployed = sum(1 for o in outcomes if o.status == "deployed")
        skipped = sum(1 for o in outcomes if o.status == "skipped")
        failed = [o for o in outcomes if o.status == "failed"]

        print_info(
            self.console,
            f"{deployed} deployed, {skipped} skipped, {len(failed)} failed",
        )
        for outcome in failed:
            print_warning(self.console, f"{outcome.service.name}: {outcome.error}")
