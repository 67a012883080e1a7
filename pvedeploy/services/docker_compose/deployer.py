"""
Docker Compose deployment into provisioned LXC containers.

For each service:
1. Collect secrets into a local .env (if the service profile asks for any)
2. Create /opt/<service> inside the container
3. Push docker-compose.yml (and .env, which is then deleted locally)
4. docker compose up -d
5. Run the profile's post-deploy action and print its access hint
"""
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

from pvedeploy.cli_support import print_info, print_success
from pvedeploy.core.config import PvedeployConfig, get_config
from pvedeploy.core.errors import CommandError, DeployError
from pvedeploy.core.logger import get_logger
from pvedeploy.core.prompts import Prompter
from pvedeploy.models.service import ServiceDescriptor
from pvedeploy.services.profiles import PostDeployContext, ServiceProfile, get_profile
from pvedeploy.services.proxmox.pct import PctClient
from .secrets import prepare_secrets, remove_env_file

logger = get_logger(__name__)

COMPOSE_FILENAME = "docker-compose.yml"


def load_compose_file(path: Path) -> Dict[str, Any]:
    """Read and sanity-check a compose file before it is pushed.

    Raises:
        DeployError: Missing file, invalid YAML, or no 'services' section
    """
    if not path.is_file():
        raise DeployError(f"Compose file not found: {path}")

    try:
        with open(path) as f:
            content = yaml.safe_load(f)
    except OSError as e:
        raise DeployError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise DeployError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(content, dict) or not isinstance(content.get('services'), dict):
        raise DeployError(f"{path} has no 'services' section")
    return content


class ServiceDeployer:
    """Deploys a service's compose stack into its container.

    Example:
        deployer = ServiceDeployer(client, prompter, services_dir=Path('.'))
        deployer.deploy(service)
    """

    def __init__(
        self,
        client: PctClient,
        prompter: Prompter,
        services_dir: Path,
        config: Optional[PvedeployConfig] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.client = client
        self.prompter = prompter
        self.console = prompter.console
        self.services_dir = Path(services_dir)
        self.config = config or get_config()
        self.sleep = sleep or time.sleep

    def service_dir(self, service: ServiceDescriptor) -> Path:
        """Local directory holding the service's compose file."""
        return self.services_dir / service.name

    def deploy(self, service: ServiceDescriptor) -> None:
        """Deploy one service into container ``service.id``.

        Raises:
            DeployError: Any step failed; post-deploy steps are skipped
        """
        profile = get_profile(service)
        local_dir = self.service_dir(service)
        compose_path = local_dir / COMPOSE_FILENAME
        remote_dir = service.compose_dir

        print_info(self.console, f"Deploying {service.name} to CT {service.id}...")
        compose = load_compose_file(compose_path)
        logger.debug(f"{compose_path}: services {', '.join(compose['services'])}")

        env_file = prepare_secrets(self.prompter, profile.secret_fields, local_dir)
        try:
            self._exec(service, ['mkdir', '-p', remote_dir], "create deployment directory")
            self._push(service, compose_path, f"{remote_dir}/{COMPOSE_FILENAME}")
            if env_file is not None:
                self._push(service, env_file, f"{remote_dir}/{env_file.name}")
        finally:
            remove_env_file(env_file)

        self.start_services(service)
        self.run_post_deploy(service, profile)

        print_success(self.console, f"{service.name} deployed successfully!")

    def start_services(self, service: ServiceDescriptor) -> None:
        """Bring the compose stack up in detached mode."""
        logger.info(f"Starting services in container {service.id}...")
        try:
            self.client.run_shell(service.id, f"cd {service.compose_dir} && docker compose up -d")
        except CommandError as e:
            logger.error(f"docker compose up failed in {service.id}: {e}")
            raise DeployError(f"Failed to deploy {service.name}.") from e

    def run_post_deploy(self, service: ServiceDescriptor, profile: ServiceProfile) -> None:
        if profile.post_deploy is not None:
            profile.post_deploy(PostDeployContext(
                service=service,
                client=self.client,
                prompter=self.prompter,
                config=self.config,
                sleep=self.sleep,
            ))

        info = profile.render_info(service)
        if info:
            print_info(self.console, info)

    def _exec(self, service: ServiceDescriptor, command, action: str) -> None:
        try:
            self.client.exec(service.id, command)
        except CommandError as e:
            raise DeployError(f"Failed to {action} in CT {service.id}: {e}") from e

    def _push(self, service: ServiceDescriptor, local_path: Path, remote_path: str) -> None:
        try:
            self.client.push(service.id, local_path, remote_path)
        except CommandError as e:
            raise DeployError(f"Failed to push {local_path.name} to CT {service.id}: {e}") from e
