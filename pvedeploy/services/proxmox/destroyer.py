"""Permanent container removal."""
from typing import Iterable, List

from pvedeploy.cli_support import print_error, print_info, print_success
from pvedeploy.core.errors import CommandError
from pvedeploy.core.logger import get_logger
from pvedeploy.core.prompts import Prompter, ask_yes_no
from pvedeploy.models.service import ServiceDescriptor
from .pct import PctClient

logger = get_logger(__name__)


class ContainerDestroyer:
    """Stops and deletes containers. There is no backup and no undo."""

    def __init__(self, client: PctClient, prompter: Prompter):
        self.client = client
        self.prompter = prompter
        self.console = prompter.console

    def destroy(self, vmid: int, hostname: str, confirm: bool = True) -> bool:
        """Destroy a container.

        Args:
            vmid: Container ID
            hostname: Name shown in messages
            confirm: Ask the operator first; only 'y'/'Y' proceeds

        Returns:
            True if the container was destroyed
        """
        label = f"{hostname} (CT {vmid})"

        if not self.client.exists(vmid):
            print_error(self.console, f"Container {vmid} ({hostname}) does not exist.")
            return False

        if confirm and not ask_yes_no(
            self.prompter, f"Are you sure you want to permanently destroy {label}?"
        ):
            print_info(self.console, "Destruction cancelled.")
            return False

        print_info(self.console, f"Destroying {label}...")
        try:
            self.client.stop(vmid)
        except CommandError as e:
            logger.debug(f"Stop of {vmid} ignored: {e}")

        try:
            self.client.destroy(vmid)
        except CommandError as e:
            logger.error(f"Failed to destroy container {vmid}: {e}")
            print_error(self.console, f"Failed to destroy {label}.")
            return False

        print_success(self.console, f"{label} has been destroyed.")
        return True

    def destroy_all(self, services: Iterable[ServiceDescriptor], confirm: bool = True) -> List[bool]:
        """Destroy several containers after a single confirmation.

        Every service is attempted in order, whatever happened to the
        previous ones.

        Returns:
            Per-service results, empty if the operator cancelled
        """
        if confirm and not ask_yes_no(
            self.prompter, "Destroy ALL services? This is IRREVERSIBLE."
        ):
            print_info(self.console, "Destruction cancelled.")
            return []

        return [self.destroy(service.id, service.hostname, confirm=False) for service in services]
