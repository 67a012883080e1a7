"""Interactive deployment menu."""
import time
from typing import Callable, List, Optional, Tuple

from pvedeploy.cli_support import print_error
from pvedeploy.core.config import PvedeployConfig, get_config
from pvedeploy.core.orchestrator import DeploymentOrchestrator
from pvedeploy.core.prompts import Prompter
from pvedeploy.models.service import ServiceDescriptor

RULE = "=" * 40
SEPARATOR = " " + "-" * 40

MenuEntry = Tuple[str, Callable[[], bool]]


class DeployMenu:
    """Numbered text menus built from the service registry.

    Each entry maps to an action returning False when the menu should close.
    """

    def __init__(
        self,
        orchestrator: DeploymentOrchestrator,
        prompter: Prompter,
        config: Optional[PvedeployConfig] = None,
        sleep: Optional[Callable[[float], None]] = None,
        clear_screen: bool = True,
    ):
        self.orchestrator = orchestrator
        self.prompter = prompter
        self.console = prompter.console
        self.config = config or get_config()
        self.sleep = sleep or time.sleep
        self.clear_screen = clear_screen

    @property
    def services(self) -> List[ServiceDescriptor]:
        return list(self.orchestrator.registry)

    def run(self) -> int:
        """Show the main menu until the operator exits.

        Returns:
            Process exit code (0)
        """
        while self.main_menu():
            pass
        return 0

    def main_menu(self) -> bool:
        entries: List[MenuEntry] = [("Deploy All Services", self._deploy_all)]
        for service in self.services:
            entries.append((f"Deploy {service.name} ({service.id})", self._deploy_one(service)))
        entries.append(("Destroy Services...", self.destroy_menu))
        entries.append(("Exit", lambda: False))

        return self._show(
            "Proxmox Home Lab Deployment Menu",
            entries,
            separator_before=len(entries) - 2,
        )

    def destroy_menu(self) -> bool:
        entries: List[MenuEntry] = [
            (f"Destroy {service.name} ({service.id})", self._destroy_one(service))
            for service in self.services
        ]
        entries.append(("Destroy ALL Services", self._destroy_all))
        entries.append(("Back to Main Menu", lambda: None))

        result = self._show("Destroy Services Menu", entries)
        # Back returns None; any destroy action pauses before returning.
        if result is not None:
            self.prompter.pause("Press Enter to return...")
        return True

    def _show(
        self,
        title: str,
        entries: List[MenuEntry],
        separator_before: Optional[int] = None,
    ):
        if self.clear_screen:
            self.console.clear()
        self.console.print(RULE)
        self.console.print(f" [bold]{title}[/bold]")
        self.console.print(RULE)
        for index, (label, _) in enumerate(entries, start=1):
            if separator_before is not None and index - 1 == separator_before:
                self.console.print(SEPARATOR)
            self.console.print(f" {index}. {label}")
        self.console.print(RULE)

        choice = self.prompter.ask(f"Enter your choice [1-{len(entries)}]").strip()
        if not choice.isdigit() or not 1 <= int(choice) <= len(entries):
            print_error(self.console, "Invalid option.", prefix="!! ERROR:")
            self.sleep(self.config.invalid_choice_pause)
            return True

        _, action = entries[int(choice) - 1]
        return action()

    def _deploy_all(self) -> bool:
        self.orchestrator.deploy_all()
        self.prompter.pause("Press Enter...")
        return True

    def _deploy_one(self, service: ServiceDescriptor) -> Callable[[], bool]:
        def action() -> bool:
            self.orchestrator.deploy_service(service)
            self.prompter.pause("Press Enter...")
            return True
        return action

    def _destroy_one(self, service: ServiceDescriptor) -> Callable[[], bool]:
        def action() -> bool:
            self.orchestrator.destroy_service(service, confirm=True)
            return True
        return action

    def _destroy_all(self) -> bool:
        self.orchestrator.destroy_all(confirm=True)
        return True
