#!/usr/bin/env python3
"""pvedeploy CLI - Docker Compose services in Proxmox LXC containers."""
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from pvedeploy.cli_support import handle_cli_error, is_mock, print_error, setup_file_logging
from pvedeploy.config.loader import ConfigLoader, DeploymentFile, find_config
from pvedeploy.core.errors import PvedeployError
from pvedeploy.core.logger import console, get_logger
from pvedeploy.core.orchestrator import DeploymentOrchestrator
from pvedeploy.core.prompts import Prompter
from pvedeploy.menu import DeployMenu
from pvedeploy.models.environment import EnvironmentConfig
from pvedeploy.models.service import ServiceDescriptor
from pvedeploy.services.docker_compose.deployer import ServiceDeployer
from pvedeploy.services.proxmox import (
    ContainerDestroyer,
    ContainerProvisioner,
    EnvironmentResolver,
    PctClient,
)

app = typer.Typer(
    name="pvedeploy",
    help="""pvedeploy - Docker Compose services in Proxmox LXC containers

Run without a command for the interactive menu.

  pvedeploy services          # List configured services
  pvedeploy deploy pihole     # Create CT + deploy one service
  pvedeploy deploy --all      # Everything, in registry order
  pvedeploy destroy pihole    # Stop and delete a container
""",
    add_completion=False,
    invoke_without_command=True,
)

logger = get_logger(__name__)


@dataclass
class CliState:
    """Options shared by all commands."""
    deployment: DeploymentFile
    client: PctClient
    prompter: Prompter
    verbose: bool = False

    def resolve_environment(self) -> EnvironmentConfig:
        return EnvironmentResolver(
            self.client, self.prompter, pinned=self.deployment.environment
        ).resolve()

    def orchestrator(self, env: Optional[EnvironmentConfig] = None) -> DeploymentOrchestrator:
        """Wire up the components; env is resolved from the host when not given."""
        if env is None:
            env = self.resolve_environment()
        destroyer = ContainerDestroyer(self.client, self.prompter)
        return DeploymentOrchestrator(
            registry=self.deployment.registry,
            env=env,
            provisioner=ContainerProvisioner(self.client, self.prompter, destroyer=destroyer),
            deployer=ServiceDeployer(self.client, self.prompter, self.deployment.services_dir),
            destroyer=destroyer,
            prompter=self.prompter,
        )

    def lookup(self, targets: List[str]) -> List[ServiceDescriptor]:
        services = []
        for target in targets:
            service = self.deployment.registry.get(target)
            if service is None:
                print_error(console, f"Unknown service '{target}'")
                raise typer.Exit(2)
            services.append(service)
        return services


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Deployment file (YAML)."),
    services_dir: Optional[Path] = typer.Option(
        None, "--services-dir", help="Directory holding <service>/docker-compose.yml."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Write a log file here."),
) -> None:
    """Load the deployment file and run the menu when no command is given."""
    if log_file or verbose:
        setup_file_logging(log_file=log_file, verbose=verbose)

    try:
        deployment = ConfigLoader(find_config(config)).load()
    except PvedeployError as e:
        handle_cli_error(e, console, verbose)

    if services_dir is not None:
        deployment.services_dir = services_dir

    state = CliState(
        deployment=deployment,
        client=PctClient(mock=is_mock()),
        prompter=Prompter(console),
        verbose=verbose,
    )
    ctx.obj = state

    if ctx.invoked_subcommand is None:
        _run_menu(state)


def _run_menu(state: CliState) -> None:
    try:
        code = DeployMenu(state.orchestrator(), state.prompter).run()
    except PvedeployError as e:
        handle_cli_error(e, console, state.verbose)
    raise typer.Exit(code)


@app.command("menu")
def menu_command(ctx: typer.Context) -> None:
    """Interactive deployment menu."""
    _run_menu(ctx.obj)


@app.command("deploy")
def deploy_command(
    ctx: typer.Context,
    targets: Optional[List[str]] = typer.Argument(None, help="Service names or container ids."),
    all_services: bool = typer.Option(False, "--all", "-a", help="Deploy every service in order."),
) -> None:
    """Create containers and deploy services."""
    state: CliState = ctx.obj
    if not targets and not all_services:
        print_error(console, "Name a service or pass --all.")
        raise typer.Exit(2)

    services = list(state.deployment.registry) if all_services else state.lookup(targets)

    try:
        orchestrator = state.orchestrator()
        outcomes = [orchestrator.deploy_service(service) for service in services]
    except PvedeployError as e:
        handle_cli_error(e, console, state.verbose)

    if any(not outcome.ok for outcome in outcomes):
        raise typer.Exit(1)


@app.command("destroy")
def destroy_command(
    ctx: typer.Context,
    targets: Optional[List[str]] = typer.Argument(None, help="Service names or container ids."),
    all_services: bool = typer.Option(False, "--all", "-a", help="Destroy every service."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Stop and permanently delete service containers."""
    state: CliState = ctx.obj
    if not targets and not all_services:
        print_error(console, "Name a service or pass --all.")
        raise typer.Exit(2)

    destroyer = ContainerDestroyer(state.client, state.prompter)
    if all_services:
        destroyer.destroy_all(state.deployment.registry, confirm=not yes)
        return

    for service in state.lookup(targets):
        destroyer.destroy(service.id, service.hostname, confirm=not yes)


@app.command("services")
def services_command(ctx: typer.Context) -> None:
    """List configured services."""
    state: CliState = ctx.obj

    table = Table(title="Services")
    table.add_column("CT", justify="right")
    table.add_column("Name")
    table.add_column("IP")
    table.add_column("RAM (MB)", justify="right")
    table.add_column("Cores", justify="right")
    table.add_column("Disk")

    for service in state.deployment.registry:
        table.add_row(
            str(service.id),
            service.name,
            service.static_ip,
            str(service.ram_mb),
            str(service.cpu_cores),
            service.disk_size,
        )
    console.print(table)


@app.command("env")
def env_command(ctx: typer.Context) -> None:
    """Resolve and show storage, template and network settings."""
    state: CliState = ctx.obj
    try:
        env = state.resolve_environment()
    except PvedeployError as e:
        handle_cli_error(e, console, state.verbose)

    console.print(f"Storage pool:  {env.storage_pool}")
    console.print(f"OS template:   {env.os_template}")
    console.print(f"Bridge:        {env.bridge}")
    console.print(f"Gateway:       {env.gateway}")
    console.print(f"Network CIDR:  /{env.network_cidr}")


if __name__ == "__main__":
    app()
