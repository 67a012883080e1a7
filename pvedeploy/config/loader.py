"""YAML deployment file loader.

A deployment file is optional. Example::

    environment:
      storage_pool: VMS
      os_template: local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst
      bridge: vmbr0
      gateway: 10.0.0.10
      network_cidr: 24
    services_dir: /root/homelab
    services:
      - {id: 100, name: pihole, ip: 10.0.0.21, ram: 1024, cpu: 1, disk: 8G}

Keys left out of ``environment`` are detected from the host at run time.
Leaving out ``services`` uses the built-in registry.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from pvedeploy.core.errors import ConfigError
from pvedeploy.core.logger import get_logger
from .registry import ServiceRegistry

logger = get_logger(__name__)

CONFIG_PATHS = [
    "./pvedeploy.yml",
    str(Path.home() / ".config" / "pvedeploy" / "pvedeploy.yml"),
    "/etc/pvedeploy/pvedeploy.yml",
]

ENVIRONMENT_KEYS = {'storage_pool', 'os_template', 'bridge', 'gateway', 'network_cidr'}


def find_config(config_path: Optional[str] = None) -> Optional[str]:
    """Locate the deployment file, or None when there is none."""
    if config_path:
        return config_path

    if env_config := os.environ.get("PVEDEPLOY_CONFIG"):
        return env_config

    for path in CONFIG_PATHS:
        if Path(path).exists():
            return path

    return None


@dataclass
class DeploymentFile:
    """Parsed deployment file contents."""
    registry: ServiceRegistry
    environment: Dict[str, Any] = field(default_factory=dict)
    services_dir: Path = field(default_factory=Path.cwd)
    source: Optional[Path] = None


class ConfigLoader:
    """Loads the deployment file and builds the service registry."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.raw_config: Optional[Dict[str, Any]] = None

    def load(self) -> DeploymentFile:
        """Load and validate the deployment file.

        Returns:
            DeploymentFile with defaults applied when no file is configured

        Raises:
            ConfigError: If the file is missing, unparsable or invalid
        """
        if self.config_path is None:
            logger.debug("No deployment file, using built-in services")
            return DeploymentFile(registry=ServiceRegistry.default())

        if not self.config_path.exists():
            raise ConfigError(f"Config file not found: {self.config_path}")

        try:
            with open(self.config_path) as f:
                self.raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {self.config_path}: {e}") from e

        if not isinstance(self.raw_config, dict):
            raise ConfigError(f"{self.config_path} must contain a mapping at the top level")

        environment = self._parse_environment(self.raw_config.get('environment') or {})

        services = self.raw_config.get('services')
        if services is None:
            registry = ServiceRegistry.default()
        elif isinstance(services, list):
            registry = ServiceRegistry.from_records(services)
        else:
            raise ConfigError("'services' must be a list of service entries")

        services_dir = self.raw_config.get('services_dir')
        if services_dir:
            services_dir = Path(services_dir)
            if not services_dir.is_absolute():
                services_dir = self.config_path.parent / services_dir
        else:
            services_dir = self.config_path.parent

        logger.debug(f"Loaded {len(registry)} services from {self.config_path}")
        return DeploymentFile(
            registry=registry,
            environment=environment,
            services_dir=services_dir,
            source=self.config_path,
        )

    def _parse_environment(self, environment: Any) -> Dict[str, Any]:
        if not isinstance(environment, dict):
            raise ConfigError("'environment' must be a mapping")

        unknown = set(environment) - ENVIRONMENT_KEYS
        if unknown:
            raise ConfigError(
                f"Unknown environment keys: {', '.join(sorted(unknown))}. "
                f"Valid keys: {', '.join(sorted(ENVIRONMENT_KEYS))}"
            )

        parsed = {k: v for k, v in environment.items() if v is not None}
        if 'network_cidr' in parsed:
            cidr = parsed['network_cidr']
            if not isinstance(cidr, int) or not 0 < cidr <= 32:
                raise ConfigError(f"network_cidr must be an integer between 1 and 32, got {cidr!r}")
        for key in ENVIRONMENT_KEYS - {'network_cidr'}:
            if key in parsed:
                parsed[key] = str(parsed[key])
        return parsed
