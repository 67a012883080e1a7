"""Resolved host environment used for every container create."""
from dataclasses import dataclass

from .service import ServiceDescriptor


@dataclass(frozen=True)
class EnvironmentConfig:
    """Host settings resolved once per run and passed to every component.

    Attributes:
        storage_pool: Storage for container root filesystems (e.g. 'local-lvm')
        os_template: Template volume id (e.g. 'local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst')
        bridge: Host bridge for eth0 (e.g. 'vmbr0')
        gateway: Default gateway handed to containers
        network_cidr: Prefix length appended to each static IP
    """
    storage_pool: str
    os_template: str
    bridge: str
    gateway: str
    network_cidr: int = 24

    def ip_cidr_for(self, service: ServiceDescriptor) -> str:
        """Static address with prefix, e.g. '10.0.0.21/24'."""
        return f"{service.static_ip}/{self.network_cidr}"

    def net0_for(self, service: ServiceDescriptor) -> str:
        """pct --net0 value for a service."""
        return (
            f"name=eth0,bridge={self.bridge},"
            f"ip={self.ip_cidr_for(service)},gw={self.gateway}"
        )
