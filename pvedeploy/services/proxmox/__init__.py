"""Proxmox host access and LXC container management.

- PctClient: narrow wrapper around pct/pvesm/pveam
- EnvironmentResolver: storage, template and network detection
- ContainerProvisioner: create, start, network wait, Docker install
- ContainerDestroyer: stop and delete
"""
from .pct import PctClient
from .environment import EnvironmentResolver
from .destroyer import ContainerDestroyer
from .provisioner import ContainerProvisioner

__all__ = [
    'PctClient',
    'EnvironmentResolver',
    'ContainerDestroyer',
    'ContainerProvisioner',
]
