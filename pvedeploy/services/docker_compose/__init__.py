"""Docker Compose deployment into LXC containers."""
from .deployer import ServiceDeployer, load_compose_file

__all__ = ['ServiceDeployer', 'load_compose_file']
