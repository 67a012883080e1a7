"""Deployment configuration: config file loading and the service registry."""
from .loader import ConfigLoader, DeploymentFile, find_config
from .registry import DEFAULT_SERVICES, ServiceRegistry

__all__ = [
    'ConfigLoader',
    'DeploymentFile',
    'find_config',
    'DEFAULT_SERVICES',
    'ServiceRegistry',
]
