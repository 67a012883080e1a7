"""Data models for pvedeploy."""
from .environment import EnvironmentConfig
from .service import DeployOutcome, ProvisionResult, ServiceDescriptor

__all__ = [
    'EnvironmentConfig',
    'DeployOutcome',
    'ProvisionResult',
    'ServiceDescriptor',
]
