"""Service descriptor and per-run result models."""
import ipaddress
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

HOSTNAME_RE = re.compile(r'^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$')
DISK_SIZE_RE = re.compile(r'^(\d+)([KMGT])$')


class ServiceDescriptor(BaseModel):
    """One deployable service and the container that hosts it."""

    model_config = ConfigDict(extra='forbid', frozen=True, populate_by_name=True)

    id: int = Field(..., ge=0, description="Proxmox container VMID")
    name: str = Field(..., description="Service name, also the container hostname")
    static_ip: str = Field(..., alias="ip", description="Static IPv4 address without prefix")
    ram_mb: int = Field(..., gt=0, alias="ram", description="Memory in MB")
    cpu_cores: int = Field(..., gt=0, alias="cpu", description="CPU core count")
    disk_size: str = Field(..., alias="disk", description="Root filesystem size, e.g. '8G'")
    profile: Optional[str] = Field(None, description="Service profile (defaults to name)")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Names double as hostnames, so they must be valid hostname labels."""
        if not HOSTNAME_RE.match(v):
            raise ValueError(
                f"Service name '{v}' is not a valid hostname. "
                "Use lowercase letters, digits and hyphens."
            )
        return v

    @field_validator('static_ip')
    @classmethod
    def validate_static_ip(cls, v):
        try:
            ipaddress.IPv4Address(v)
        except ValueError:
            raise ValueError(f"'{v}' is not a valid IPv4 address")
        return v

    @field_validator('disk_size')
    @classmethod
    def validate_disk_size(cls, v):
        """Validate size format."""
        match = DISK_SIZE_RE.match(str(v))
        if not match or int(match.group(1)) <= 0:
            raise ValueError(
                f"Disk size must be a positive size like '8G', '512M'. Got: {v}"
            )
        return v

    @model_validator(mode='before')
    @classmethod
    def default_profile(cls, data):
        if isinstance(data, dict) and not data.get('profile') and data.get('name'):
            data = {**data, 'profile': data['name']}
        return data

    @property
    def hostname(self) -> str:
        return self.name

    @property
    def compose_dir(self) -> str:
        """Deployment directory inside the container."""
        return f"/opt/{self.name}"

    @property
    def label(self) -> str:
        return f"{self.name} (CT {self.id})"


class ProvisionResult(Enum):
    """Outcome of provisioning one container."""
    READY = "ready"
    SKIPPED = "skipped"


@dataclass
class DeployOutcome:
    """Result of deploying one service in a batch."""
    service: ServiceDescriptor
    status: str  # deployed, skipped, failed
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != "failed"
