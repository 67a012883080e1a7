"""Exception hierarchy for pvedeploy.

Fatal errors stop the whole run. Everything else is scoped to a single
service and is reported before batch operations move on to the next one.
"""
from typing import Optional, Sequence


class PvedeployError(Exception):
    """Base class for all pvedeploy errors."""


class ConfigError(PvedeployError):
    """Invalid configuration file or service registry."""


class FatalProvisioningError(PvedeployError):
    """Host-level failure after which no further deployment can proceed.

    Raised for a missing storage pool, a missing OS template, or a failed
    container create. Partially created resources are left in place.
    """


class ProvisioningError(PvedeployError):
    """Base provisioning of a single container failed."""


class NetworkTimeoutError(ProvisioningError):
    """Container never reached the network within the polling budget."""

    def __init__(self, vmid: int, attempts: int, elapsed: float):
        self.vmid = vmid
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(
            f"Container {vmid} has no network after {attempts} attempts "
            f"({elapsed:.0f}s)"
        )


class DeployError(PvedeployError):
    """Deploying a service into its container failed."""


class CommandError(PvedeployError):
    """A host command exited non-zero."""

    def __init__(
        self,
        cmd: Sequence[str],
        returncode: int,
        stderr: Optional[str] = None,
    ):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr or ""
        message = f"'{' '.join(self.cmd)}' exited with code {returncode}"
        if self.stderr.strip():
            message += f": {self.stderr.strip()}"
        super().__init__(message)
