"""Thin client for the Proxmox container CLI (pct, pvesm, pveam).

Every host interaction goes through PctClient so the rest of the code never
builds a command line itself. Failed commands raise CommandError.
"""
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pvedeploy.core.errors import CommandError
from pvedeploy.core.logger import get_logger

logger = get_logger(__name__)

REDACTED = "******"

_GIB_FACTORS = {'K': 1 / (1024 * 1024), 'M': 1 / 1024, 'G': 1, 'T': 1024}


def disk_size_gib(size: str) -> str:
    """Convert a size like '8G' or '512M' to the GiB number pct expects.

    Examples:
        '8G' -> '8', '1T' -> '1024', '512M' -> '0.5'
    """
    unit = size[-1].upper()
    value = float(size[:-1]) * _GIB_FACTORS[unit]
    if value.is_integer():
        return str(int(value))
    return f"{value:.3f}".rstrip('0').rstrip('.')


def mask(cmd: Sequence[str], secrets: Sequence[str] = ()) -> List[str]:
    """Replace every argument that is a secret with a placeholder."""
    hidden = {s for s in secrets if s}
    return [REDACTED if arg in hidden else arg for arg in cmd]


class PctClient:
    """Runs Proxmox container commands on the local host."""

    def __init__(self, mock: bool = False):
        self.mock = mock

    def _run(
        self,
        cmd: List[str],
        check: bool = True,
        capture: bool = True,
        redact: Sequence[str] = (),
    ) -> subprocess.CompletedProcess:
        """Run a host command.

        Args:
            cmd: Command and arguments
            check: Raise CommandError on a non-zero exit
            capture: Capture stdout/stderr instead of streaming to the terminal
            redact: Argument values masked in log lines and errors

        Returns:
            The completed process
        """
        shown = mask(cmd, redact)
        if self.mock:
            logger.info(f"MOCK: Would run: {shlex.join(shown)}")
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        logger.debug(f"Command: {shlex.join(shown)}")
        if capture:
            result = subprocess.run(cmd, capture_output=True, text=True)
        else:
            result = subprocess.run(cmd)

        if check and result.returncode != 0:
            raise CommandError(shown, result.returncode, getattr(result, 'stderr', None))
        return result

    # Container lifecycle

    def exists(self, vmid: int) -> bool:
        """Check whether a container with this id exists."""
        if self.mock:
            return False
        result = self._run(['pct', 'status', str(vmid)], check=False)
        return result.returncode == 0

    def create(
        self,
        vmid: int,
        template: str,
        hostname: str,
        storage: str,
        disk_size: str,
        cores: int,
        memory: int,
        net0: str,
        swap: int = 512,
        onboot: bool = True,
        unprivileged: bool = True,
        features: Optional[str] = 'nesting=1,keyctl=1',
    ) -> None:
        """Create a container with ``pct create``.

        Args:
            vmid: Container ID
            template: Template volume id (storage:vztmpl/file)
            hostname: Container hostname
            storage: Storage pool for the root filesystem
            disk_size: Root filesystem size with unit (e.g. '8G')
            cores: CPU cores
            memory: Memory in MB
            net0: Network definition for eth0
            swap: Swap in MB
            onboot: Start the container when the host boots
            unprivileged: Create an unprivileged container
            features: pct --features value
        """
        cmd = [
            'pct', 'create', str(vmid), template,
            '--hostname', hostname,
            '--storage', storage,
            '--rootfs', f'{storage}:{disk_size_gib(disk_size)}',
            '--cores', str(cores),
            '--memory', str(memory),
            '--swap', str(swap),
            '--net0', net0,
            '--onboot', '1' if onboot else '0',
            '--unprivileged', '1' if unprivileged else '0',
        ]
        if features:
            cmd.extend(['--features', features])

        self._run(cmd)

    def start(self, vmid: int) -> None:
        try:
            self._run(['pct', 'start', str(vmid)])
        except CommandError as e:
            if 'already running' in e.stderr.lower():
                logger.info(f"Container {vmid} already running")
                return
            raise

    def stop(self, vmid: int) -> None:
        self._run(['pct', 'stop', str(vmid)])

    def destroy(self, vmid: int) -> None:
        self._run(['pct', 'destroy', str(vmid)])

    # Guest access

    def exec(
        self,
        vmid: int,
        command: Sequence[str],
        check: bool = True,
        capture: bool = True,
        redact: Sequence[str] = (),
    ) -> subprocess.CompletedProcess:
        """Run a command inside the container with ``pct exec``.

        Values listed in ``redact`` never appear in logs or CommandError.
        """
        return self._run(
            ['pct', 'exec', str(vmid), '--', *command],
            check=check,
            capture=capture,
            redact=redact,
        )

    def run_shell(self, vmid: int, script: str, capture: bool = False) -> subprocess.CompletedProcess:
        """Run a shell snippet inside the container (output streams by default)."""
        return self.exec(vmid, ['bash', '-c', script], capture=capture)

    def push(self, vmid: int, local_path: Union[str, Path], remote_path: str) -> None:
        """Copy a host file into the container with ``pct push``."""
        self._run(['pct', 'push', str(vmid), str(local_path), remote_path])

    def ping(self, vmid: int, target: str) -> bool:
        """Send one ICMP echo from inside the container."""
        if self.mock:
            return True
        result = self.exec(vmid, ['ping', '-c', '1', target], check=False)
        return result.returncode == 0

    # Host inventory

    def list_storage_pools(self, content: str = 'rootdir') -> List[str]:
        """List active storage pools that can hold the given content type."""
        if self.mock:
            return ['local-lvm']

        result = self._run(['pvesm', 'status', '--content', content])
        pools = []
        for line in result.stdout.splitlines()[1:]:
            # Name Type Status Total Used Available %
            parts = line.split()
            if len(parts) >= 3 and parts[2] == 'active':
                pools.append(parts[0])
        return pools

    def list_local_templates(self, storage: str = 'local') -> List[str]:
        """List template volume ids stored on a storage."""
        if self.mock:
            return [f'{storage}:vztmpl/debian-12-standard_12.7-1_amd64.tar.zst']

        result = self._run(['pveam', 'list', storage])
        templates = []
        for line in result.stdout.splitlines():
            # local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst  118.00MB
            parts = line.split()
            if parts and ':vztmpl/' in parts[0]:
                templates.append(parts[0])
        return templates
