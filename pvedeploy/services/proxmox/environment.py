"""Resolve storage, template and network settings for container creation."""
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pvedeploy.core.errors import CommandError, FatalProvisioningError
from pvedeploy.core.logger import get_logger
from pvedeploy.core.prompts import Prompter
from pvedeploy.models.environment import EnvironmentConfig
from .pct import PctClient

logger = get_logger(__name__)

DEFAULT_BRIDGE = 'vmbr0'
DEFAULT_GATEWAY = '10.0.0.10'
DEFAULT_NETWORK_CIDR = 24
TEMPLATE_PATTERN = 'debian-12'
INTERFACES_PATH = Path('/etc/network/interfaces')

_IFACE_RE = re.compile(r'^\s*iface\s+(\S+)')
_GATEWAY_RE = re.compile(r'^\s*gateway\s+(\S+)')


def parse_interfaces(text: str) -> Tuple[Optional[str], Optional[str]]:
    """Find the first vmbr bridge and its gateway in an interfaces file.

    Returns:
        (bridge, gateway); either may be None when not present
    """
    bridge = None
    gateway = None
    current = None

    for line in text.splitlines():
        if line.strip().startswith('#'):
            continue
        iface = _IFACE_RE.match(line)
        if iface:
            current = iface.group(1)
            if bridge is None and current.startswith('vmbr'):
                bridge = current
            continue
        gw = _GATEWAY_RE.match(line)
        if gw and current == bridge and bridge is not None and gateway is None:
            gateway = gw.group(1).split('/')[0]

    return bridge, gateway


class EnvironmentResolver:
    """Builds the EnvironmentConfig from pinned values and host probes.

    Values pinned in the deployment file are trusted as-is. Anything left
    out is detected from the host.
    """

    def __init__(
        self,
        client: PctClient,
        prompter: Prompter,
        pinned: Optional[Dict[str, Any]] = None,
        interfaces_path: Path = INTERFACES_PATH,
    ):
        self.client = client
        self.prompter = prompter
        self.pinned = pinned or {}
        self.interfaces_path = interfaces_path

    def resolve(self) -> EnvironmentConfig:
        """Resolve every setting.

        Raises:
            FatalProvisioningError: No usable storage pool or template
        """
        storage_pool = self.pinned.get('storage_pool') or self.detect_storage_pool()
        os_template = self.pinned.get('os_template') or self.detect_template()
        bridge = self.pinned.get('bridge')
        gateway = self.pinned.get('gateway')
        if not (bridge and gateway):
            bridge, gateway = self.detect_network(bridge, gateway)

        env = EnvironmentConfig(
            storage_pool=storage_pool,
            os_template=os_template,
            bridge=bridge,
            gateway=gateway,
            network_cidr=self.pinned.get('network_cidr', DEFAULT_NETWORK_CIDR),
        )
        logger.info(
            f"Environment: storage={env.storage_pool} template={env.os_template} "
            f"bridge={env.bridge} gateway={env.gateway}/{env.network_cidr}"
        )
        return env

    def detect_storage_pool(self) -> str:
        try:
            pools = self.client.list_storage_pools(content='rootdir')
        except CommandError as e:
            raise FatalProvisioningError(f"Cannot list storage pools: {e}") from e

        if not pools:
            raise FatalProvisioningError(
                "No storage pool supports container root filesystems (content 'rootdir'). "
                "Enable 'Container' content on a storage in Datacenter > Storage."
            )
        if len(pools) == 1:
            logger.info(f"Using storage pool: {pools[0]}")
            return pools[0]

        self.prompter.console.print("Multiple storage pools support containers:")
        index = self.prompter.choice("Select storage pool", pools)
        return pools[index]

    def detect_template(self) -> str:
        try:
            templates = self.client.list_local_templates('local')
        except CommandError as e:
            raise FatalProvisioningError(f"Cannot list templates: {e}") from e

        matches = [t for t in templates if TEMPLATE_PATTERN in t]
        if not matches:
            raise FatalProvisioningError(
                "No Debian 12 container template found on 'local'. Download one with:\n"
                "  pveam update && pveam available --section system | grep debian-12\n"
                "  pveam download local debian-12-standard_<version>_amd64.tar.zst"
            )
        if len(matches) > 1:
            logger.debug(f"Several Debian 12 templates found, using {matches[0]}")
        return matches[0]

    def detect_network(
        self,
        bridge: Optional[str] = None,
        gateway: Optional[str] = None,
    ) -> Tuple[str, str]:
        """Fill in whichever of bridge and gateway is not already known."""
        detected_bridge = detected_gateway = None
        try:
            detected_bridge, detected_gateway = parse_interfaces(self.interfaces_path.read_text())
        except OSError as e:
            logger.warning(f"Cannot read {self.interfaces_path}: {e}")

        if not bridge:
            bridge = detected_bridge
            if not bridge:
                logger.warning(f"No bridge found, falling back to {DEFAULT_BRIDGE}")
                bridge = DEFAULT_BRIDGE
        if not gateway:
            gateway = detected_gateway
            if not gateway:
                logger.warning(f"No gateway found, falling back to {DEFAULT_GATEWAY}")
                gateway = DEFAULT_GATEWAY
        return bridge, gateway
