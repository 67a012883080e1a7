"""pvedeploy runtime configuration and settings."""
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class PvedeployConfig:
    """Runtime settings for provisioning and deployment.

    Attributes:
        network_settle_time: Seconds to wait after start before polling (default: 5)
        network_poll_delay: First delay between network probes (default: 3)
        network_poll_backoff: Multiplier applied to the delay after each probe (default: 1.5)
        network_poll_max_delay: Upper bound for a single delay (default: 30)
        network_poll_attempts: Maximum number of network probes (default: 10)
        network_timeout: Overall budget in seconds for the network wait (default: 180)
        ping_target: Address probed from inside the container (default: 8.8.8.8)
        docker_install_url: Upstream Docker install script (default: get.docker.com)
        swap_mb: Swap allocated to every container (default: 512)
        post_deploy_settle_time: Wait before post-deploy steps run (default: 10)
        invalid_choice_pause: Pause after an invalid menu choice (default: 2)
    """

    network_settle_time: float = 5
    network_poll_delay: float = 3
    network_poll_backoff: float = 1.5
    network_poll_max_delay: float = 30
    network_poll_attempts: int = 10
    network_timeout: float = 180
    ping_target: str = "8.8.8.8"

    docker_install_url: str = "https://get.docker.com"
    swap_mb: int = 512

    post_deploy_settle_time: float = 10
    invalid_choice_pause: float = 2

    @classmethod
    def from_env(cls) -> "PvedeployConfig":
        """Create config from PVEDEPLOY_* environment variables.

        Environment variables:
            PVEDEPLOY_NETWORK_SETTLE_TIME, PVEDEPLOY_NETWORK_POLL_DELAY,
            PVEDEPLOY_NETWORK_POLL_BACKOFF, PVEDEPLOY_NETWORK_POLL_MAX_DELAY,
            PVEDEPLOY_NETWORK_POLL_ATTEMPTS, PVEDEPLOY_NETWORK_TIMEOUT,
            PVEDEPLOY_PING_TARGET, PVEDEPLOY_DOCKER_INSTALL_URL,
            PVEDEPLOY_SWAP_MB, PVEDEPLOY_POST_DEPLOY_SETTLE_TIME,
            PVEDEPLOY_INVALID_CHOICE_PAUSE

        Returns:
            PvedeployConfig instance with values from environment or defaults
        """
        return cls(
            network_settle_time=float(
                os.getenv("PVEDEPLOY_NETWORK_SETTLE_TIME", cls.network_settle_time)
            ),
            network_poll_delay=float(
                os.getenv("PVEDEPLOY_NETWORK_POLL_DELAY", cls.network_poll_delay)
            ),
            network_poll_backoff=float(
                os.getenv("PVEDEPLOY_NETWORK_POLL_BACKOFF", cls.network_poll_backoff)
            ),
            network_poll_max_delay=float(
                os.getenv("PVEDEPLOY_NETWORK_POLL_MAX_DELAY", cls.network_poll_max_delay)
            ),
            network_poll_attempts=max(1, int(
                os.getenv("PVEDEPLOY_NETWORK_POLL_ATTEMPTS", cls.network_poll_attempts)
            )),
            network_timeout=float(
                os.getenv("PVEDEPLOY_NETWORK_TIMEOUT", cls.network_timeout)
            ),
            ping_target=os.getenv("PVEDEPLOY_PING_TARGET", cls.ping_target),
            docker_install_url=os.getenv(
                "PVEDEPLOY_DOCKER_INSTALL_URL", cls.docker_install_url
            ),
            swap_mb=int(os.getenv("PVEDEPLOY_SWAP_MB", cls.swap_mb)),
            post_deploy_settle_time=float(
                os.getenv("PVEDEPLOY_POST_DEPLOY_SETTLE_TIME", cls.post_deploy_settle_time)
            ),
            invalid_choice_pause=float(
                os.getenv("PVEDEPLOY_INVALID_CHOICE_PAUSE", cls.invalid_choice_pause)
            ),
        )


_config: Optional[PvedeployConfig] = None


def get_config() -> PvedeployConfig:
    """Get the global runtime configuration (created from environment on first use)."""
    global _config
    if _config is None:
        _config = PvedeployConfig.from_env()
    return _config


def set_config(config: Optional[PvedeployConfig]):
    """Set the global runtime configuration.

    Args:
        config: PvedeployConfig instance, or None to re-read the environment
    """
    global _config
    _config = config
