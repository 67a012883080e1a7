"""pvedeploy - Proxmox LXC provisioning and Docker Compose deployment."""

__version__ = "0.1.0"
