"""Collect operator secrets into a service's local .env file."""
import os
from pathlib import Path
from typing import Dict, List, Optional

from pvedeploy.core.errors import DeployError
from pvedeploy.core.logger import get_logger
from pvedeploy.core.prompts import Prompter, ask_confirmed_secret
from pvedeploy.services.profiles import SecretField

logger = get_logger(__name__)

ENV_FILENAME = ".env"


def collect_secrets(prompter: Prompter, fields: List[SecretField]) -> Dict[str, str]:
    """Prompt for each field in order."""
    values: Dict[str, str] = {}
    for secret_field in fields:
        if secret_field.hint:
            prompter.console.print(secret_field.hint)
        if secret_field.secret:
            values[secret_field.key] = ask_confirmed_secret(prompter, secret_field.label)
        else:
            values[secret_field.key] = prompter.ask(secret_field.label).strip()
    return values


def write_env_file(path: Path, values: Dict[str, str]) -> Path:
    """Write KEY=value lines, readable by the owner only.

    Raises:
        DeployError: The file cannot be written
    """
    content = "".join(f"{key}={value}\n" for key, value in values.items())
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w') as f:
            f.write(content)
    except OSError as e:
        raise DeployError(f"Cannot write secrets file {path}: {e}") from e
    logger.debug(f"Wrote {len(values)} value(s) to {path}")
    return path


def prepare_secrets(
    prompter: Prompter,
    fields: List[SecretField],
    service_dir: Path,
) -> Optional[Path]:
    """Prompt for a service's secrets and write them to <service_dir>/.env.

    Returns:
        Path of the written file, or None when the service needs no secrets
    """
    if not fields:
        return None
    values = collect_secrets(prompter, fields)
    return write_env_file(service_dir / ENV_FILENAME, values)


def remove_env_file(path: Optional[Path]) -> None:
    """Delete the local secrets file; a missing file is fine.

    Raises:
        DeployError: The file exists and cannot be removed
    """
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise DeployError(f"Cannot remove secrets file {path}: {e}") from e
    logger.debug(f"Removed local secrets file {path}")
