"""Shared test fixtures for pvedeploy tests."""
import io
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import pytest
from rich.console import Console

from pvedeploy.config.registry import ServiceRegistry
from pvedeploy.core.config import PvedeployConfig, set_config
from pvedeploy.core.errors import CommandError
from pvedeploy.core.prompts import Prompter
from pvedeploy.models.environment import EnvironmentConfig

PIHOLE_COMPOSE = """\
services:
  pihole:
    image: pihole/pihole:latest
    restart: unless-stopped
"""


class ScriptedPrompter(Prompter):
    """Prompter that answers from a fixed list of inputs."""

    def __init__(self, answers: Iterable[str] = ()):
        super().__init__(Console(file=io.StringIO(), width=120, color_system=None))
        self.answers = list(answers)
        self.prompts: List[str] = []

    def _next(self, message: str) -> str:
        self.prompts.append(message)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {message}")
        return self.answers.pop(0)

    def ask(self, message: str, default: Optional[str] = None) -> str:
        return self._next(message)

    def secret(self, message: str) -> str:
        return self._next(message)

    @property
    def output(self) -> str:
        return self.console.file.getvalue()


class FakePct:
    """In-memory stand-in for PctClient that records every call."""

    def __init__(self, existing: Iterable[int] = ()):
        self.existing = set(existing)
        self.calls: List[tuple] = []
        self.pushed: Dict[str, dict] = {}
        self.failures: Dict[str, Callable[..., bool]] = {}
        self.ping_results: Optional[List[bool]] = None
        self.storage_pools = ['local-lvm']
        self.templates = ['local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst']

    def fail(self, op: str, when: Callable[..., bool] = lambda *args: True):
        """Make ``op`` raise CommandError when ``when(*args)`` is true."""
        self.failures[op] = when

    def _record(self, op: str, *args):
        self.calls.append((op, *args))
        check = self.failures.get(op)
        if check is not None and check(*args):
            raise CommandError([op, *map(str, args)], 1, f"{op} failed")

    def ops(self, vmid: Optional[int] = None) -> List[str]:
        return [c[0] for c in self.calls if vmid is None or c[1] == vmid]

    def exists(self, vmid):
        self.calls.append(('exists', vmid))
        return vmid in self.existing

    def create(self, vmid, **kwargs):
        self._record('create', vmid, kwargs)
        self.existing.add(vmid)

    def start(self, vmid):
        self._record('start', vmid)

    def stop(self, vmid):
        self._record('stop', vmid)

    def destroy(self, vmid):
        self._record('destroy', vmid)
        self.existing.discard(vmid)

    def exec(self, vmid, command, check=True, capture=True, redact=()):
        self._record('exec', vmid, list(command))

    def run_shell(self, vmid, script, capture=False):
        return self.exec(vmid, ['bash', '-c', script], capture=capture)

    def push(self, vmid, local_path, remote_path):
        local_path = Path(local_path)
        self.pushed[remote_path] = {
            'vmid': vmid,
            'local': local_path,
            'content': local_path.read_text() if local_path.exists() else None,
        }
        self._record('push', vmid, str(local_path), remote_path)

    def ping(self, vmid, target):
        self.calls.append(('ping', vmid, target))
        if self.ping_results is None:
            return True
        return self.ping_results.pop(0) if self.ping_results else False

    def list_storage_pools(self, content='rootdir'):
        self._record('list_storage_pools', content)
        return list(self.storage_pools)

    def list_local_templates(self, storage='local'):
        self._record('list_local_templates', storage)
        return list(self.templates)


@pytest.fixture
def fake_pct():
    return FakePct()


@pytest.fixture
def prompter():
    return ScriptedPrompter()


class SleepRecorder:
    """Callable used in place of time.sleep."""

    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def runtime_config():
    """Runtime settings with short, deterministic polling."""
    config = PvedeployConfig(
        network_settle_time=5,
        network_poll_delay=1,
        network_poll_backoff=2,
        network_poll_max_delay=4,
        network_poll_attempts=5,
        network_timeout=600,
        post_deploy_settle_time=10,
        invalid_choice_pause=0,
    )
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def env():
    return EnvironmentConfig(
        storage_pool='VMS',
        os_template='local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst',
        bridge='vmbr0',
        gateway='10.0.0.10',
        network_cidr=24,
    )


@pytest.fixture
def registry():
    return ServiceRegistry.default()


@pytest.fixture
def pihole(registry):
    return registry.get('pihole')


@pytest.fixture
def services_dir(tmp_path):
    """Local services directory with a compose file for every default service."""
    for name in ['pihole', 'wireguard', 'rustdesk', 'samba', 'nginx-proxy-manager']:
        service_dir = tmp_path / name
        service_dir.mkdir()
        (service_dir / 'docker-compose.yml').write_text(
            PIHOLE_COMPOSE.replace('pihole', name)
        )
    return tmp_path


@pytest.fixture
def make_prompter():
    """Factory for prompters answering from a list."""
    return ScriptedPrompter
