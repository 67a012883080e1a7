"""Tests for container provisioning."""
import pytest

from pvedeploy.core.errors import FatalProvisioningError, NetworkTimeoutError, ProvisioningError
from pvedeploy.models.service import ProvisionResult
from pvedeploy.services.proxmox.provisioner import ContainerProvisioner


@pytest.fixture
def provisioner(fake_pct, make_prompter, runtime_config, sleeps):
    def _build(answers=()):
        return ContainerProvisioner(
            fake_pct, make_prompter(answers), config=runtime_config, sleep=sleeps
        )
    return _build


class TestCreate:

    def test_new_container_scenario(self, fake_pct, provisioner, pihole, env):
        """Container 100 does not exist: create, start, wait, install Docker."""
        result = provisioner().provision(pihole, env)

        assert result is ProvisionResult.READY
        create = next(c for c in fake_pct.calls if c[0] == 'create')
        assert create[1] == 100
        assert create[2] == {
            'template': 'local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst',
            'hostname': 'pihole',
            'storage': 'VMS',
            'disk_size': '8G',
            'cores': 1,
            'memory': 1024,
            'net0': 'name=eth0,bridge=vmbr0,ip=10.0.0.21/24,gw=10.0.0.10',
            'swap': 512,
            'onboot': True,
            'unprivileged': True,
            'features': 'nesting=1,keyctl=1',
        }

    def test_call_order(self, fake_pct, provisioner, pihole, env):
        provisioner().provision(pihole, env)

        assert fake_pct.ops() == ['exists', 'create', 'start', 'ping', 'exec', 'exec', 'exec']
        execs = [c[2] for c in fake_pct.calls if c[0] == 'exec']
        assert execs == [
            ['apt-get', 'update'],
            ['apt-get', 'install', '-y', 'curl', 'sudo'],
            ['bash', '-c', 'curl -fsSL https://get.docker.com | sh'],
        ]

    def test_settle_time_before_polling(self, provisioner, pihole, env, sleeps):
        provisioner().provision(pihole, env)
        assert sleeps.calls == [5]

    def test_create_failure_is_fatal(self, fake_pct, provisioner, pihole, env):
        fake_pct.fail('create')

        with pytest.raises(FatalProvisioningError, match="Failed to create CT 100"):
            provisioner().provision(pihole, env)

        assert 'start' not in fake_pct.ops()

    def test_docker_install_failure(self, fake_pct, provisioner, pihole, env):
        fake_pct.fail('exec', lambda vmid, cmd: cmd[0] == 'bash')

        with pytest.raises(ProvisioningError, match="curl -fsSL"):
            provisioner().provision(pihole, env)


class TestExistingContainer:

    def test_skip_means_no_create(self, fake_pct, provisioner, pihole, env):
        fake_pct.existing.add(100)

        result = provisioner(['s']).provision(pihole, env)

        assert result is ProvisionResult.SKIPPED
        assert 'create' not in fake_pct.ops()
        assert 'destroy' not in fake_pct.ops()

    def test_anything_but_d_skips(self, fake_pct, provisioner, pihole, env):
        fake_pct.existing.add(100)

        result = provisioner(['yes']).provision(pihole, env)

        assert result is ProvisionResult.SKIPPED

    def test_delete_and_recreate(self, fake_pct, provisioner, pihole, env):
        fake_pct.existing.add(100)

        result = provisioner(['D']).provision(pihole, env)

        assert result is ProvisionResult.READY
        ops = fake_pct.ops()
        assert ops.index('destroy') < ops.index('create')
        assert ops[:5] == ['exists', 'exists', 'stop', 'destroy', 'create']
        assert 100 in fake_pct.existing

    def test_recreate_does_not_ask_again(self, fake_pct, provisioner, pihole, env):
        fake_pct.existing.add(100)
        built = provisioner(['d'])

        built.provision(pihole, env)

        assert len(built.prompter.prompts) == 1


class TestNetworkWait:

    def test_retries_until_ping_succeeds(self, fake_pct, provisioner, pihole, env, sleeps):
        fake_pct.ping_results = [False, False, True]

        provisioner().provision(pihole, env)

        assert fake_pct.ops().count('ping') == 3
        # settle, then 1s and 2s backoff
        assert sleeps.calls == [5, 1, 2]

    def test_gives_up_with_timeout_error(self, fake_pct, provisioner, pihole, env, sleeps):
        fake_pct.ping_results = []

        with pytest.raises(NetworkTimeoutError) as exc:
            provisioner().provision(pihole, env)

        assert exc.value.vmid == 100
        assert exc.value.attempts == 5
        assert fake_pct.ops().count('ping') == 5
        assert sleeps.calls == [5, 1, 2, 4, 4]
        assert 'exec' not in fake_pct.ops()

    def test_timeout_is_a_provisioning_error(self):
        assert issubclass(NetworkTimeoutError, ProvisioningError)
