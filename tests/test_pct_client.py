"""Tests for the pct command wrapper."""
import logging
from types import SimpleNamespace

import pytest

from pvedeploy.core.errors import CommandError
from pvedeploy.services.proxmox.pct import PctClient, disk_size_gib


def _capture(monkeypatch, returncode=0, stdout="", stderr=""):
    """Replace subprocess.run and return the list of captured commands."""
    captured = []

    def fake_run(cmd, **kwargs):
        captured.append(cmd)
        return SimpleNamespace(returncode=returncode, stdout=stdout, stderr=stderr)

    monkeypatch.setattr("pvedeploy.services.proxmox.pct.subprocess.run", fake_run)
    return captured


@pytest.mark.parametrize('size, expected', [
    ('8G', '8'),
    ('4G', '4'),
    ('1T', '1024'),
    ('512M', '0.5'),
])
def test_disk_size_gib(size, expected):
    assert disk_size_gib(size) == expected


class TestCreate:

    def test_create_command(self, monkeypatch):
        captured = _capture(monkeypatch)

        PctClient().create(
            vmid=100,
            template='local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst',
            hostname='pihole',
            storage='VMS',
            disk_size='8G',
            cores=1,
            memory=1024,
            net0='name=eth0,bridge=vmbr0,ip=10.0.0.21/24,gw=10.0.0.10',
        )

        cmd = captured[0]
        assert cmd[:4] == [
            'pct', 'create', '100', 'local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst'
        ]

        def option(name):
            return cmd[cmd.index(name) + 1]

        assert option('--hostname') == 'pihole'
        assert option('--storage') == 'VMS'
        assert option('--rootfs') == 'VMS:8'
        assert option('--cores') == '1'
        assert option('--memory') == '1024'
        assert option('--swap') == '512'
        assert option('--net0') == 'name=eth0,bridge=vmbr0,ip=10.0.0.21/24,gw=10.0.0.10'
        assert option('--onboot') == '1'
        assert option('--unprivileged') == '1'
        assert option('--features') == 'nesting=1,keyctl=1'

    def test_create_failure_raises(self, monkeypatch):
        _capture(monkeypatch, returncode=255, stderr="CT 100 already exists")

        with pytest.raises(CommandError) as exc:
            PctClient().create(
                vmid=100, template='t', hostname='h', storage='s',
                disk_size='8G', cores=1, memory=512, net0='n',
            )

        assert exc.value.returncode == 255
        assert "already exists" in str(exc.value)


class TestLifecycle:

    def test_exists_uses_status(self, monkeypatch):
        captured = _capture(monkeypatch, returncode=0)
        assert PctClient().exists(100) is True
        assert captured[0] == ['pct', 'status', '100']

    def test_exists_false_on_error(self, monkeypatch):
        _capture(monkeypatch, returncode=2, stderr="Configuration file does not exist")
        assert PctClient().exists(100) is False

    def test_start_already_running_is_ok(self, monkeypatch):
        _capture(monkeypatch, returncode=255, stderr="CT 100 already running")
        PctClient().start(100)

    def test_stop_failure_raises(self, monkeypatch):
        _capture(monkeypatch, returncode=255, stderr="CT 100 not running")
        with pytest.raises(CommandError):
            PctClient().stop(100)

    def test_exec_and_push(self, monkeypatch):
        captured = _capture(monkeypatch)
        client = PctClient()

        client.exec(100, ['mkdir', '-p', '/opt/pihole'])
        client.push(100, '/tmp/docker-compose.yml', '/opt/pihole/docker-compose.yml')
        client.destroy(100)

        assert captured == [
            ['pct', 'exec', '100', '--', 'mkdir', '-p', '/opt/pihole'],
            ['pct', 'push', '100', '/tmp/docker-compose.yml', '/opt/pihole/docker-compose.yml'],
            ['pct', 'destroy', '100'],
        ]

    def test_ping(self, monkeypatch):
        captured = _capture(monkeypatch, returncode=1)
        assert PctClient().ping(100, '8.8.8.8') is False
        assert captured[0] == ['pct', 'exec', '100', '--', 'ping', '-c', '1', '8.8.8.8']

    def test_exec_masks_secret_in_error(self, monkeypatch):
        captured = _capture(monkeypatch, returncode=1, stderr="unauthorized")
        cmd = ['docker', 'exec', 'pihole', 'pihole', 'setpassword', 'hunter2']

        with pytest.raises(CommandError) as exc:
            PctClient().exec(100, cmd, redact=['hunter2'])

        assert captured[0][-1] == 'hunter2'
        assert 'hunter2' not in str(exc.value)
        assert exc.value.cmd[-1] == '******'

    def test_exec_masks_secret_in_logs(self, monkeypatch, caplog):
        caplog.set_level(logging.DEBUG, logger='pvedeploy')
        _capture(monkeypatch)

        PctClient().exec(100, ['pihole', 'setpassword', 'hunter2'], redact=['hunter2'])
        PctClient(mock=True).exec(100, ['pihole', 'setpassword', 'hunter2'], redact=['hunter2'])

        assert 'hunter2' not in caplog.text
        assert 'setpassword ******' in caplog.text

    def test_mock_mode_runs_nothing(self, monkeypatch):
        captured = _capture(monkeypatch)
        client = PctClient(mock=True)

        client.start(100)
        client.destroy(100)

        assert captured == []
        assert client.exists(100) is False


class TestInventory:

    def test_list_storage_pools(self, monkeypatch):
        stdout = (
            "Name             Type     Status           Total            Used       Available        %\n"
            "VMS              lvmthin  active       941830144        12345678       929484466    1.31%\n"
            "local-lvm        lvmthin  active       141830144        12345678       129484466    8.70%\n"
            "backup           dir      disabled             0               0               0    0.00%\n"
        )
        captured = _capture(monkeypatch, stdout=stdout)

        pools = PctClient().list_storage_pools()

        assert pools == ['VMS', 'local-lvm']
        assert captured[0] == ['pvesm', 'status', '--content', 'rootdir']

    def test_list_local_templates(self, monkeypatch):
        stdout = (
            "NAME                                                         SIZE\n"
            "local:vztmpl/alpine-3.19-default_20240207_amd64.tar.xz      3.08MB\n"
            "local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst        120.29MB\n"
        )
        _capture(monkeypatch, stdout=stdout)

        templates = PctClient().list_local_templates('local')

        assert templates == [
            'local:vztmpl/alpine-3.19-default_20240207_amd64.tar.xz',
            'local:vztmpl/debian-12-standard_12.2-1_amd64.tar.zst',
        ]
