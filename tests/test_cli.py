import os
import tempfile
import unittest
import unittest.mock
from pathlib import Path

from typer.testing import CliRunner

from nfsplane.cli.app import app

from tests.fakes import FakeHost, server_host


SERVER_YAML = """\
server:
  groups:
    - name: nfs-hr
      gid: 1050
  users:
    - name: hr1
      groups: [nfs-hr]
  shares:
    - path: /srv/db
      group: nfs-hr
      mode: "2775"
      client_cidr: 192.168.4.0/22
  exports_file: {tmp}/exports
  backup_dir: {tmp}/backups
client:
  groups:
    - name: nfs-hr
      gid: 1050
  users:
    - name: hr1
      groups: [nfs-hr]
  mounts:
    - path: /mnt/hr-data
      remote_path: /srv/hr
  auto_master: {tmp}/auto.master
  map_file: {tmp}/auto.hr
  backup_dir: {tmp}/backups
"""


class CliTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.config = self.tmp / "nfsplane.yaml"
        self.config.write_text(SERVER_YAML.format(tmp=self.tmp))
        self.runner = CliRunner()
        self._env = unittest.mock.patch.dict(os.environ)
        self._env.start()
        os.environ.pop("NFSPLANE_BACKUP_DIR", None)

    def tearDown(self):
        self._env.stop()
        self._tmp.cleanup()

    def as_root(self, value=True):
        return unittest.mock.patch("nfstool.core.permissions.is_root", return_value=value)


class TestExitCodes(CliTestCase):
    def test_client_apply_without_server_exits_2_before_root_check(self):
        with self.as_root(False):
            result = self.runner.invoke(app, ["client", "apply"])
        self.assertEqual(result.exit_code, 2)

    def test_client_apply_without_root_exits_1(self):
        with self.as_root(False):
            result = self.runner.invoke(app, ["client", "apply", "server1", "--config", str(self.config)])
        self.assertEqual(result.exit_code, 1)

    def test_server_apply_without_root_exits_1(self):
        with self.as_root(False):
            result = self.runner.invoke(app, ["server", "apply", "--config", str(self.config)])
        self.assertEqual(result.exit_code, 1)

    def test_bad_config_exits_4(self):
        broken = self.tmp / "broken.yaml"
        broken.write_text("server:\n  shares:\n    - path: relative/path\n      client_cidr: 10.0.0.0/8\n")
        result = self.runner.invoke(app, ["server", "plan", "--config", str(broken)])
        self.assertEqual(result.exit_code, 4)

    def test_server_apply_fatal_exits_3(self):
        host = server_host()
        host.failing_services.add("nfs-server")
        with self.as_root(), unittest.mock.patch("nfstool.server.cli.SystemHost", return_value=host):
            result = self.runner.invoke(app, ["server", "apply", "--config", str(self.config)])
        self.assertEqual(result.exit_code, 3)
        self.assertEqual(host.refreshes, 0)

    def test_server_apply_converges(self):
        host = server_host()
        with self.as_root(), unittest.mock.patch("nfstool.server.cli.SystemHost", return_value=host):
            first = self.runner.invoke(app, ["server", "apply", "--config", str(self.config)])
            second = self.runner.invoke(app, ["server", "apply", "--config", str(self.config)])
        self.assertEqual(first.exit_code, 0, first.output)
        self.assertEqual(second.exit_code, 0, second.output)
        self.assertEqual(host.refreshes, 1)
        self.assertEqual((self.tmp / "exports").read_text(), "/srv/db 192.168.4.0/22(rw,sync,no_subtree_check)\n")

    def test_server_apply_reports_failed_path_label(self):
        host = server_host()
        host.selinux = "Enforcing"
        host.restore_fails = True
        with self.as_root(), unittest.mock.patch("nfstool.server.cli.SystemHost", return_value=host):
            result = self.runner.invoke(app, ["server", "apply", "--config", str(self.config)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("/srv/db", result.output)
        self.assertIn("Errno 13", result.output)
        self.assertEqual(host.refreshes, 1)

    def test_plan_does_not_mutate_or_need_root(self):
        host = FakeHost()
        with self.as_root(False), unittest.mock.patch("nfstool.client.cli.SystemHost", return_value=host):
            result = self.runner.invoke(app, ["client", "plan", "server1", "--config", str(self.config)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(host.calls, [])
        self.assertFalse((self.tmp / "auto.hr").exists())

    def test_client_apply_converges(self):
        host = FakeHost()
        with self.as_root(), unittest.mock.patch("nfstool.client.cli.SystemHost", return_value=host):
            result = self.runner.invoke(app, ["client", "apply", "server1", "--config", str(self.config)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("server1:/srv/hr", (self.tmp / "auto.hr").read_text())

    def test_hints_and_version(self):
        self.assertEqual(self.runner.invoke(app, ["client", "hints", "--config", str(self.config)]).exit_code, 0)
        self.assertEqual(self.runner.invoke(app, ["version"]).exit_code, 0)


if __name__ == "__main__":
    unittest.main()
