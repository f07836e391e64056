import os
import stat
import tempfile
import unittest
from pathlib import Path

from nfsplane.core.actions import Action, ActionKind
from nfsplane.core.errors import ConflictError, FatalActionError, RecoverableActionError
from nfstool.host.backup import BackupManager
from nfstool.host.executor import ActionExecutor

from tests.fakes import FakeHost


class TestActionExecutor(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.host = FakeHost()
        self.backups = BackupManager(str(self.tmp / "backups"))
        self.executor = ActionExecutor(self.host, self.backups)

    def tearDown(self):
        self._tmp.cleanup()

    def test_append_adds_missing_newline_and_backs_up_once(self):
        exports = self.tmp / "exports"
        exports.write_text("/srv/old 10.0.0.0/8(ro)")

        for line in ("/srv/db 192.168.4.0/22(rw)", "/srv/hr 192.168.4.0/22(rw)"):
            result = self.executor.execute(Action(ActionKind.APPEND_LINE, str(exports), {"line": line}))
            self.assertTrue(result.changed)

        self.assertEqual(
            exports.read_text(),
            "/srv/old 10.0.0.0/8(ro)\n/srv/db 192.168.4.0/22(rw)\n/srv/hr 192.168.4.0/22(rw)\n",
        )
        self.assertEqual(len(self.backups.records), 1)
        self.assertEqual(Path(self.backups.records[0].destination).read_text(), "/srv/old 10.0.0.0/8(ro)")

    def test_append_present_line_is_noop(self):
        exports = self.tmp / "exports"
        exports.write_text("/srv/db 192.168.4.0/22(rw)\n")

        result = self.executor.execute(Action(ActionKind.APPEND_LINE, str(exports), {"line": "/srv/db 192.168.4.0/22(rw)"}))

        self.assertFalse(result.changed)
        self.assertEqual(self.backups.records, [])

    def test_write_file_is_full_replacement(self):
        target = self.tmp / "auto.hr"
        target.write_text("old\n")

        self.executor.execute(Action(ActionKind.WRITE_FILE, str(target), {"content": "new\n", "mode": 0o644}))

        self.assertEqual(target.read_text(), "new\n")
        self.assertEqual(stat.S_IMODE(os.stat(target).st_mode), 0o644)
        self.assertFalse((self.tmp / "auto.hr.tmp").exists())
        self.assertEqual(Path(self.backups.records[0].destination).read_text(), "old\n")

    def test_add_map_reference(self):
        master = self.tmp / "auto.master"
        master.write_text("/misc   /etc/auto.misc\n")
        action = Action(
            ActionKind.ADD_MAP_REFERENCE,
            str(master),
            {"map_file": "/etc/auto.hr", "line": "/-    /etc/auto.hr"},
        )

        self.assertTrue(self.executor.execute(action).changed)
        self.assertFalse(self.executor.execute(action).changed)

        lines = master.read_text().splitlines()
        self.assertEqual(lines[-1], "/-    /etc/auto.hr")
        self.assertTrue(lines[-2].startswith("# Direct mounts for NFS shares"))
        self.assertEqual(lines[-3], "")

    def test_create_group_race_with_other_gid_is_conflict(self):
        self.host.groups["nfs-hr"] = 2000
        with self.assertRaises(ConflictError):
            self.executor.execute(Action(ActionKind.CREATE_GROUP, "nfs-hr", {"gid": 1050}))
        self.assertEqual(self.host.groups["nfs-hr"], 2000)

    def test_remove_primary_group_is_conflict(self):
        self.host.users["hr3"] = set()
        self.host.primary["hr3"] = "nfs-hr"
        with self.assertRaises(ConflictError):
            self.executor.execute(Action(ActionKind.REMOVE_FROM_GROUP, "hr3", {"group": "nfs-hr"}))
        self.assertEqual(self.host.count("remove_user_from_group", "hr3", "nfs-hr"), 0)

    def test_append_keeps_non_utf8_bytes(self):
        exports = self.tmp / "exports"
        exports.write_bytes(b"# caf\xe9\n")
        self.executor.execute(Action(ActionKind.APPEND_LINE, str(exports), {"line": "/srv/db 192.168.4.0/22(rw)"}))
        self.assertEqual(exports.read_bytes(), b"# caf\xe9\n/srv/db 192.168.4.0/22(rw)\n")

    def test_critical_failure_is_fatal(self):
        self.host.failing_services.add("nfs-server")
        with self.assertRaises(FatalActionError):
            self.executor.execute(Action(ActionKind.ENABLE_SERVICE, "nfs-server"))

    def test_best_effort_failure_is_recoverable(self):
        self.host.users["hr1"] = set()
        self.host.lock_fails = True
        with self.assertRaises(RecoverableActionError):
            self.executor.execute(Action(ActionKind.LOCK_USER, "hr1", best_effort=True))

    def test_actions_requery_host(self):
        self.host.users["hr1"] = {"nfs-hr"}
        result = self.executor.execute(Action(ActionKind.ADD_TO_GROUP, "hr1", {"group": "nfs-hr"}))
        self.assertFalse(result.changed)
        self.assertEqual(self.host.count("add_user_to_group", "hr1", "nfs-hr"), 0)

    def test_label_path_defines_rule_and_restores(self):
        action = Action(
            ActionKind.LABEL_PATH,
            "/srv/hr",
            {"pattern": "/srv/hr(/.*)?", "selinux_type": "nfsd_anon_t"},
            best_effort=True,
        )
        self.executor.execute(action)
        self.assertIn(("/srv/hr(/.*)?", "nfsd_anon_t"), self.host.fcontexts)
        self.assertEqual(self.host.restored, ["/srv/hr"])


if __name__ == "__main__":
    unittest.main()
