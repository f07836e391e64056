import os
import stat
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from nfstool.host.backup import BackupManager


class TestBackupManager(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.clock = lambda: datetime(2026, 1, 2, 3, 4, 5)

    def tearDown(self):
        self._tmp.cleanup()

    def test_backup_copies_content(self):
        source = self.tmp / "exports"
        source.write_text("/srv/old 10.0.0.0/8(ro)\n")
        manager = BackupManager(str(self.tmp / "backups"), clock=self.clock)

        record = manager.backup(str(source))

        self.assertEqual(Path(record.destination).name, "exports.bak.20260102-030405")
        self.assertEqual(Path(record.destination).read_text(), "/srv/old 10.0.0.0/8(ro)\n")
        self.assertEqual(manager.records, [record])

    def test_backup_dir_is_private(self):
        source = self.tmp / "exports"
        source.write_text("x\n")
        manager = BackupManager(str(self.tmp / "backups"), clock=self.clock)
        manager.backup(str(source))
        self.assertEqual(stat.S_IMODE(os.stat(self.tmp / "backups").st_mode), 0o700)

    def test_same_second_collision_gets_suffix(self):
        source = self.tmp / "exports"
        source.write_text("first\n")
        manager = BackupManager(str(self.tmp / "backups"), clock=self.clock)

        first = manager.backup(str(source))
        source.write_text("second\n")
        second = manager.backup(str(source))

        self.assertNotEqual(first.destination, second.destination)
        self.assertTrue(second.destination.endswith(".1"))
        self.assertEqual(Path(first.destination).read_text(), "first\n")
        self.assertEqual(Path(second.destination).read_text(), "second\n")

    def test_missing_source_is_created_empty(self):
        source = self.tmp / "etc" / "exports"
        manager = BackupManager(str(self.tmp / "backups"), clock=self.clock)

        self.assertIsNone(manager.backup(str(source)))

        self.assertTrue(source.exists())
        self.assertEqual(source.read_text(), "")
        self.assertEqual(stat.S_IMODE(os.stat(source).st_mode), 0o644)
        self.assertEqual(manager.records, [])


if __name__ == "__main__":
    unittest.main()
