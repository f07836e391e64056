import unittest

from pydantic import ValidationError

from nfsplane.core.models import (
    AutomountEntry,
    ClientConfig,
    DirectorySpec,
    GroupSpec,
    ServerConfig,
    ShareSpec,
    UserSpec,
    master_reference,
    render_automount_map,
)


class TestDirectorySpec(unittest.TestCase):
    def test_mode_string_is_octal(self):
        self.assertEqual(DirectorySpec(path="/srv/db", mode="2775").mode, 0o2775)
        self.assertEqual(DirectorySpec(path="/srv/hr", mode="0755").mode, 0o755)

    def test_unquoted_integer_mode_rejected(self):
        # mode: 2775 sin comillas llega como entero decimal
        with self.assertRaises(ValidationError) as ctx:
            DirectorySpec(path="/srv/db", mode=2775)
        self.assertIn("2775", str(ctx.exception))
        with self.assertRaises(ValidationError):
            DirectorySpec(path="/srv/db", mode=0o2775)

    def test_default_mode(self):
        self.assertEqual(DirectorySpec(path="/srv/hr").mode, 0o755)

    def test_invalid_mode_rejected(self):
        with self.assertRaises(ValidationError):
            DirectorySpec(path="/srv/db", mode="9")
        with self.assertRaises(ValidationError):
            DirectorySpec(path="/srv/db", mode="17777")

    def test_path_must_be_absolute(self):
        with self.assertRaises(ValidationError):
            DirectorySpec(path="srv/db")

    def test_path_is_normalized(self):
        self.assertEqual(DirectorySpec(path="/srv//db/").path, "/srv/db")


class TestShareSpec(unittest.TestCase):
    def test_export_line_render(self):
        share = ShareSpec(path="/srv/hr", client_cidr="192.168.4.0/22")
        self.assertEqual(share.export_line().render(), "/srv/hr 192.168.4.0/22(rw,sync,no_subtree_check)")

    def test_invalid_cidr(self):
        with self.assertRaises(ValidationError):
            ShareSpec(path="/srv/hr", client_cidr="192.168.4.0/99")

    def test_duplicate_option(self):
        with self.assertRaises(ValidationError):
            ShareSpec(path="/srv/hr", client_cidr="10.0.0.0/8", options=["rw", "rw"])


class TestAutomount(unittest.TestCase):
    def test_entry_render(self):
        entry = AutomountEntry(local_path="/mnt/hr-data", server="server1", remote_path="/srv/hr")
        self.assertEqual(entry.render(), "/mnt/hr-data    -fstype=nfs4,rw,soft,intr,vers=4    server1:/srv/hr")

    def test_map_has_header_and_trailing_newline(self):
        entry = AutomountEntry(local_path="/mnt/hr-data", server="server1", remote_path="/srv/hr")
        content = render_automount_map([entry])
        lines = content.splitlines()
        self.assertTrue(lines[0].startswith("# direct map"))
        self.assertEqual(lines[1], entry.render())
        self.assertTrue(content.endswith("\n"))

    def test_master_reference(self):
        self.assertEqual(master_reference("/etc/auto.hr"), "/-    /etc/auto.hr")


class TestConfigs(unittest.TestCase):
    def test_undeclared_group_membership_rejected(self):
        with self.assertRaises(ValidationError):
            ServerConfig(users=[UserSpec(name="hr1", groups=["nfs-hr"])])

    def test_duplicate_users_rejected(self):
        with self.assertRaises(ValidationError):
            ServerConfig(users=[UserSpec(name="hr1"), UserSpec(name="hr1")])

    def test_server_target_dedupes_export_lines(self):
        config = ServerConfig(shares=[ShareSpec(path="/srv/hr", client_cidr="192.168.4.0/22")])
        target = config.target()
        self.assertEqual(len(target.export_lines), 1)
        self.assertEqual(target.labels[0].pattern, "/srv/hr(/.*)?")
        self.assertEqual(target.managed_groups, [])

    def test_server_target_without_selinux_type(self):
        config = ServerConfig(selinux_type=None, shares=[ShareSpec(path="/srv/hr", client_cidr="10.0.0.0/8")])
        self.assertEqual(config.target().labels, [])

    def test_client_target_requires_server(self):
        config = ClientConfig(groups=[GroupSpec(name="nfs-hr", gid=1050)])
        with self.assertRaises(ValueError):
            config.target("")
        with self.assertRaises(ValueError):
            config.target("   ")

    def test_client_target_binds_server(self):
        config = ClientConfig()
        target = config.target("server1")
        self.assertEqual(target.server, "server1")
        self.assertEqual(target.packages[0].name, "autofs")


if __name__ == "__main__":
    unittest.main()
