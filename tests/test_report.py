import io
import unittest

from rich.console import Console

from nfsplane.core.actions import Action, ActionKind, Issue, IssueKind, Plan
from nfstool.host.diagnostics import DiagnosticReport
from nfstool.host.runner import RunReport
from nfstool.report import render_diagnostics, render_plan, render_summary


def capture():
    buffer = io.StringIO()
    return buffer, Console(file=buffer, width=200, color_system=None)


class TestRenderSummary(unittest.TestCase):
    def test_path_resources_are_printed_literally(self):
        buffer, console = capture()
        report = RunReport(issues=[
            Issue(IssueKind.RECOVERABLE, "/srv/db", "restorecon -R /srv/db (rc=1): lstat(/srv/db) failed: [Errno 13]"),
            Issue(IssueKind.CONFLICT, "hr1", "El usuario hr1 no existe", hint="getent passwd [hr1]"),
            Issue(IssueKind.NOTE, "group:nfs-hr", "nota"),
        ])

        render_summary(report, console)

        output = buffer.getvalue()
        self.assertIn("[/srv/db]", output)
        self.assertIn("[Errno 13]", output)
        self.assertIn("[hr1]", output)
        self.assertIn("getent passwd [hr1]", output)
        self.assertIn("[group:nfs-hr]", output)

    def test_plan_with_bracketed_targets(self):
        buffer, console = capture()
        plan = Plan()
        plan.add(Action(ActionKind.APPEND_LINE, "/etc/exports", {"line": "x"}, description="[/etc/exports] append"))
        plan.conflict("path:/srv/hr", "/srv/hr existe pero no es un directorio")

        render_plan(plan, console)

        self.assertIn("[/etc/exports] append", buffer.getvalue())
        self.assertIn("[path:/srv/hr]", buffer.getvalue())

    def test_diagnostics_with_tool_output(self):
        buffer, console = capture()
        report = DiagnosticReport(
            role="client",
            remote={"showmount -e": "Export list for server1:\n/srv/hr 192.168.4.0/22\n[/bogus]\n"},
            unavailable=["user:hr3"],
        )

        render_diagnostics(report, console)

        self.assertIn("[/bogus]", buffer.getvalue())
        self.assertIn("user:hr3", buffer.getvalue())


if __name__ == "__main__":
    unittest.main()
