from __future__ import annotations

import os
import sys
import tempfile
import unittest
from pathlib import Path

from _testutil import ensure_repo_on_path


class TestLocalCommandRunner(unittest.TestCase):
    def test_runs_in_context_cwd_and_env(self) -> None:
        ensure_repo_on_path()

        from packager.infra.adapters.exec_local import LocalCommandRunner
        from packager.infra.models import ExecContext

        with tempfile.TemporaryDirectory() as td:
            ctx = ExecContext.from_process(cwd=Path(td)).with_env({"PACKAGER_PROBE": "on"}).without_env(["PACKAGER_ABSENT"])
            cp = LocalCommandRunner().run(
                [sys.executable, "-c", "import os; print(os.getcwd()); print(os.environ['PACKAGER_PROBE'])"],
                ctx,
            )

        self.assertTrue(cp.ok, cp.diagnostics())
        lines = cp.stdout.strip().splitlines()
        self.assertEqual(os.path.realpath(lines[0]), os.path.realpath(td))
        self.assertEqual(lines[1], "on")
        # The process environment itself is untouched.
        self.assertNotIn("PACKAGER_PROBE", os.environ)

    def test_nonzero_exit(self) -> None:
        ensure_repo_on_path()

        from packager.infra.adapters.exec_local import LocalCommandRunner
        from packager.infra.models import ExecContext

        cp = LocalCommandRunner().run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"],
            ExecContext.from_process(cwd=Path.cwd()),
        )
        self.assertFalse(cp.ok)
        self.assertEqual(cp.returncode, 3)
        self.assertIn("bad", cp.diagnostics())
        self.assertIn("(exit 3)", cp.diagnostics())

    def test_timeout_is_failed_result(self) -> None:
        ensure_repo_on_path()

        from packager.infra.adapters.exec_local import LocalCommandRunner
        from packager.infra.models import ExecContext

        cp = LocalCommandRunner().run(
            [sys.executable, "-c", "import time; time.sleep(5)"],
            ExecContext.from_process(cwd=Path.cwd(), timeout_s=0.2),
        )
        self.assertFalse(cp.ok)
        self.assertTrue(cp.timed_out)

    def test_missing_binary(self) -> None:
        ensure_repo_on_path()

        from packager.infra.adapters.exec_local import LocalCommandRunner
        from packager.infra.models import ExecContext

        cp = LocalCommandRunner().run(["/nonexistent/compiler-xyz"], ExecContext.from_process(cwd=Path.cwd()))
        self.assertFalse(cp.ok)
        self.assertEqual(cp.returncode, 127)


if __name__ == "__main__":
    unittest.main()
