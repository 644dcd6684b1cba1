from __future__ import annotations

import contextlib
import io
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from _testutil import ensure_repo_on_path


def _run_main(argv, env=None):
    from packager.cli import main

    out, err = io.StringIO(), io.StringIO()
    with mock.patch.dict(os.environ, env or {}, clear=False):
        for name in ("RUBYC", "VERSION", "PACKAGER_BUILD_PROFILE"):
            if env is None or name not in env:
                os.environ.pop(name, None)
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main(argv)
    return code, out.getvalue(), err.getvalue()


class TestCliBuild(unittest.TestCase):
    def setUp(self) -> None:
        ensure_repo_on_path()
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name) / "licensed"
        self.root.mkdir()

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_missing_compiler_is_configuration_failure(self) -> None:
        code, _, err = _run_main(["build", "--source-root", str(self.root), str(self.root / "missing"), "1.0.0"])
        self.assertEqual(code, 127)
        self.assertIn("[packager][FAILED] stage=configure", err)

    def test_compiler_from_environment_must_be_a_file(self) -> None:
        code, _, err = _run_main(["build", "--source-root", str(self.root)], env={"RUBYC": str(self.root), "VERSION": "1.0.0"})
        self.assertEqual(code, 127)
        self.assertIn("not a regular file", err)

    def test_invalid_compiler_wins_over_invalid_profile(self) -> None:
        bad = self.root / "bad.yml"
        bad.write_text("package: [unclosed\n", encoding="utf-8")
        code, _, err = _run_main(["build", "--source-root", str(self.root), "--profile", str(bad), str(self.root / "missing"), "1.0.0"])
        self.assertEqual(code, 127)
        self.assertIn("stage=configure", err)
        self.assertIn("Compiler not found", err)

    def test_no_compiler_at_all(self) -> None:
        code, _, _ = _run_main(["build", "--source-root", str(self.root)])
        self.assertEqual(code, 127)

    def test_success_prints_archive_location(self) -> None:
        from packager.infra.models import BuildOutcome

        compiler = self.root / "rubyc"
        compiler.write_text("#!/bin/sh\n", encoding="utf-8")
        archive = self.root / "pkg" / "1.0.0" / "licensed-1.0.0-linux-x64.tar.gz"
        outcome = BuildOutcome(name="licensed", version="1.0.0", platform="linux", archive_path=archive, sha256="ab" * 32, size_bytes=10)

        with mock.patch("packager.cli.run_build", return_value=outcome) as run_build:
            code, out, _ = _run_main(["build", "--source-root", str(self.root), str(compiler), "1.0.0"])

        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), f"licensed package built to {archive}")
        request = run_build.call_args[0][0]
        self.assertEqual(request.version, "1.0.0")
        self.assertEqual(request.compiler_path, compiler.resolve())
        self.assertIsNone(run_build.call_args[1]["archive_format"])

        with mock.patch("packager.cli.run_build", return_value=outcome) as run_build:
            code, out, _ = _run_main(
                ["build", "--source-root", str(self.root), "--json", "--format", "zip", "--platform", "linux", str(compiler), "1.0.0"]
            )

        self.assertEqual(code, 0)
        summary = json.loads(out)
        self.assertEqual(summary["archive_path"], str(archive))
        self.assertEqual(summary["bytes"], 10)
        self.assertEqual(run_build.call_args[1]["archive_format"], "zip")
        self.assertEqual(run_build.call_args[0][0].platform, "linux")


class TestCliProfile(unittest.TestCase):
    def setUp(self) -> None:
        ensure_repo_on_path()
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name) / "licensed"
        self.root.mkdir()

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_show_profile_defaults(self) -> None:
        code, out, _ = _run_main(["show-profile", "--source-root", str(self.root)])
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data["package"]["name"], "licensed")
        self.assertEqual(data["package"]["archive_format"], "tar.gz")

    def test_invalid_profile_exit_code(self) -> None:
        bad = self.root / "bad.yml"
        bad.write_text("package:\n  archive_format: rar\n", encoding="utf-8")
        code, _, err = _run_main(["show-profile", "--source-root", str(self.root), "--profile", str(bad)])
        self.assertEqual(code, 2)
        self.assertIn("stage=configure", err)


if __name__ == "__main__":
    unittest.main()
