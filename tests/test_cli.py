"""Tests for the CLI.

These tests drive the Typer app end to end with the package manager
mocked out, so no network access or Node toolchain is needed.
"""

import json
import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from uistage import __version__
from uistage.cli import app

runner = CliRunner()


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a project directory and point the settings at it."""
    project_dir = tmp_path / "duo-ui" / "jaeger-ui"
    project_dir.mkdir(parents=True)
    monkeypatch.setenv("UISTAGE_PROJECT_DIR", str(project_dir))
    monkeypatch.setenv("UISTAGE_LOG_LEVEL", "WARNING")
    return project_dir


@pytest.fixture
def fake_yarn(project: Path, build_output_writer):
    """Mock the package manager; `yarn build` writes the build output."""
    build_dir = project / "packages" / "jaeger-ui" / "build"
    calls: list[list[str]] = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        if cmd == ["yarn", "build"]:
            build_output_writer(build_dir)
        return MagicMock(returncode=0)

    with (
        patch("uistage.runner.shutil.which", return_value="/usr/bin/yarn"),
        patch("uistage.runner.subprocess.run", side_effect=fake_run),
    ):
        yield calls


class TestCLIHelp:
    """Test CLI help and version commands."""

    def test_help_returns_zero(self) -> None:
        """CLI --help should return exit code 0."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "stage its artifacts" in result.stdout

    def test_version_flag(self) -> None:
        """CLI --version should print version and exit 0."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_short_version_flag(self) -> None:
        """CLI -V should print version and exit 0."""
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestCLIRun:
    """Test running the pipeline from the CLI."""

    def test_no_args_runs_pipeline(self, project: Path, fake_yarn) -> None:
        """CLI with no args should run the full pipeline."""
        result = runner.invoke(app, [])

        assert result.exit_code == 0, result.output
        assert fake_yarn == [["yarn"], ["yarn", "build"]]
        target = (project / "../../duo/ui").resolve()
        assert (target / "index.html").read_text() == "<html>duo</html>"
        assert (target / "static" / "js" / "main.abc123.js").exists()
        assert not (target / "static" / "js" / "main.abc123.js.map").exists()

    def test_run_json(self, project: Path, fake_yarn) -> None:
        """run --json should print the pipeline result."""
        result = runner.invoke(app, ["run", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["success"] is True
        assert data["completed_steps"][-1] == "stage"
        assert "static/js/runtime-main.def456.js" in data["pruned_files"]

    def test_run_target_override(self, tmp_path: Path, project: Path, fake_yarn):
        """--target-dir should redirect the staging directory."""
        target = tmp_path / "elsewhere"
        result = runner.invoke(app, ["run", "--target-dir", str(target)])

        assert result.exit_code == 0, result.output
        assert (target / "index.html").exists()

    def test_run_relative_target(self, tmp_path: Path, project: Path, fake_yarn):
        """A relative --target-dir should resolve against the project directory."""
        result = runner.invoke(app, ["run", "--target-dir", "../../out"])

        assert result.exit_code == 0, result.output
        target = (project / "../../out").resolve()
        assert target == tmp_path.resolve() / "out"
        assert (target / "index.html").read_text() == "<html>duo</html>"

    def test_run_target_containing_project(self, project: Path, fake_yarn) -> None:
        """A target that would remove the project should exit 1 untouched."""
        (project / "package.json").write_text("{}")
        result = runner.invoke(app, ["run", "--target-dir", ".."])

        assert result.exit_code == 1
        assert fake_yarn == []
        assert (project / "package.json").exists()

    def test_build_failure_propagates_exit_code(self, project: Path) -> None:
        """A failing build should exit with the build's exit code."""

        def fake_run(cmd, **kwargs):
            return MagicMock(returncode=0 if cmd == ["yarn"] else 4)

        with (
            patch("uistage.runner.shutil.which", return_value="/usr/bin/yarn"),
            patch("uistage.runner.subprocess.run", side_effect=fake_run),
        ):
            result = runner.invoke(app, ["run"])

        assert result.exit_code == 4
        assert "exit code 4" in result.output

    def test_missing_project(self, tmp_path: Path, monkeypatch) -> None:
        """A missing project directory should exit 1."""
        monkeypatch.setenv("UISTAGE_PROJECT_DIR", str(tmp_path / "nope"))
        with patch("uistage.runner.subprocess.run") as mock_run:
            result = runner.invoke(app, ["run"])

        assert result.exit_code == 1
        assert "Project directory not found" in result.output
        mock_run.assert_not_called()

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        """An invalid config file should exit 1."""
        path = tmp_path / "bad.yaml"
        path.write_text("bogus: 1\n")
        result = runner.invoke(app, ["--config", str(path), "config"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestCLIPruneAndVerify:
    """Test the prune and verify commands."""

    def test_prune_dry_run(self, project: Path, build_output_writer) -> None:
        """prune --dry-run should list files without deleting them."""
        build_dir = project / "packages" / "jaeger-ui" / "build"
        build_output_writer(build_dir)

        result = runner.invoke(app, ["prune", "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "Would prune 3 file(s)" in result.stdout
        assert (build_dir / "static" / "css" / "main.css.map").exists()

    def test_prune_missing_build_dir(self, project: Path) -> None:
        """prune should fail without a build output directory."""
        result = runner.invoke(app, ["prune"])
        assert result.exit_code == 1

    def test_verify_after_run(self, project: Path, fake_yarn) -> None:
        """verify should pass right after a run and fail after tampering."""
        assert runner.invoke(app, ["run"]).exit_code == 0

        result = runner.invoke(app, ["verify", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["ok"] is True

        target = (project / "../../duo/ui").resolve()
        (target / "index.html").write_text("tampered")
        result = runner.invoke(app, ["verify"])
        assert result.exit_code == 1
        assert "Mismatched: index.html" in result.stdout


class TestCLIConfig:
    """Test CLI config command."""

    def test_config_command(self) -> None:
        """CLI config should show all sections."""
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        for section in ("Paths:", "Commands:", "Staging:", "Timeouts", "Logging:"):
            assert section in result.stdout
        assert "Package manager" in result.stdout

    def test_config_json(self) -> None:
        """CLI config --json should output JSON."""
        result = runner.invoke(app, ["config", "--json"])
        assert result.exit_code == 0
        parsed = json.loads(result.stdout)
        assert parsed["package_manager"] == "yarn"

    def test_config_reads_env(self) -> None:
        """CLI config should reflect environment variables."""
        with patch.dict(os.environ, {"UISTAGE_PACKAGE_MANAGER": "pnpm"}):
            result = runner.invoke(app, ["config", "--json"])
        assert json.loads(result.stdout)["package_manager"] == "pnpm"
