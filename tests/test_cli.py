"""
CLI interface tests for dep-mole.
Tests flags, exit codes and rendered output.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from conftest import FakeAnalyzer, make_project
from dep_mole.cli_config import get_config
from dep_mole.error_handling import AnalyzerFailure
from dep_mole.main import cli
from dep_mole.registry_clients import RegistryCheckResult

REPORT_HEADER = "Dependency Check Report"


def run(project, *args, analyzer=None):
    runner = CliRunner()
    with patch("dep_mole.main.get_usage_analyzer", return_value=analyzer or FakeAnalyzer()):
        return runner.invoke(cli, ["--path", str(project), *args])


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "dep-mole" in result.output.lower()
        assert "--notinstalled" in result.output

    def test_cli_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output


class TestReportCommand:
    """Test the default report."""

    def test_default_report(self, sample_project, sample_analyzer):
        result = run(sample_project, analyzer=sample_analyzer)

        assert result.exit_code == 0
        assert REPORT_HEADER in result.output
        assert "Healthy dependencies (5)" in result.output
        assert "Unused dependencies" in result.output
        assert "Declared but missing in node_modules (2)" in result.output
        assert "Missing dependencies (imported but not in package.json) (1)" in result.output
        assert "  - axios" in result.output

    def test_problems_still_exit_zero(self, sample_project, sample_analyzer):
        result = run(sample_project, "--missing", "--unused", analyzer=sample_analyzer)

        assert result.exit_code == 0
        assert "Healthy dependencies" not in result.output
        assert "  - left-pad" in result.output
        assert "  - axios" in result.output

    def test_not_installed_dependency(self, sample_project, sample_analyzer):
        healthy = run(sample_project, "--healthy", analyzer=sample_analyzer)
        not_installed = run(sample_project, "--notinstalled", analyzer=sample_analyzer)

        assert "  - chalk" not in healthy.output
        assert "Declared but missing in node_modules" in not_installed.output
        assert "  - chalk" in not_installed.output

    def test_all_good_message(self, empty_project):
        result = run(empty_project)

        assert result.exit_code == 0
        assert "All dependencies look good!" in result.output

    def test_all_good_with_healthy_records(self, temp_dir):
        project = make_project(
            temp_dir / "clean", {"dependencies": {"react": "^18.2.0"}}, ["react"]
        )

        result = run(project)

        assert "Healthy dependencies (1)" in result.output
        assert "All dependencies look good!" in result.output

    def test_healthy_filter_does_not_hide_problems(self, temp_dir):
        project = make_project(
            temp_dir / "unused", {"dependencies": {"left-pad": "1.3.0"}}, ["left-pad"]
        )

        analyzer = FakeAnalyzer(unused_prod=("left-pad",))

        result = run(project, "--healthy", analyzer=analyzer)

        assert result.exit_code == 0
        assert "No healthy dependencies found." in result.output
        assert "All dependencies look good!" not in result.output

    def test_flat_mode_with_missing_imports(self, empty_project):
        result = run(
            empty_project, "--flat", analyzer=FakeAnalyzer(missing={"axios": []})
        )

        assert result.exit_code == 0
        assert "All dependencies look good!" not in result.output

    def test_empty_requested_sections(self, sample_project):
        result = run(sample_project, "--unused", "--missing")

        assert result.exit_code == 0
        assert "No unused dependencies found." in result.output
        assert "No missing dependencies found." in result.output
        assert "All dependencies look good!" not in result.output

    def test_flat_mode(self, sample_project, sample_analyzer):
        result = run(sample_project, "--flat", analyzer=sample_analyzer)

        assert result.exit_code == 0
        assert "devDependencies (3)" in result.output
        assert "peerDependencies (2)" in result.output
        assert "  - eslint (unused, not installed)" in result.output

    def test_type_filter(self, sample_project, sample_analyzer):
        result = run(sample_project, "--prod", "--unused", analyzer=sample_analyzer)

        assert result.exit_code == 0
        assert "  - left-pad" in result.output
        assert "  - eslint" not in result.output

    def test_json_output(self, sample_project, sample_analyzer):
        result = run(
            sample_project, "--output-format", "json", "--missing", analyzer=sample_analyzer
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["mode"] == "status"
        assert data["groups"] == {
            "missing": [
                {"name": "axios", "declared": False, "used": True, "installed": False}
            ]
        }
        assert "verification" not in data
        assert data["all_good"] is False


class TestStructuralFailures:
    """Test exit code 1 cases."""

    def test_no_manifest(self, temp_dir):
        project = make_project(temp_dir / "bare", None)

        result = run(project)

        assert result.exit_code == 1
        assert "No package.json found" in result.output
        assert REPORT_HEADER not in result.output

    def test_malformed_manifest(self, temp_dir):
        project = make_project(temp_dir / "broken", None)
        (project / "package.json").write_text("{not json")

        result = run(project)

        assert result.exit_code == 1
        assert REPORT_HEADER not in result.output

    @pytest.mark.parametrize(
        "status_flag", ["--healthy", "--unused", "--notinstalled", "--missing"]
    )
    def test_flat_with_status_filter(self, sample_project, status_flag):
        analyzer = FakeAnalyzer()

        result = run(sample_project, "--flat", status_flag, analyzer=analyzer)

        assert result.exit_code == 1
        assert "--flat cannot be combined" in result.output
        assert REPORT_HEADER not in result.output
        assert analyzer.calls == []

    def test_conflicting_type_flags(self, sample_project):
        result = run(sample_project, "--dev", "--peer")

        assert result.exit_code == 1
        assert "Only one type filter" in result.output

    def test_analyzer_failure(self, sample_project):
        analyzer = FakeAnalyzer(error=AnalyzerFailure("depcheck crashed"))

        result = run(sample_project, analyzer=analyzer)

        assert result.exit_code == 1
        assert "depcheck crashed" in result.output
        assert REPORT_HEADER not in result.output


class TestVerify:
    """Test the --verify flag."""

    def test_verify_reports_each_name(self, sample_project, sample_analyzer):
        results = [
            RegistryCheckResult("left-pad", True, latest_version="1.3.0"),
            RegistryCheckResult("eslint", False, error="Network error: timeout"),
        ]
        with patch(
            "dep_mole.main.verify_packages", new=AsyncMock(return_value=results)
        ) as mock_verify:
            result = run(sample_project, "--unused", "--verify", analyzer=sample_analyzer)

        assert result.exit_code == 0
        mock_verify.assert_awaited_once_with(["left-pad", "eslint"])
        assert "left-pad exists on npm. Latest version: 1.3.0" in result.output
        assert "eslint not found on npm!" in result.output

    def test_verify_in_json(self, sample_project, sample_analyzer):
        results = [RegistryCheckResult("axios", True, latest_version="1.7.2")]
        with patch("dep_mole.main.verify_packages", new=AsyncMock(return_value=results)):
            result = run(
                sample_project,
                "--missing",
                "--verify",
                "--output-format",
                "json",
                analyzer=sample_analyzer,
            )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["verification"] == [
            {"package": "axios", "exists": True, "latest_version": "1.7.2"}
        ]


class TestConfigCommands:
    """Test the config subcommands."""

    def test_config_init_and_show(self, temp_dir):
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=temp_dir):
            result = runner.invoke(cli, ["config", "init"])
            assert result.exit_code == 0

            with open(".dep-mole.json", encoding="utf-8") as f:
                data = json.load(f)
            assert data["network"]["registry_url"] == "https://registry.npmjs.org"

            again = runner.invoke(cli, ["config", "init"])
            assert again.exit_code == 1

        show = runner.invoke(cli, ["config", "show"])
        assert show.exit_code == 0
        assert "registry_url" in show.output

    def test_project_config_file_is_used(self, sample_project, sample_analyzer):
        (sample_project / ".dep-mole.yaml").write_text(
            "verify:\n  max_concurrent: 4\n"
        )
        with patch(
            "dep_mole.verifier._verify_concurrent", new=AsyncMock(return_value=[])
        ) as mock_fanout:
            result = run(sample_project, "--missing", "--verify", analyzer=sample_analyzer)

        assert result.exit_code == 0
        assert get_config().verify.max_concurrent == 4
        assert mock_fanout.await_args.args[1:] == (["axios"], 4)

    def test_wrongly_typed_value_keeps_default(self, sample_project, sample_analyzer):
        (sample_project / ".dep-mole.json").write_text(
            json.dumps({"network": {"timeout_seconds": "30"}})
        )

        result = run(sample_project, "--missing", analyzer=sample_analyzer)

        assert result.exit_code == 0
        assert "network.timeout_seconds must be a positive number" in result.output
        assert "  - axios" in result.output
        assert get_config().network.timeout_seconds == 30.0

    def test_config_show_with_wrongly_typed_value(self, temp_dir):
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=temp_dir):
            with open(".dep-mole.json", "w", encoding="utf-8") as f:
                json.dump({"analyzer": {"command": "npx depcheck"}}, f)

            result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert get_config().analyzer.command == ["npx", "--yes", "depcheck"]
