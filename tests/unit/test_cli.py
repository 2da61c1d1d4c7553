"""Unit tests for the command-line entry points.

The commands run against a ``.specify``-marked directory; git is kept
from discovering any enclosing repository.
"""

import json

import pytest

from specify_env.cli import cleanup_main, create_prp_main, validation_main


@pytest.fixture
def project(marker_repo, monkeypatch):
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(marker_repo.parent))
    monkeypatch.chdir(marker_repo)
    (marker_repo / "specs" / "001-login").mkdir(parents=True)
    return marker_repo


class TestValidation:
    """Test cases for run-validation."""

    def test_json_output(self, project, capsys):
        assert validation_main(["--json", "--focus=budget"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["REPO_ROOT"] == str(project)
        assert data["CURRENT_BRANCH"] == "unknown"
        assert data["FEATURE_DIR"] == str(project / "specs" / "001-login")
        assert data["FOCUS"] == "budget"
        assert data["HAS_GIT"] is False
        assert set(data["TOOLS"]) == {"python", "node", "markdownlint"}
        assert data["VALIDATION_REPORT"].startswith(str(project / ".specify" / "validation" / "validation-report-"))

    def test_human_output(self, project, capsys):
        assert validation_main([]) == 0

        out = capsys.readouterr().out
        assert f"REPO_ROOT: {project}" in out
        assert "HAS_GIT: false" in out
        assert f"FEATURE_SPEC: {project / 'specs' / '001-login' / 'spec.md'} (missing)" in out
        assert "Available validation tools:" in out

    def test_feature_override(self, project, capsys, monkeypatch):
        monkeypatch.setenv("SPECIFY_FEATURE", "009-search")
        validation_main(["--json"])

        assert json.loads(capsys.readouterr().out)["CURRENT_BRANCH"] == "009-search"

    def test_invalid_focus(self, project, capsys):
        with pytest.raises(SystemExit) as excinfo:
            validation_main(["--focus=speed"])

        assert excinfo.value.code == 1
        assert "invalid choice" in capsys.readouterr().err

    def test_unknown_argument(self, project):
        with pytest.raises(SystemExit) as excinfo:
            validation_main(["--verbose"])
        assert excinfo.value.code == 1

    def test_help(self, project, capsys):
        with pytest.raises(SystemExit) as excinfo:
            validation_main(["--help"])

        assert excinfo.value.code == 0
        assert "--focus" in capsys.readouterr().out

    def test_no_root(self, tmp_path, monkeypatch, capsys):
        outside = tmp_path / "outside"
        outside.mkdir()
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        monkeypatch.chdir(outside)

        assert validation_main(["--json"]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "ERROR: Could not determine repository root" in captured.err


class TestLoggingSettings:
    """Bad SPECIFY_LOG_* settings are reported, not raised."""

    def test_unknown_log_level(self, project, capsys, monkeypatch):
        monkeypatch.setenv("SPECIFY_LOG_LEVEL", "verbose")

        assert validation_main(["--json"]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "ERROR: Invalid logging configuration" in captured.err

    def test_log_file_directory_created(self, project, tmp_path, capsys, monkeypatch):
        log_file = tmp_path / "logs" / "nested" / "specify.log"
        monkeypatch.setenv("SPECIFY_LOG_FILE", str(log_file))

        assert validation_main(["--json"]) == 0

        assert json.loads(capsys.readouterr().out)["REPO_ROOT"] == str(project)
        assert log_file.is_file()

    def test_unwritable_log_file(self, project, tmp_path, capsys, monkeypatch):
        log_dir = tmp_path / "is-a-directory"
        log_dir.mkdir()
        monkeypatch.setenv("SPECIFY_LOG_FILE", str(log_dir))

        assert cleanup_main(["--json"]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "ERROR: Invalid logging configuration" in captured.err


class TestCleanup:
    """Test cases for run-cleanup."""

    def test_json_output_without_git(self, project, capsys):
        (project / "tool.py").write_text("")

        assert cleanup_main(["--json", "--type=dead-code", "--archive-only"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["BACKUP_BRANCH"] == "manual-backup-required"
        assert data["CLEANUP_TYPE"] == "dead-code"
        assert data["DRY_RUN"] is True
        assert data["ARCHIVE_ONLY"] is True
        assert data["ARCHIVE_DIR"] == str(project / ".archived")
        assert data["PROJECT_LANGUAGES"] == "python"
        assert set(data["TOOLS"]) == {"python", "node", "vulture", "ts-prune", "pylint"}

    def test_execute_flag(self, project, capsys):
        cleanup_main(["--json", "--execute"])

        data = json.loads(capsys.readouterr().out)
        assert data["DRY_RUN"] is False
        assert data["CLEANUP_TYPE"] == "all"

    def test_human_banner(self, project, capsys):
        assert cleanup_main([]) == 0

        out = capsys.readouterr().out
        assert "BACKUP_BRANCH: manual-backup-required" in out
        assert "Please create manual backup before proceeding" in out

    def test_invalid_type(self, project):
        with pytest.raises(SystemExit) as excinfo:
            cleanup_main(["--type=everything"])
        assert excinfo.value.code == 1


class TestCreatePrp:
    """Test cases for create-prp."""

    def test_missing_template(self, project, capsys):
        assert create_prp_main([]) == 1

        captured = capsys.readouterr()
        assert "ERROR: PRP template not found at" in captured.err
        assert not (project / "prps").exists()

    def test_json_output(self, project, capsys, monkeypatch):
        template = project / ".specify" / "templates" / "prp-template.md"
        template.parent.mkdir(parents=True)
        template.write_text("# {{FEATURE_BRANCH}}\n")
        monkeypatch.setenv("SPECIFY_FEATURE", "001-login")

        assert create_prp_main(["--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data == {"PRP_FILE": str(project / "prps" / "001-login.md"), "FEATURE_BRANCH": "001-login"}
        assert (project / "prps" / "001-login.md").read_text() == "# 001-login\n"

    def test_human_output(self, project, capsys):
        template = project / ".specify" / "templates" / "prp-template.md"
        template.parent.mkdir(parents=True)
        template.write_text("{{FEATURE_BRANCH}}")

        assert create_prp_main([]) == 0

        out = capsys.readouterr().out
        assert f"PRP_FILE: {project / 'prps' / 'unknown.md'}" in out
        assert "FEATURE_BRANCH: unknown" in out

    def test_unknown_argument(self, project):
        with pytest.raises(SystemExit) as excinfo:
            create_prp_main(["--force"])
        assert excinfo.value.code == 1
