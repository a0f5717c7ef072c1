"""Tests for the command-line entry points"""
import json
import logging

import pytest

from comp_repos.cli.args import parse_add_branch_args, parse_pipeline_args, parse_setup_args
from comp_repos.cli.main import (
    add_branch_main,
    run_pipeline_main,
    setup_repos_main,
    workspace_add_main,
)
from comp_repos.core import RepoSetup


@pytest.fixture(autouse=True)
def restore_logging():
    """Entry points reconfigure the root logger; undo that after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def in_anchor(anchor_dir, monkeypatch):
    monkeypatch.chdir(anchor_dir)
    return anchor_dir


@pytest.fixture
def in_plain_anchor(plain_anchor_dir, monkeypatch):
    monkeypatch.chdir(plain_anchor_dir)
    return plain_anchor_dir


class TestArgs:
    """Test argument parsing."""

    def test_setup_defaults(self):
        args = parse_setup_args([])
        assert args.list_file is None
        assert args.backend == "json"
        assert args.branch_mismatch == "ignore"
        assert not args.dry_run
        assert not args.strict

    def test_setup_short_flags(self):
        args = parse_setup_args(["-f", "other.list", "-n", "-v", "-d", "-w", "ws.code-workspace"])
        assert args.list_file == "other.list"
        assert args.dry_run
        assert args.verbose
        assert args.debug
        assert args.workspace_file == "ws.code-workspace"

    def test_pipeline_flags(self):
        args = parse_pipeline_args(["-i", "A,B", "-e", "C", "-s", "--skip-deps"])
        assert args.include == "A,B"
        assert args.exclude == "C"
        assert args.skip_setup
        assert args.skip_deps

    def test_add_branch_positionals(self):
        args = parse_add_branch_args(["feature/x", "custom"])
        assert args.branch == "feature/x"
        assert args.target_dir == "custom"
        assert parse_add_branch_args(["dev"]).target_dir is None

    def test_help_exits_zero(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_setup_args(["--help"])
        assert exc_info.value.code == 0
        assert "usage: setup-repos" in capsys.readouterr().out

    def test_unknown_flag_exits_one(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_setup_args(["--bogus"])
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "usage: setup-repos" in err
        assert "--bogus" in err

    def test_bad_choice_exits_one(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_setup_args(["--branch-mismatch", "sometimes"])
        assert exc_info.value.code == 1

    def test_add_branch_requires_branch(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_add_branch_args([])
        assert exc_info.value.code == 1


class TestSetupReposMain:
    """Test the setup-repos command."""

    def test_missing_list_file(self, in_plain_anchor, capsys):
        assert setup_repos_main([]) == 1
        assert "not found" in capsys.readouterr().err

    def test_nothing_to_do(self, in_anchor, write_list):
        write_list(in_anchor, "")
        assert setup_repos_main([]) == 0
        assert (in_anchor / "entire-project.code-workspace").exists()

    def test_failures_without_strict(self, in_plain_anchor, write_list):
        write_list(in_plain_anchor, "@release\n")
        assert setup_repos_main([]) == 0

    def test_failures_with_strict(self, in_plain_anchor, write_list):
        write_list(in_plain_anchor, "@release\n")
        assert setup_repos_main(["--strict"]) == 1

    def test_fail_fast(self, in_plain_anchor, write_list):
        write_list(in_plain_anchor, "@release\n")
        assert setup_repos_main(["--fail-fast"]) == 1

    def test_dry_run_writes_nothing(self, in_anchor, write_list):
        write_list(in_anchor, "@dev\n")
        assert setup_repos_main(["-n"]) == 0
        assert not (in_anchor / "entire-project.code-workspace").exists()
        assert not (in_anchor.parent / "Comp-dev").exists()

    def test_explicit_list_file(self, in_anchor, write_list):
        write_list(in_anchor, "", name="custom.list")
        assert setup_repos_main(["-f", "custom.list", "--no-workspace"]) == 0
        assert not (in_anchor / "entire-project.code-workspace").exists()

    def test_debug_trace_goes_to_stderr(self, in_anchor, write_list, capfd):
        write_list(in_anchor, "@dev\n")
        assert setup_repos_main(["-d", "-n"]) == 0

        out, err = capfd.readouterr()
        assert "Plan:" in err
        assert "@branch (worktree)" in err
        assert "Plan:" not in out
        assert "@branch (worktree)" not in out
        assert "Dry run" in out

    def test_debug_masks_token(self, in_anchor, write_list, monkeypatch, capsys):
        monkeypatch.setenv("GH_TOKEN", "supersecret")
        write_list(in_anchor, "")
        assert setup_repos_main(["-d", "-n"]) == 0

        err = capsys.readouterr().err
        assert "github_token: ***" in err
        assert "supersecret" not in err

    def test_debug_without_token(self, in_anchor, write_list, monkeypatch, capsys):
        for var in ("GH_TOKEN", "GITHUB_TOKEN", "GITHUB_PAT"):
            monkeypatch.delenv(var, raising=False)
        write_list(in_anchor, "")
        assert setup_repos_main(["-d", "-n"]) == 0
        assert "github_token: None" in capsys.readouterr().err

    def test_interrupt_exits_one(self, in_anchor, write_list, monkeypatch, capsys):
        def interrupted(self):
            raise KeyboardInterrupt

        monkeypatch.setattr(RepoSetup, "run", interrupted)
        write_list(in_anchor, "")
        assert setup_repos_main([]) == 1
        assert "Operation cancelled by user" in capsys.readouterr().err


class TestWorkspaceAddMain:
    """Test the workspace-add command."""

    def test_writes_folders_without_cloning(self, in_anchor, write_list):
        write_list(in_anchor, "SATVILab/Proj2\n@dev\n")
        assert workspace_add_main([]) == 0

        data = json.loads((in_anchor / "entire-project.code-workspace").read_text())
        assert data["folders"] == [{"path": "."}, {"path": "../Proj2"}, {"path": "../Proj2-dev"}]
        assert not (in_anchor.parent / "Proj2").exists()

    def test_custom_workspace_file(self, in_anchor, write_list):
        write_list(in_anchor, "")
        assert workspace_add_main(["-w", "mine.code-workspace"]) == 0
        assert (in_anchor / "mine.code-workspace").exists()


class TestRunPipelineMain:
    """Test the run-pipeline command."""

    def test_missing_workspace(self, in_plain_anchor, write_list, capsys):
        write_list(in_plain_anchor, "")
        assert run_pipeline_main(["-s", "--skip-deps"]) == 1
        assert "Workspace file" in capsys.readouterr().err

    def test_failing_script(self, in_plain_anchor, write_list):
        write_list(in_plain_anchor, "")
        (in_plain_anchor / "run.sh").write_text("#!/bin/sh\nexit 2\n")
        (in_plain_anchor / "entire-project.code-workspace").write_text('{"folders": [{"path": "."}]}')
        assert run_pipeline_main(["-s", "--skip-deps"]) == 1

    def test_excluded_script_is_not_run(self, in_plain_anchor, write_list):
        write_list(in_plain_anchor, "")
        (in_plain_anchor / "run.sh").write_text("#!/bin/sh\nexit 2\n")
        (in_plain_anchor / "entire-project.code-workspace").write_text('{"folders": [{"path": "."}]}')
        assert run_pipeline_main(["-s", "--skip-deps", "-e", "Comp"]) == 0


class TestAddBranchMain:
    """Test the add-branch command."""

    def test_add_branch(self, in_anchor):
        assert add_branch_main(["dev"]) == 0
        assert (in_anchor.parent / "Comp-dev").is_dir()
        assert (in_anchor / "repos.list").read_text() == "@dev\n"

    def test_not_a_repository(self, in_plain_anchor, capsys):
        assert add_branch_main(["dev"]) == 1
        assert "not a Git working tree" in capsys.readouterr().err
