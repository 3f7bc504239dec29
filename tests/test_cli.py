"""Tests for the groupci command line."""

import pytest
from click.testing import CliRunner

from groupci.cli import cli
from groupci.loader import loads


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def passing_doc(write_doc):
    return write_doc(
        """
        version: "1.0"
        jobs:
          fmt:
            script: ["echo fmt >> log.txt"]
            group: fmt
          tests:
            script: ["echo tests >> log.txt"]
            group: check
        groups: [fmt, check]
        """
    )


def test_validate(runner, passing_doc):
    result = runner.invoke(cli, ["validate", "--file", str(passing_doc)])

    assert result.exit_code == 0
    assert "OK" in result.output
    assert "2 group(s), 2 job(s)" in result.output


def test_validate_from_env(runner, passing_doc):
    result = runner.invoke(cli, ["validate"], env={"GROUPCI_FILE": str(passing_doc)})

    assert result.exit_code == 0


def test_validate_default_file(runner, tmp_path, monkeypatch, sample_yaml):
    (tmp_path / "groupci.yml").write_text(sample_yaml)
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(cli, ["validate"], env={"GROUPCI_FILE": None})

    assert result.exit_code == 0
    assert "3 job(s)" in result.output


def test_no_document(runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(cli, ["validate"], env={"GROUPCI_FILE": None})

    assert result.exit_code == 1
    assert "No document found" in result.output


def test_unsupported_version(runner, write_doc, sample_yaml):
    path = write_doc(sample_yaml.replace('"1.0"', '"2.0"'))

    result = runner.invoke(cli, ["run", "--file", str(path)])

    assert result.exit_code == 1
    assert "Unsupported version" in result.output


def test_dangling_group(runner, write_doc):
    path = write_doc(
        """
        version: "1.0"
        jobs:
          lint:
            script: ["true"]
            group: check
        groups: [fmt]
        """
    )

    result = runner.invoke(cli, ["validate", "--file", str(path)])

    assert result.exit_code == 1
    assert "Unknown group" in result.output


def test_run_success(runner, passing_doc, tmp_path):
    result = runner.invoke(cli, ["run", "--file", str(passing_doc), "--cwd", str(tmp_path)])

    assert result.exit_code == 0
    assert "RESULTS" in result.output
    assert (tmp_path / "log.txt").read_text().split() == ["fmt", "tests"]


def test_run_failure_exit_code(runner, write_doc, tmp_path):
    path = write_doc(
        """
        version: "1.0"
        jobs:
          tests:
            script: ["exit 4", "touch never.txt"]
            group: check
        groups: [check]
        """
    )

    result = runner.invoke(cli, ["run", "--file", str(path), "--cwd", str(tmp_path)])

    assert result.exit_code == 4
    assert "Job failed" in result.output
    assert not (tmp_path / "never.txt").exists()


def test_run_dry_run(runner, passing_doc, tmp_path):
    result = runner.invoke(
        cli,
        ["run", "--file", str(passing_doc), "--cwd", str(tmp_path), "--dry-run", "--sequential"],
    )

    assert result.exit_code == 0
    assert not (tmp_path / "log.txt").exists()


def test_run_unknown_job(runner, passing_doc):
    result = runner.invoke(cli, ["run", "--file", str(passing_doc), "--job", "deploy"])

    assert result.exit_code == 1
    assert "Unknown job" in result.output


def test_plan(runner, passing_doc):
    result = runner.invoke(cli, ["plan", "--file", str(passing_doc)])

    assert result.exit_code == 0
    assert result.output.index("1. fmt") < result.output.index("2. check")


def test_show_round_trips(runner, passing_doc):
    result = runner.invoke(cli, ["show", "--file", str(passing_doc)])

    assert result.exit_code == 0
    doc = loads(result.output)
    assert list(doc.jobs) == ["fmt", "tests"]
    assert doc.groups == ("fmt", "check")


def test_run_workers_from_env(runner, passing_doc, tmp_path):
    result = runner.invoke(
        cli,
        ["run", "--file", str(passing_doc), "--cwd", str(tmp_path)],
        env={"GROUPCI_WORKERS": "1"},
    )

    assert result.exit_code == 0
    assert (tmp_path / "log.txt").read_text().split() == ["fmt", "tests"]


def test_run_rejects_bad_workers_env(runner, passing_doc, tmp_path):
    result = runner.invoke(
        cli,
        ["run", "--file", str(passing_doc), "--cwd", str(tmp_path)],
        env={"GROUPCI_WORKERS": "0"},
    )

    assert result.exit_code == 2
    assert not (tmp_path / "log.txt").exists()


def test_run_contradictory_selection(runner, passing_doc, tmp_path):
    result = runner.invoke(
        cli,
        ["run", "--file", str(passing_doc), "--cwd", str(tmp_path), "--group", "fmt", "--job", "tests"],
    )

    assert result.exit_code == 1
    assert "Empty selection" in result.output
    assert not (tmp_path / "log.txt").exists()
