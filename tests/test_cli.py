"""
Tests for the command-line interface.
"""

import json
import logging

import pytest
import yaml
from click.testing import CliRunner

from artresonance import __version__
from artresonance.cli import cli, read_csv
from artresonance.config import DEFAULT_CONFIG_NAME


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep user config files out of the tests and reset logging."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    yield
    logger = logging.getLogger("artresonance")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


@pytest.fixture
def runner():
    return CliRunner()


def write_csv(path, header=True):
    rows = ["x,y,label"] if header else []
    rows += ["0.0,0.1,a", "0.1,0.0,a", "0.9,1.0,b", "1.0,0.9,b", "0.05,0.05,a", "0.95,0.95,b"]
    path.write_text("\n".join(rows) + "\n")
    return path


class TestReadCsv:
    """Tests for CSV loading."""

    def test_header_and_label(self, tmp_path):
        """Test header detection and label splitting."""
        data, labels = read_csv(write_csv(tmp_path / "d.csv"), "label")
        assert data.shape == (6, 2)
        assert labels[:2] == ["a", "a"]

    def test_index_label(self, tmp_path):
        """Test a negative label index."""
        data, labels = read_csv(write_csv(tmp_path / "d.csv", header=False), "-1")
        assert data.shape == (6, 2)
        assert labels[-1] == "b"

    def test_numeric_only(self, tmp_path):
        """Test unlabelled numeric data."""
        path = tmp_path / "n.csv"
        path.write_text("1,2\n3,4\n")
        data, labels = read_csv(path)
        assert labels is None
        assert data.tolist() == [[1.0, 2.0], [3.0, 4.0]]


class TestCli:
    """Tests for CLI commands."""

    def test_version(self, runner):
        """Test --version."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_cluster(self, runner, tmp_path):
        """Test clustering a CSV."""
        path = tmp_path / "n.csv"
        path.write_text("0.0,0.1\n0.1,0.0\n0.9,1.0\n1.0,0.9\n")
        result = runner.invoke(cli, ["cluster", str(path), "--vigilance", "0.8"], obj={})
        assert result.exit_code == 0, result.output
        assert "4 patterns -> 2 categories" in result.output

    def test_cluster_bad_vigilance(self, runner, tmp_path):
        """Test an invalid override is reported, not raised."""
        path = tmp_path / "n.csv"
        path.write_text("0.0,0.1\n")
        result = runner.invoke(cli, ["cluster", str(path), "--vigilance", "2"], obj={})
        assert result.exit_code == 1
        assert "vigilance" in result.output

    def test_classify(self, runner, tmp_path):
        """Test training and scoring a classifier."""
        path = write_csv(tmp_path / "d.csv")
        result = runner.invoke(cli, ["classify", str(path), "--label-column", "label",
                                     "--test-fraction", "0.0"], obj={})
        assert result.exit_code == 0, result.output
        assert "Training accuracy" in result.output
        assert "1.000" in result.output

    def test_config_init_and_show(self, runner):
        """Test writing and showing a config file."""
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["config", "init"])
            assert result.exit_code == 0
            with open(DEFAULT_CONFIG_NAME) as f:
                assert yaml.safe_load(f)["vigilance"] == 0.75

            result = runner.invoke(cli, ["config", "show", "--path", DEFAULT_CONFIG_NAME])
            assert result.exit_code == 0
            assert "vigilance" in result.output

    def test_config_init_keeps_existing(self, runner):
        """Test declining to overwrite an existing file."""
        with runner.isolated_filesystem():
            with open(DEFAULT_CONFIG_NAME, "w") as f:
                f.write("vigilance: 0.3\n")
            result = runner.invoke(cli, ["config", "init"], input="n\n")
            assert "Aborted" in result.output
            with open(DEFAULT_CONFIG_NAME) as f:
                assert yaml.safe_load(f) == {"vigilance": 0.3}

    def test_config_validate(self, runner):
        """Test validating good and bad files."""
        with runner.isolated_filesystem():
            with open("good.yml", "w") as f:
                f.write("vigilance: 0.5\n")
            with open("bad.yml", "w") as f:
                f.write("vigilance: 5\nmax_categories: -1\n")

            result = runner.invoke(cli, ["config", "validate", "--path", "good.yml"])
            assert result.exit_code == 0
            assert "valid" in result.output

            result = runner.invoke(cli, ["config", "validate", "--path", "bad.yml"])
            assert result.exit_code == 1
            assert "max_categories" in result.output

    def test_classify_header_only(self, runner, tmp_path):
        """Test a CSV with a header but no data rows."""
        path = tmp_path / "empty.csv"
        path.write_text("a,b,label\n")
        result = runner.invoke(cli, ["classify", str(path)], obj={})
        assert result.exit_code == 1
        assert not isinstance(result.exception, IndexError)
        assert "no data rows" in result.output

    def test_cluster_wrong_type_in_config(self, runner, tmp_path):
        """Test a mistyped config value is reported cleanly."""
        data = tmp_path / "n.csv"
        data.write_text("0.0,0.1\n")
        config = tmp_path / "c.yml"
        config.write_text("vigilance: high\n")
        result = runner.invoke(cli, ["cluster", str(data), "--config", str(config)], obj={})
        assert result.exit_code == 1
        assert "vigilance must be a number" in result.output

        result = runner.invoke(cli, ["config", "validate", "--path", str(config)])
        assert result.exit_code == 1
        assert "vigilance must be a number" in result.output

    def test_log_dir_writes_json(self, runner, tmp_path):
        """Test --log-dir writes structured logs."""
        path = tmp_path / "n.csv"
        path.write_text("0.0,0.1\n0.9,1.0\n")
        logs = tmp_path / "logs"
        result = runner.invoke(cli, ["--log-dir", str(logs), "cluster", str(path)], obj={})
        assert result.exit_code == 0, result.output

        for handler in logging.getLogger("artresonance").handlers:
            handler.flush()
        files = list(logs.glob("artresonance_*.jsonl"))
        assert len(files) == 1
        records = [json.loads(line) for line in files[0].read_text().splitlines()]
        assert any(r.get("operation") == "cluster" for r in records)
