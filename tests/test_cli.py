# tests/test_cli.py
"""CLI tests: exit codes and output."""

import json

import duckdb
import pytest
import yaml
from typer.testing import CliRunner

from dbsweep.cli.constants import (
    EXIT_CONFIG_ERROR,
    EXIT_FATAL_DISPATCH,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_SWEEP_FAILED,
)
from dbsweep.cli.main import app
from dbsweep.version import VERSION

from utils import DATABASES, QUERIES, read_lines

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path, warehouse, monkeypatch):
    for var in ("DBSWEEP_METASTORE", "DBSWEEP_FILESYSTEM", "DBSWEEP_OUTPUT_DIR", "DBSWEEP_PARALLELISM"):
        monkeypatch.delenv(var, raising=False)

    db_path = tmp_path / "meta.duckdb"
    con = duckdb.connect(str(db_path))
    con.execute("CREATE TABLE dbs (name VARCHAR, owner VARCHAR)")
    con.executemany("INSERT INTO dbs VALUES (?, ?)", [(d, "alice") for d in DATABASES])
    con.execute("CREATE TABLE locations (db VARCHAR, path VARCHAR)")
    con.executemany(
        "INSERT INTO locations VALUES (?, ?)",
        [(d, str(warehouse / f"{d}.db")) for d in DATABASES],
    )
    con.close()

    cfg = {
        "name": "cli-sweep",
        "metastore": f"duckdb://{db_path}",
        "filesystem": tmp_path.as_uri(),
        "output_dir": str(tmp_path / "reports"),
        "queries": QUERIES,
        "processes": [
            {
                "id": "hive",
                "db_listing_query": "db_listing",
                "paths_listing_query": "paths_listing",
                "checks": [{"kind": "path_exists"}],
            }
        ],
    }
    path = tmp_path / "sweep.yml"
    path.write_text(yaml.safe_dump(cfg))
    return path


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert VERSION in result.output


class TestRunCommand:
    def test_run_with_failing_check(self, config_file, tmp_path):
        result = runner.invoke(app, ["run", str(config_file)])

        # db3's directory is missing, but the sweep itself ran fine
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert len(read_lines(tmp_path / "reports" / "hive_error.md")) == 1

    def test_run_with_include_and_output_dir(self, config_file, tmp_path):
        out = tmp_path / "elsewhere"
        result = runner.invoke(
            app, ["run", str(config_file), "--include", "db[12]", "--output-dir", str(out), "-j", "1"]
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert read_lines(out / "hive_error.md") == []

    def test_run_with_db_override(self, config_file, tmp_path):
        result = runner.invoke(app, ["run", str(config_file), "--db", "db3"])

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert len(read_lines(tmp_path / "reports" / "hive_error.md")) == 1

    def test_json_output(self, config_file):
        result = runner.invoke(app, ["run", str(config_file), "--output-format", "json"])

        assert result.exit_code == EXIT_SUCCESS, result.output
        payload = json.loads(result.output)
        assert payload["ok"] is True
        assert payload["counters"]["hive"]["constructed"] == 3
        assert payload["dispatches"][0]["submitted"] == 3

    def test_test_sql(self, config_file):
        result = runner.invoke(app, ["run", str(config_file), "--test-sql"])

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "SQL test passed" in result.output

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["run", str(tmp_path / "nope.yml")])

        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_invalid_config(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("metastore: duckdb://:memory:\nprocesses: [{id: x}]\n")

        assert runner.invoke(app, ["run", str(path)]).exit_code == EXIT_CONFIG_ERROR

    def test_invalid_regex(self, config_file):
        result = runner.invoke(app, ["run", str(config_file), "--include", "("])

        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_fatal_dispatch(self, config_file, tmp_path, monkeypatch):
        monkeypatch.setenv("DBSWEEP_FILESYSTEM", (tmp_path / "gone").as_uri())
        result = runner.invoke(app, ["run", str(config_file)])

        assert result.exit_code == EXIT_FATAL_DISPATCH

    def test_listing_failure_is_fatal(self, config_file, tmp_path):
        cfg = yaml.safe_load(config_file.read_text())
        cfg["queries"]["db_listing"]["statement"] = "SELECT name FROM nowhere"
        config_file.write_text(yaml.safe_dump(cfg))

        assert runner.invoke(app, ["run", str(config_file)]).exit_code == EXIT_FATAL_DISPATCH

    def test_task_errors_exit_nonzero(self, config_file):
        cfg = yaml.safe_load(config_file.read_text())
        cfg["queries"]["paths_listing"]["statement"] = "SELECT path FROM nowhere WHERE db = :db"
        config_file.write_text(yaml.safe_dump(cfg))

        assert runner.invoke(app, ["run", str(config_file)]).exit_code == EXIT_SWEEP_FAILED

    def test_unsupported_metastore(self, config_file):
        cfg = yaml.safe_load(config_file.read_text())
        cfg["metastore"] = "mysql://host/db"
        config_file.write_text(yaml.safe_dump(cfg))

        assert runner.invoke(app, ["run", str(config_file)]).exit_code == EXIT_RUNTIME_ERROR


class TestConfigShow:
    def test_show_json(self, config_file):
        result = runner.invoke(app, ["config", "show", str(config_file), "--json"])

        assert result.exit_code == 0
        view = json.loads(result.output)
        assert view["name"] == "cli-sweep"
        assert view["processes"][0]["id"] == "hive"

    def test_show_missing(self, tmp_path):
        assert runner.invoke(app, ["config", "show", str(tmp_path / "x.yml")]).exit_code == EXIT_CONFIG_ERROR
