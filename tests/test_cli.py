"""Tests for the cutsim-bench command line."""

import json

import pytest

from cutsim_bench.cli import main
from cutsim_bench.logging import disable_verbose


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every command in an empty project without a user config."""
    project = tmp_path / "project"
    (project / ".git").mkdir(parents=True)
    monkeypatch.chdir(project)
    monkeypatch.setattr("cutsim_bench.config.USER_CONFIG_PATH", tmp_path / "no-exist.toml")
    return project


class TestMain:
    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "cutsim-bench" in capsys.readouterr().out

    def test_missing_database_exit_code(self, tmp_path, capsys):
        assert main(["revisions", "--db", str(tmp_path / "missing.sqlite")]) == 2
        assert "Error: Benchmark database not found" in capsys.readouterr().err

    def test_verbose(self, sqlite_db, capsys):
        try:
            assert main(["-v", "compare", "--db", str(sqlite_db), "--format", "json"]) == 0
        finally:
            disable_verbose()
        assert "[INFO] Comparing r800001 against r800002" in capsys.readouterr().err


class TestRevisionsCommand:
    def test_plain(self, sqlite_db, capsys):
        assert main(["revisions", "--db", str(sqlite_db)]) == 0
        assert capsys.readouterr().out.split() == ["800001", "800002"]

    def test_floor(self, sqlite_db, capsys):
        assert main(["revisions", "--db", str(sqlite_db), "--floor", "0", "-f", "json"]) == 0
        assert json.loads(capsys.readouterr().out) == {"revisions": [700000, 800001, 800002]}

    def test_database_from_config(self, sqlite_db, isolated_config, capsys):
        (isolated_config / ".cutsim-bench.toml").write_text(
            f"[database]\npath = {json.dumps(str(sqlite_db))}\n"
        )
        assert main(["revisions"]) == 0
        assert capsys.readouterr().out.split() == ["800001", "800002"]


class TestCompareCommand:
    def test_json(self, sqlite_db, capsys):
        code = main(["compare", "--db", str(sqlite_db), "--sort", "name", "--format", "json"])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["low_revision"] == 800001
        assert data["sort"] == "name"
        assert [row["name"] for row in data["rows_by_category"]["ini"]] == [
            "face.ini",
            "pocket.ini",
        ]

    def test_table(self, sqlite_db, capsys):
        assert main(["compare", "--db", str(sqlite_db), "--category", "ini"]) == 0
        out = capsys.readouterr().out
        assert "r800001 vs r800002" in out
        assert "pocket.ini" in out
        assert "+25.0%" in out
        assert "?" in out
        assert "alpha.csb" not in out

    def test_table_details(self, sqlite_db, capsys):
        code = main(["compare", "--db", str(sqlite_db), "--category", "csb", "--details"])
        assert code == 0
        out = capsys.readouterr().out
        assert "25.00s" in out
        assert "110 MB" in out

    def test_unknown_sort_rejected(self, sqlite_db):
        with pytest.raises(SystemExit):
            main(["compare", "--db", str(sqlite_db), "--sort", "speed"])

    def test_revision_out_of_range(self, sqlite_db, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["compare", "--db", str(sqlite_db), "--r1", "99999999999999999999999"])
        assert exc_info.value.code == 2
        assert "revision out of range" in capsys.readouterr().err

    def test_bad_sort_in_config(self, sqlite_db, isolated_config, capsys):
        (isolated_config / ".cutsim-bench.toml").write_text('[report]\ndefault_sort = "speed"\n')
        assert main(["compare", "--db", str(sqlite_db)]) == 1
        assert "Unknown sort criterion" in capsys.readouterr().err

    def test_invalid_config(self, sqlite_db, isolated_config, capsys):
        (isolated_config / ".cutsim-bench.toml").write_text("not [ toml")
        assert main(["compare", "--db", str(sqlite_db)]) == 1
        assert "Invalid TOML" in capsys.readouterr().err


class TestSeriesCommand:
    def test_json(self, sqlite_db, capsys):
        assert main(["series", "alpha.csb", "--db", str(sqlite_db), "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["labels"] == [800001, 800002]
        assert [d["label"] for d in data["datasets"]] == ["Memory", "Run Time"]

    def test_table(self, sqlite_db, capsys):
        assert main(["series", "pocket.ini", "--db", str(sqlite_db)]) == 0
        out = capsys.readouterr().out
        assert "800002" in out
        assert "1.25x" in out

    def test_explicit_category(self, sqlite_db, capsys):
        argv = ["series", "%pocket%", "--category", "ini", "--format", "json"]
        code = main(argv + ["--db", str(sqlite_db)])
        assert code == 0
        assert json.loads(capsys.readouterr().out)["labels"] == [800001, 800002]

    def test_no_data(self, sqlite_db, capsys):
        assert main(["series", "missing.ini", "--db", str(sqlite_db)]) == 1
        assert "No data for missing.ini" in capsys.readouterr().err


class TestSummaryCommand:
    def test_json(self, sqlite_db, capsys):
        argv = ["summary", "ini_cut_time", "--r1", "800001", "--r2", "800002"]
        assert main(argv + ["--db", str(sqlite_db), "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [d["label"] for d in data["datasets"]] == ["face.ini", "old.ini", "pocket.ini"]
        assert "v" not in data["datasets"][0]["data"][0]

    def test_table(self, sqlite_db, capsys):
        argv = ["summary", "csb_play_time", "--r1", "800001", "--r2", "800002"]
        assert main(argv + ["--db", str(sqlite_db)]) == 0
        out = capsys.readouterr().out
        assert "beta.csb" in out
        assert "1.25x" in out

    def test_unknown_metric_key(self, sqlite_db):
        with pytest.raises(SystemExit):
            main(["summary", "ini_speed", "--r1", "1", "--r2", "2", "--db", str(sqlite_db)])


class TestConfigCommand:
    def test_show(self, capsys):
        assert main(["config"]) == 0
        out = capsys.readouterr().out
        assert "[database]" in out
        assert 'path = "benchmarks.sqlite"  # from: default' in out

    def test_get(self, capsys):
        assert main(["config", "get", "server.port"]) == 0
        assert capsys.readouterr().out.strip() == "8000"

    def test_get_unknown(self, capsys):
        assert main(["config", "get", "server.colour"]) == 1
        assert "Unknown config key" in capsys.readouterr().err

    def test_init(self, isolated_config, capsys):
        assert main(["config", "--init"]) == 0
        created = isolated_config / ".cutsim-bench.toml"
        assert created.is_file()
        assert "[revisions]" in created.read_text()

        # A second init refuses to overwrite
        assert main(["config", "--init"]) == 1

    def test_paths(self, capsys):
        assert main(["config", "--paths"]) == 0
        assert "Project config search" in capsys.readouterr().out
