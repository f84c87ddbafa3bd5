"""
Tests for the command line interface.
"""

import json

import pytest
from rmscheck import __version__
from rmscheck.cli import EXIT_FAILURE, EXIT_OK, EXIT_PROBLEMS, main


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run from an empty directory so no stray config file is picked up."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("rmscheck.config.CONFIG_SEARCH_PATHS", [])
    monkeypatch.delenv("RMSCHECK_COMPATIBILITY", raising=False)
    monkeypatch.delenv("RMSCHECK_LINTS", raising=False)


def write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestCheckCommand:
    """Test `rmscheck check`."""

    def test_clean_file(self, tmp_path, sample_map, capsys):
        """A clean map prints nothing and exits 0."""
        path = write(tmp_path, "sample.rms", sample_map)
        assert main(["check", path]) == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_problems(self, tmp_path, capsys):
        """Problems are printed with their position and counted."""
        path = write(tmp_path, "bad.rms", "<PLAYER_SETUP>\n}\n")
        assert main(["check", path]) == EXIT_PROBLEMS
        out = capsys.readouterr().out
        assert f"{path}:2:1: error [syntax]: Unbalanced `}}`, nothing is open" in out
        assert "1 problems found (1 errors)" in out

    def test_json(self, tmp_path, capsys):
        """--json prints the files and warnings as JSON."""
        path = write(tmp_path, "bad.rms", "}")
        main(["check", "--json", path])
        data = json.loads(capsys.readouterr().out)
        assert data["files"] == [path]
        assert data["warnings"][0]["code"] == "syntax"

    def test_json_byte_offsets(self, tmp_path, capsys):
        """JSON ranges carry byte offsets next to the character offsets."""
        path = write(tmp_path, "bad.rms", "/* é */\n}")
        main(["check", "--json", path])
        warning = json.loads(capsys.readouterr().out)["warnings"][0]
        assert warning["location"] == {"file": 0, "start": 8, "end": 9}
        assert warning["range"]["byte_start"] == 9
        assert warning["range"]["byte_end"] == 10
        assert (warning["range"]["line"], warning["range"]["column"]) == (1, 0)

    def test_json_suggestion_range(self, tmp_path, capsys):
        """Suggestions in JSON output carry their own ranges."""
        path = write(tmp_path, "map.rms", "/* é */\n<PLAYER_SETUP>\nRANDOM_PLACEMENT\n")
        main(["check", "--json", path])
        warning = json.loads(capsys.readouterr().out)["warnings"][0]
        suggestion = warning["suggestions"][0]
        assert suggestion["replacement"]["text"] == "random_placement"
        assert suggestion["range"]["byte_start"] == 24
        assert suggestion["range"]["byte_end"] == 40

    def test_compatibility_option(self, tmp_path, capsys):
        """-c picks the target game version."""
        path = write(tmp_path, "map.rms", "<PLAYER_SETUP>\nnomad_resources\n")
        assert main(["check", path]) == EXIT_PROBLEMS
        assert main(["check", "-c", "up 1.4", path]) == EXIT_OK

    def test_builtin_option(self, tmp_path):
        """--builtin allows #include_drs."""
        path = write(tmp_path, "map.rms", "#include_drs random_map.def 54000\n")
        assert main(["check", path]) == EXIT_PROBLEMS
        assert main(["check", "--builtin", path]) == EXIT_OK

    def test_config_file(self, tmp_path):
        """--config loads lint settings from a YAML file."""
        config = write(tmp_path, "config.yaml", "lints: []\n")
        path = write(tmp_path, "map.rms", "<PLAYER_SETUP>\nnomad_resources\n")
        assert main(["check", path]) == EXIT_PROBLEMS
        assert main(["check", "--config", config, path]) == EXIT_OK

    def test_missing_file(self, tmp_path, capsys):
        """A missing file is a failure, not a crash."""
        assert main(["check", str(tmp_path / "nope.rms")]) == EXIT_FAILURE
        assert "Error:" in capsys.readouterr().err

    def test_bad_config(self, tmp_path, capsys):
        """An invalid config value is reported as a config error."""
        config = write(tmp_path, "config.yaml", "compatibility: nonsense\n")
        path = write(tmp_path, "map.rms", "")
        assert main(["check", "--config", config, path]) == EXIT_FAILURE
        assert "Config error" in capsys.readouterr().err


class TestParseCommand:
    """Test `rmscheck parse`."""

    def test_text(self, tmp_path, capsys):
        """Atoms are printed with their spans."""
        path = write(tmp_path, "map.rms", "create_terrain SNOW")
        assert main(["parse", path]) == EXIT_OK
        assert capsys.readouterr().out.strip() == "0..19 Command<create_terrain, SNOW>"

    def test_errors(self, tmp_path, capsys):
        """Parse errors are listed under their atom."""
        path = write(tmp_path, "map.rms", "#const A")
        assert main(["parse", path]) == EXIT_PROBLEMS
        assert "! Missing #const value" in capsys.readouterr().out

    def test_json(self, tmp_path, capsys):
        """--json dumps the atoms as JSON."""
        path = write(tmp_path, "map.rms", "{ }")
        main(["parse", "--json", path])
        data = json.loads(capsys.readouterr().out)
        assert [item["atom"]["_type"] for item in data] == ["open_block", "close_block"]


class TestFixCommand:
    """Test `rmscheck fix`."""

    def test_fix_in_place(self, tmp_path):
        """Safe fixes are written back to the file."""
        path = write(tmp_path, "map.rms", "<PLAYER_SETUP>\nRANDOM_PLACEMENT\n")
        assert main(["fix", path]) == EXIT_OK
        assert (tmp_path / "map.rms").read_text(encoding="utf-8") == "<PLAYER_SETUP>\nrandom_placement\n"

    def test_backup(self, tmp_path):
        """The original contents are kept next to the file."""
        path = write(tmp_path, "map.rms", "<PLAYER_SETUP>\nRANDOM_PLACEMENT\n")
        main(["fix", path])
        assert (tmp_path / "map.rms.bak").read_text(encoding="utf-8") == "<PLAYER_SETUP>\nRANDOM_PLACEMENT\n"
        assert not (tmp_path / "map.rms.tmp").exists()

    def test_no_backup(self, tmp_path):
        """--no-backup skips the .bak file."""
        path = write(tmp_path, "map.rms", "<PLAYER_SETUP>\nRANDOM_PLACEMENT\n")
        main(["fix", "--no-backup", path])
        assert not (tmp_path / "map.rms.bak").exists()

    def test_nothing_to_fix(self, tmp_path):
        """A file without fixes is left alone."""
        path = write(tmp_path, "map.rms", "<PLAYER_SETUP>\nrandom_placement\n")
        assert main(["fix", path]) == EXIT_OK
        assert not (tmp_path / "map.rms.bak").exists()

    def test_keeps_non_utf8_bytes(self, tmp_path):
        """Bytes outside the fixed spans are written back unchanged."""
        path = tmp_path / "map.rms"
        path.write_bytes("/* Carte d'été */\n<PLAYER_SETUP>\nRANDOM_PLACEMENT\n".encode("cp1252"))
        assert main(["fix", str(path)]) == EXIT_OK
        assert path.read_bytes() == b"/* Carte d'\xe9t\xe9 */\n<PLAYER_SETUP>\nrandom_placement\n"
        assert (tmp_path / "map.rms.bak").read_bytes() == \
            b"/* Carte d'\xe9t\xe9 */\n<PLAYER_SETUP>\nRANDOM_PLACEMENT\n"

    def test_dry_run(self, tmp_path, capsys):
        """--dry-run prints the fixed script and leaves the file alone."""
        path = write(tmp_path, "map.rms", "<PLAYER_SETUP>\nRANDOM_PLACEMENT\n")
        assert main(["fix", "--dry-run", path]) == EXIT_OK
        captured = capsys.readouterr()
        assert captured.out == "<PLAYER_SETUP>\nrandom_placement\n"
        assert "autofix 2:1 -> 2:17 to random_placement" in captured.err
        assert (tmp_path / "map.rms").read_text(encoding="utf-8") == "<PLAYER_SETUP>\nRANDOM_PLACEMENT\n"
        assert not (tmp_path / "map.rms.bak").exists()

    def test_remaining_problems(self, tmp_path, capsys):
        """Problems that cannot be fixed are reported afterwards."""
        path = write(tmp_path, "map.rms", "<PLAYER_SETUP>\n}\n")
        assert main(["fix", path]) == EXIT_PROBLEMS
        assert "Unbalanced" in capsys.readouterr().err


class TestFormatCommand:
    """Test `rmscheck format`."""

    def test_print(self, tmp_path, capsys):
        """The formatted script is printed."""
        path = write(tmp_path, "map.rms", "<PLAYER_SETUP> random_placement")
        assert main(["format", path]) == EXIT_OK
        assert capsys.readouterr().out == "<PLAYER_SETUP>\r\nrandom_placement\r\n"

    def test_inplace(self, tmp_path):
        """-i rewrites the file."""
        path = write(tmp_path, "map.rms", "create_land { base_size 10 }")
        assert main(["format", "-i", "--tabs", path]) == EXIT_OK
        assert (tmp_path / "map.rms").read_bytes() == b"create_land {\r\n\tbase_size 10\r\n}\r\n"

    def test_inplace_keeps_non_utf8_bytes(self, tmp_path):
        """Comments in other encodings survive formatting."""
        path = tmp_path / "map.rms"
        path.write_bytes("/* \xe9t\xe9 */ <PLAYER_SETUP>".encode("latin-1"))
        main(["format", "-i", str(path)])
        assert path.read_bytes() == b"/* \xe9t\xe9 */\r\n\r\n<PLAYER_SETUP>\r\n"

    def test_check(self, tmp_path, capsys):
        """--check reports whether the file needs formatting."""
        messy = write(tmp_path, "messy.rms", "<PLAYER_SETUP> random_placement")
        assert main(["format", "--check", messy]) == EXIT_PROBLEMS
        assert "needs formatting" in capsys.readouterr().out
        tidy = tmp_path / "tidy.rms"
        tidy.write_bytes(b"<PLAYER_SETUP>\r\nrandom_placement\r\n")
        assert main(["format", "--check", str(tidy)]) == EXIT_OK

    def test_config_options(self, tmp_path, capsys):
        """Formatter settings come from the config file, flags win."""
        config = write(tmp_path, "config.yaml", "tab_size: 4\nalign_arguments: false\n")
        path = write(tmp_path, "map.rms", "create_land { land_position 50 50 base_size 10 }")
        main(["format", "--config", config, path])
        assert capsys.readouterr().out == \
            "create_land {\r\n    land_position 50 50\r\n    base_size 10\r\n}\r\n"
        main(["format", "--config", config, "--tab-size", "1", path])
        assert capsys.readouterr().out.splitlines()[1] == " land_position 50 50"


class TestMain:
    """Test top-level options."""

    def test_no_command(self, capsys):
        """Without a command, help is printed."""
        assert main([]) == EXIT_OK
        assert "usage" in capsys.readouterr().out

    def test_version(self, capsys):
        """--version prints the package version."""
        with pytest.raises(SystemExit):
            main(["--version"])
        assert __version__ in capsys.readouterr().out


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
