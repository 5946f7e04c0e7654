"""
Tests for the command-line interface.
"""

import pytest

from scriptdata.cli import main


class TestLocate:
    """scriptdata locate"""

    def test_declaration(self, game_js_path, capsys):
        assert main(["locate", "AREAS", "--source", str(game_js_path)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("// var AREAS (line 13, ")
        assert "var AREAS = {" in out
        assert "AREA_LEVEL_RANGES" not in out

    def test_function(self, game_js_path, capsys):
        assert main(["locate", "xpForLevel", "-f", "-s", str(game_js_path)]) == 0
        out = capsys.readouterr().out
        assert "function xpForLevel(level)" in out

    def test_not_found(self, game_js_path, capsys):
        assert main(["locate", "NOPE", "-s", str(game_js_path)]) == 1
        assert capsys.readouterr().out == ""

    def test_missing_source(self, tmp_path):
        assert main(["locate", "AREAS", "-s", str(tmp_path / "missing.js")]) == 1


class TestAssemble:
    """scriptdata assemble"""

    def test_writes_artifact(self, game_js_path, output_dir, capsys):
        code = main(["assemble", "-s", str(game_js_path), "-o", str(output_dir)])
        out = capsys.readouterr().out
        assert code == 0
        assert (output_dir / "_debug_eval.js").exists()
        assert "Reference check: ok" in out
        assert "Missing: " in out


class TestExtract:
    """scriptdata extract"""

    def test_missing_source(self, tmp_path):
        code = main(["extract", "-s", str(tmp_path / "missing.js"), "-o", str(tmp_path / "out")])
        assert code == 1
        assert not (tmp_path / "out").exists()

    def test_bad_config_path(self, tmp_path):
        assert main(["-c", str(tmp_path / "nope.yaml"), "extract"]) == 1

    def test_extract_fixture(self, game_js_path, output_dir):
        pytest.importorskip("py_mini_racer")
        assert main(["-q", "extract", "-s", str(game_js_path), "-o", str(output_dir)]) == 0
        assert (output_dir / "items.json").exists()

    def test_evaluation_failure(self, tmp_path, output_dir, caplog):
        """A script that throws exits 1, logs the diagnostic and keeps the debug script."""
        pytest.importorskip("py_mini_racer")
        source = tmp_path / "game.js"
        source.write_text(
            "var AREAS = {\n  hub: { name: 'Hub', glow: fireHostEffect('spark') }\n};\n",
            encoding="utf-8",
        )

        code = main(["extract", "-s", str(source), "-o", str(output_dir), "-t", "20"])

        assert code == 1
        assert (output_dir / "_debug_eval.js").exists()
        assert [p.name for p in output_dir.iterdir()] == ["_debug_eval.js"]
        assert "Sandbox eval error near line 2" in caplog.text
        assert "fireHostEffect" in caplog.text
        assert "timed out" not in caplog.text
        assert "Debug script written to" in caplog.text

    def test_non_mapping_host_state(self, tmp_path, game_js_path, output_dir):
        config = tmp_path / "scriptdata.yaml"
        config.write_text("host_state: [1, 2]\n", encoding="utf-8")
        code = main(["-c", str(config), "assemble", "-s", str(game_js_path), "-o", str(output_dir)])
        assert code == 1


class TestInitConfig:
    """scriptdata init-config"""

    def test_writes_file(self, tmp_path, capsys):
        target = tmp_path / "scriptdata.yaml"
        assert main(["init-config", str(target)]) == 0
        assert target.exists()
        assert str(target) in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()
