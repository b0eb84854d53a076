"""
test_cli.py - End-to-end tests for the typer CLI.

Assertions are made on exit codes and on the index file written to disk.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

# Allow running from repo root without installing the package.
sys.path.insert(0, str(Path(__file__).parent.parent))

from scoping_tags.cli import app

runner = CliRunner()


@pytest.fixture()
def project(tmp_path) -> Path:
    (tmp_path / "main.ts").write_text("function main() {}\n", encoding="utf-8")
    (tmp_path / "solver.f90").write_text("program solver\nend program solver\n", encoding="utf-8")
    return tmp_path


def _languages(root: Path) -> dict[str, str]:
    data = json.loads((root / "scoping-tags.json").read_text(encoding="utf-8"))
    return {Path(e["filePath"]).name: e["language"] for e in data}


class TestScan:

    def test_scan_writes_index(self, project):
        result = runner.invoke(app, ["scan", str(project)])
        assert result.exit_code == 0, result.output
        assert _languages(project) == {"main.ts": "typescript", "solver.f90": "fortran"}

    def test_scan_summary_json(self, project):
        result = runner.invoke(app, ["scan", str(project)])
        summary = json.loads(result.stdout)
        assert summary["mode"] == "full"
        assert summary["entries"] == 2
        assert summary["tags"] == 2

    def test_scan_humanized(self, project):
        result = runner.invoke(app, ["scan", str(project), "--humanize"])
        assert result.exit_code == 0, result.output
        assert (project / "scoping-tags.json").exists()

    def test_lang_subset(self, project):
        result = runner.invoke(app, ["scan", str(project), "--lang", "fortran"])
        assert result.exit_code == 0, result.output
        assert _languages(project) == {"solver.f90": "fortran"}

    def test_unknown_lang_fails(self, project):
        result = runner.invoke(app, ["scan", str(project), "--lang", "cobol"])
        assert result.exit_code == 1
        assert not (project / "scoping-tags.json").exists()

    def test_auto_detect(self, tmp_path):
        (tmp_path / "only.f90").write_text("module m\nend module m\n", encoding="utf-8")
        result = runner.invoke(app, ["scan", str(tmp_path), "--lang", "auto"])
        assert result.exit_code == 0, result.output
        assert _languages(tmp_path) == {"only.f90": "fortran"}

    def test_detect_with_nothing_found_fails(self, tmp_path):
        (tmp_path / "notes.txt").write_text("hi\n", encoding="utf-8")
        result = runner.invoke(app, ["scan", str(tmp_path), "--detect"])
        assert result.exit_code == 1

    def test_not_a_directory(self, project):
        result = runner.invoke(app, ["scan", str(project / "main.ts")])
        assert result.exit_code == 1

    def test_config_languages(self, project, tmp_path_factory):
        cfg = tmp_path_factory.mktemp("cfg") / "config.json"
        cfg.write_text(json.dumps({"languages": ["typescript"]}), encoding="utf-8")
        result = runner.invoke(app, ["scan", str(project), "--config", str(cfg)])
        assert result.exit_code == 0, result.output
        assert _languages(project) == {"main.ts": "typescript"}

    def test_missing_config_uses_defaults(self, project):
        result = runner.invoke(app, ["scan", str(project), "--config", str(project / "nope.json")])
        assert result.exit_code == 0, result.output
        assert len(_languages(project)) == 2

    def test_invalid_config_fails(self, project, tmp_path_factory):
        cfg = tmp_path_factory.mktemp("cfg") / "config.json"
        cfg.write_text(json.dumps({"languages": 5}), encoding="utf-8")
        result = runner.invoke(app, ["scan", str(project), "--config", str(cfg)])
        assert result.exit_code == 1


class TestUpdate:

    def test_update_records_tombstone(self, project):
        assert runner.invoke(app, ["scan", str(project)]).exit_code == 0
        (project / "main.ts").write_text("// gone\n", encoding="utf-8")

        result = runner.invoke(app, ["update", "main.ts", "--root", str(project)])
        assert result.exit_code == 0, result.output
        assert _languages(project) == {"main.ts": "unknown", "solver.f90": "fortran"}

    def test_update_with_detect_limits_languages(self, tmp_path):
        (tmp_path / "solver.f90").write_text("program solver\nend program solver\n", encoding="utf-8")
        (tmp_path / "dist").mkdir()
        (tmp_path / "dist" / "extra.ts").write_text("function extra() {}\n", encoding="utf-8")

        result = runner.invoke(
            app, ["update", "dist/extra.ts", "solver.f90", "--root", str(tmp_path), "--detect"],
        )
        assert result.exit_code == 0, result.output
        assert _languages(tmp_path) == {"solver.f90": "fortran"}

    def test_update_skips_unsupported(self, project):
        (project / "README.txt").write_text("x\n", encoding="utf-8")
        result = runner.invoke(app, ["update", "README.txt", "solver.f90", "--root", str(project)])
        assert result.exit_code == 0, result.output
        assert _languages(project) == {"solver.f90": "fortran"}


class TestLanguages:

    def test_lists_registered_languages(self):
        result = runner.invoke(app, ["languages"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        names = [entry["language"] for entry in data["languages"]]
        assert names == ["typescript", "fortran"]
        assert ".f90" in data["languages"][1]["extensions"]
