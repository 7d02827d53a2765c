"""Tests for the command line front end."""

import json
import struct

import pytest
import yaml

from cgalite.__main__ import main

FOOTPRINT = {"polygon": [[0, 0], [20, 0], [20, 30], [0, 30]]}


@pytest.fixture
def footprint_file(tmp_path):
    path = tmp_path / "lot.yaml"
    path.write_text(yaml.safe_dump(FOOTPRINT))
    return path


@pytest.fixture
def program_file(tmp_path):
    path = tmp_path / "tower.yaml"
    path.write_text(yaml.safe_dump({"name": "CLI Tower", "rules": [{"op": "extrude", "h": 12}]}))
    return path


class TestCheck:

    def test_ok(self, program_file, capsys):
        assert main(["check", str(program_file)]) == 0
        assert "OK: CLI Tower - 1 rule(s)" in capsys.readouterr().out

    def test_invalid(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("name: Bad\nrules:\n  - op: bogus\n")
        assert main(["check", str(path)]) == 1
        assert "invalid rule operation" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["check", str(tmp_path / "absent.yaml")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_sample(self, capsys):
        assert main(["check", "sample:tower"]) == 0
        assert "Simple Tower" in capsys.readouterr().out


class TestRun:

    def test_summary(self, program_file, footprint_file, capsys):
        assert main(["run", str(program_file), str(footprint_file)]) == 0
        out = capsys.readouterr().out
        assert "totalHeight: 12.00" in out
        assert "totalVolume: 7200.00" in out

    def test_json(self, program_file, footprint_file, capsys):
        assert main(["run", str(program_file), str(footprint_file), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["attributes"]["totalVolume"] == 7200

    def test_failure_exit_code(self, tmp_path, footprint_file, capsys):
        path = tmp_path / "offset.yaml"
        path.write_text(yaml.safe_dump({"name": "Shrink", "rules": [{"op": "offset", "d": 50}]}))
        assert main(["run", str(path), str(footprint_file)]) == 1
        assert "offset too large" in capsys.readouterr().err

    def test_unknown_sample(self, footprint_file, capsys):
        assert main(["run", "sample:pagoda", str(footprint_file)]) == 1
        assert "Unknown sample" in capsys.readouterr().err

    def test_stl_export(self, footprint_file, tmp_path, capsys):
        out = tmp_path / "tower.stl"
        assert main(["run", "sample:tower", str(footprint_file), "--stl", str(out)]) == 0
        data = out.read_bytes()
        assert struct.unpack('<I', data[80:84])[0] == 12
        assert "Exported 12 triangle(s)" in capsys.readouterr().out

    def test_config(self, tmp_path, footprint_file, capsys):
        program = tmp_path / "roof.yaml"
        program.write_text(yaml.safe_dump({"name": "Roof", "rules": [{"op": "roof", "kind": "flat"}]}))
        config = tmp_path / "engine.yaml"
        config.write_text("default_roof_pitch: 0\n")
        assert main(["run", str(program), str(footprint_file), "--config", str(config), "--json"]) == 0
        assert json.loads(capsys.readouterr().out)["attributes"]["roofHeight"] == 0


class TestSamples:

    def test_lists_samples(self, capsys):
        assert main(["samples"]) == 0
        out = capsys.readouterr().out
        assert "stepped_building" in out
        assert "Mixed Use Building" in out
