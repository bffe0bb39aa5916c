"""
Tests for the CLI module (blueprint_tiler/cli.py).

These tests cover the command-line interface and the compose_blueprint function.
"""

import json
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from blueprint_tiler.cli import compose_blueprint, main, parse_row_rotation, setup_logging
from blueprint_tiler.src.blueprint.document import decode_blueprint_string, load_document
from blueprint_tiler.src.common.diagnostics import LayoutDiagnostics
from blueprint_tiler.src.composition.compositor import CompositionParams

SAMPLES = Path(__file__).parent / "sample_blueprints"


class TestComposeBlueprint:
    """Tests for the compose_blueprint function."""

    def test_single_cell_keeps_metadata(self):
        """A 1x1 composition keeps label, version and every entity."""
        document = load_document(SAMPLES / "smelter_unit.json", LayoutDiagnostics())
        composed = compose_blueprint(document, CompositionParams(rows=1, cols=1))
        body = composed["blueprint"]
        assert body["label"] == "Furnace cell"
        assert len(body["entities"]) == 10
        assert body["version"] == 562949954076673

    def test_missing_inserter_direction_is_filled(self):
        """Inserters without a direction are pointed at their furnace."""
        document = load_document(SAMPLES / "smelter_unit.json", LayoutDiagnostics())
        composed = compose_blueprint(document, CompositionParams(rows=1, cols=1))
        inserters = [e for e in composed["blueprint"]["entities"] if e["name"] == "inserter"]
        assert [e["direction"] for e in inserters] == [8, 8]

    def test_shared_edge(self):
        """Shared edges collapse the overlapping belt and wire the poles."""
        document = load_document(SAMPLES / "shared_belt_strip.json", LayoutDiagnostics())
        params = CompositionParams(rows=1, cols=2, spacing_x=0, share_x=True)
        body = compose_blueprint(document, params)["blueprint"]
        assert len(body["entities"]) == 5
        assert body["wires"] == [[2, 5, 4, 5]]


class TestParseRowRotation:
    """Tests for the --rotate-row callback."""

    def test_pairs(self):
        """ROW:STEPS pairs parse into a mapping."""
        assert parse_row_rotation(None, None, ("1:2", "3:1")) == {1: 2, 3: 1}

    def test_steps_default_to_zero(self):
        """A bare row number means zero extra turns."""
        assert parse_row_rotation(None, None, ("2",)) == {2: 0}

    def test_empty(self):
        """No values give an empty mapping."""
        assert parse_row_rotation(None, None, ()) == {}

    def test_invalid(self):
        """Non-numeric values are a usage error."""
        with pytest.raises(click.BadParameter):
            parse_row_rotation(None, None, ("one:two",))


class TestSetupLogging:
    """Tests for logging setup."""

    def test_valid_log_level(self):
        """Valid log levels don't raise."""
        for level in ["debug", "info", "warning", "error"]:
            setup_logging(level)  # Should not raise

    def test_invalid_log_level(self):
        """Invalid log level raises ValueError."""
        with pytest.raises(ValueError):
            setup_logging("invalid_level")


class TestCliMain:
    """Tests for the bptile command group."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_help(self, runner):
        """The group help lists every command."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("compose", "transform", "wire", "flow", "summary"):
            assert command in result.output

    def test_compose_to_file(self, runner, tmp_path):
        """compose writes a renumbered document to the output file."""
        out = tmp_path / "tiled.json"
        result = runner.invoke(
            main,
            [
                "compose",
                str(SAMPLES / "shared_belt_strip.json"),
                "--cols",
                "2",
                "--spacing-x",
                "0",
                "--share-x",
                "-o",
                str(out),
            ],
        )
        assert result.exit_code == 0, result.output
        body = json.loads(out.read_text())["blueprint"]
        assert len(body["entities"]) == 5
        assert [e["entity_number"] for e in body["entities"]] == [1, 2, 3, 4, 5]

    def test_compose_stdout_json(self, runner):
        """compose prints JSON to stdout by default."""
        result = runner.invoke(
            main, ["compose", str(SAMPLES / "smelter_unit.json"), "--rows", "2", "--cols", "3"]
        )
        assert result.exit_code == 0, result.output
        body = json.loads(result.stdout)["blueprint"]
        assert len(body["entities"]) == 60

    def test_compose_string_output(self, runner):
        """--string prints an exchange string."""
        result = runner.invoke(
            main, ["compose", str(SAMPLES / "shared_belt_strip.json"), "--cols", "2", "--string"]
        )
        assert result.exit_code == 0, result.output
        text = result.stdout.strip()
        assert text.startswith("0")
        assert len(decode_blueprint_string(text)["blueprint"]["entities"]) == 6

    def test_compose_row_options(self, runner, tmp_path):
        """Per-row flip and rotate options are accepted together."""
        out = tmp_path / "rows.json"
        result = runner.invoke(
            main,
            [
                "compose",
                str(SAMPLES / "shared_belt_strip.json"),
                "--rows",
                "3",
                "--flip-row",
                "1",
                "--rotate-row",
                "2:2",
                "--rotate-bottom",
                "-o",
                str(out),
            ],
        )
        assert result.exit_code == 0, result.output
        assert len(json.loads(out.read_text())["blueprint"]["entities"]) == 9

    def test_compose_rotate_out_of_range(self, runner):
        """--rotate outside 0..3 is a usage error."""
        result = runner.invoke(
            main, ["compose", str(SAMPLES / "shared_belt_strip.json"), "--rotate", "4"]
        )
        assert result.exit_code == 2

    def test_compose_bad_row_rotation(self, runner):
        """A malformed --rotate-row is a usage error."""
        result = runner.invoke(
            main, ["compose", str(SAMPLES / "shared_belt_strip.json"), "--rotate-row", "x:y"]
        )
        assert result.exit_code == 2

    def test_compose_empty_unit_fails(self, runner, tmp_path):
        """An empty unit exits with an error message."""
        unit = tmp_path / "empty.json"
        unit.write_text(json.dumps({"blueprint": {"entities": []}}))
        result = runner.invoke(main, ["compose", str(unit)])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_invalid_json_fails(self, runner, tmp_path):
        """Broken JSON exits with an error message."""
        unit = tmp_path / "broken.json"
        unit.write_text("{oops")
        result = runner.invoke(main, ["compose", str(unit)])
        assert result.exit_code == 1
        assert "Invalid blueprint JSON" in result.output

    def test_missing_file_fails(self, runner, tmp_path):
        """A missing input file is a usage error."""
        result = runner.invoke(main, ["compose", str(tmp_path / "nope.json")])
        assert result.exit_code == 2

    def test_transform(self, runner, tmp_path):
        """transform turns positions and directions and keeps numbers."""
        out = tmp_path / "turned.json"
        result = runner.invoke(
            main,
            ["transform", str(SAMPLES / "shared_belt_strip.json"), "--rotate", "1", "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        body = json.loads(out.read_text())["blueprint"]
        assert body["entities"][0]["position"] == {"x": -0.5, "y": 0.5}
        assert body["entities"][0]["direction"] == 12
        assert body["entities"][0]["entity_number"] == 1

    def test_transform_bare_document_stays_bare(self, runner, tmp_path):
        """A bare input document is written back bare."""
        out = tmp_path / "flipped.json"
        result = runner.invoke(
            main, ["transform", str(SAMPLES / "pole_line.json"), "--flip-x", "-o", str(out)]
        )
        assert result.exit_code == 0, result.output
        body = json.loads(out.read_text())
        assert "blueprint" not in body
        assert body["entities"][1]["position"] == {"x": -6.5, "y": 0.5}

    def test_transform_strip_numbers_remaps_wires(self, runner, tmp_path):
        """Stripping entity numbers rewrites the wires onto the new numbers."""
        unit = tmp_path / "poles.json"
        unit.write_text(
            json.dumps(
                {
                    "blueprint": {
                        "entities": [
                            {
                                "entity_number": 10,
                                "name": "small-electric-pole",
                                "position": {"x": 0.5, "y": 0.5},
                            },
                            {
                                "entity_number": 20,
                                "name": "small-electric-pole",
                                "position": {"x": 5.5, "y": 0.5},
                            },
                        ],
                        "wires": [[10, 5, 20, 5], [10, 5, 30, 5]],
                    }
                }
            )
        )
        out = tmp_path / "renumbered.json"
        result = runner.invoke(
            main,
            ["transform", str(unit), "--flip-x", "--strip-entity-numbers", "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        body = json.loads(out.read_text())["blueprint"]
        assert [e["entity_number"] for e in body["entities"]] == [1, 2]
        assert body["wires"] == [[1, 5, 2, 5]]

    def test_transform_keeps_wires_with_numbers(self, runner, tmp_path):
        """Without stripping, numbers and wires pass through untouched."""
        unit = tmp_path / "poles.json"
        unit.write_text(
            json.dumps(
                {
                    "blueprint": {
                        "entities": [
                            {
                                "entity_number": 10,
                                "name": "small-electric-pole",
                                "position": {"x": 0.5, "y": 0.5},
                            }
                        ],
                        "wires": [[10, 5, 10, 6]],
                    }
                }
            )
        )
        out = tmp_path / "turned.json"
        result = runner.invoke(main, ["transform", str(unit), "--rotate", "2", "-o", str(out)])
        assert result.exit_code == 0, result.output
        body = json.loads(out.read_text())["blueprint"]
        assert body["entities"][0]["entity_number"] == 10
        assert body["wires"] == [[10, 5, 10, 6]]

    def test_wire(self, runner, tmp_path):
        """wire connects the poles of a line."""
        out = tmp_path / "wired.json"
        result = runner.invoke(main, ["wire", str(SAMPLES / "pole_line.json"), "-o", str(out)])
        assert result.exit_code == 0, result.output
        body = json.loads(out.read_text())["blueprint"]
        assert body["wires"] == [[1, 5, 2, 5], [2, 5, 3, 5]]

    def test_wire_reach(self, runner, tmp_path):
        """A longer reach connects more distant poles."""
        out = tmp_path / "wired.json"
        result = runner.invoke(
            main, ["wire", str(SAMPLES / "pole_line.json"), "--reach", "10", "-o", str(out)]
        )
        assert result.exit_code == 0, result.output
        wires = json.loads(out.read_text())["blueprint"]["wires"]
        assert [1, 5, 4, 5] in wires

    def test_flow(self, runner, tmp_path):
        """flow reports the drain component and bottleneck."""
        out = tmp_path / "flow.json"
        result = runner.invoke(
            main,
            ["flow", str(SAMPLES / "smelter_unit.json"), "--required", "30", "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        report = json.loads(out.read_text())
        assert report["drainComponent"] == 1
        assert report["drainCapacityPerSecond"] == 30.0
        assert report["bottleneck"] is True

    def test_flow_per_minute(self, runner, tmp_path):
        """--per-minute converts the required rate to per second."""
        out = tmp_path / "flow.json"
        result = runner.invoke(
            main,
            [
                "flow",
                str(SAMPLES / "smelter_unit.json"),
                "--required",
                "900",
                "--per-minute",
                "-o",
                str(out),
            ],
        )
        assert result.exit_code == 0, result.output
        report = json.loads(out.read_text())
        assert report["requiredThroughputPerSecond"] == 15.0
        assert report["bottleneck"] is False

    def test_summary(self, runner):
        """summary prints role counts."""
        result = runner.invoke(main, ["summary", str(SAMPLES / "smelter_unit.json")])
        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert summary["total_entities"] == 10
        assert summary["unoriented_transfers"] == 1
        assert summary["transport"]["total"] == 6

    def test_tables_override(self, runner, tmp_path):
        """A tables file overrides belt speeds."""
        tables = tmp_path / "tables.json"
        tables.write_text(json.dumps({"speeds": {"fast-transport-belt": 10}}))
        out = tmp_path / "flow.json"
        result = runner.invoke(
            main,
            [
                "flow",
                str(SAMPLES / "smelter_unit.json"),
                "--tables",
                str(tables),
                "--required",
                "12",
                "-o",
                str(out),
            ],
        )
        assert result.exit_code == 0, result.output
        report = json.loads(out.read_text())
        assert report["drainCapacityPerSecond"] == 10.0
        assert report["bottleneck"] is True

    @pytest.mark.parametrize(
        "overrides",
        [
            {"sizes": {"pipe": 1}},
            {"speeds": {"transport-belt": "fast"}},
            {"transfer_types": "inserter"},
        ],
    )
    def test_bad_tables_entry_fails(self, runner, tmp_path, overrides):
        """A malformed tables entry exits with an error naming the table."""
        tables = tmp_path / "tables.json"
        tables.write_text(json.dumps(overrides))
        result = runner.invoke(
            main, ["compose", str(SAMPLES / "shared_belt_strip.json"), "--tables", str(tables)]
        )
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert next(iter(overrides)) in result.output

    def test_verbose_prints_diagnostics(self, runner, tmp_path):
        """Info logging prints the layout summary."""
        out = tmp_path / "tiled.json"
        result = runner.invoke(
            main,
            [
                "--log-level",
                "info",
                "compose",
                str(SAMPLES / "smelter_unit.json"),
                "-o",
                str(out),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Layout summary" in result.output
