#!/usr/bin/env python3
"""
End-to-end tests for the blueprint tiler.
Tests the complete pipeline using sample blueprints: Document -> Entities -> Composition -> Repair/Wiring -> Document -> Flow
"""

import glob
from pathlib import Path

import pytest

from blueprint_tiler.src.blueprint import (
    build_document,
    encode_blueprint_string,
    load_document,
    loads_document,
)
from blueprint_tiler.src.common import LayoutDiagnostics
from blueprint_tiler.src.composition import CompositionParams, TileCompositor
from blueprint_tiler.src.flow import analyze_flow

SAMPLE_DIR = Path(__file__).parent / "sample_blueprints"
sample_files = sorted(glob.glob(str(SAMPLE_DIR / "*.json")))


class TestEndToEndComposition:
    """End-to-end composition tests using sample blueprints."""

    def _run_full_pipeline(self, path, params):
        diagnostics = LayoutDiagnostics()
        document = load_document(Path(path), diagnostics)
        result = TileCompositor(diagnostics=diagnostics).compose(document.entities, params)
        output = build_document(result.entities, document.metadata, result.wire_tuples())
        return document, result, output, diagnostics

    @pytest.mark.parametrize("path", sample_files, ids=lambda p: Path(p).stem)
    def test_sample_composes(self, path):
        """Every sample tiles 2x2 without errors and with sequential numbers."""
        document, result, output, diagnostics = self._run_full_pipeline(
            path, CompositionParams(rows=2, cols=2)
        )
        assert len(result.entities) == 4 * len(document.entities)
        assert not diagnostics.has_errors()
        numbers = [e["entity_number"] for e in output["blueprint"]["entities"]]
        assert numbers == list(range(1, len(numbers) + 1))

    @pytest.mark.parametrize("path", sample_files, ids=lambda p: Path(p).stem)
    def test_sample_survives_exchange_string(self, path):
        """A composed sample reloads from its exchange string unchanged."""
        _, result, output, _ = self._run_full_pipeline(path, CompositionParams(rows=1, cols=2))
        reloaded = loads_document(encode_blueprint_string(output), LayoutDiagnostics())
        assert reloaded.entities == result.entities
        assert reloaded.metadata.get("wires", []) == result.wire_tuples()

    @pytest.mark.parametrize("path", sample_files, ids=lambda p: Path(p).stem)
    def test_single_cell_is_identity(self, path):
        """A 1x1 grid keeps every entity of an origin-aligned sample."""
        document, result, _, _ = self._run_full_pipeline(path, CompositionParams(rows=1, cols=1))
        # Samples are authored at the origin, so normalization is a no-op
        assert set(result.entities) >= {
            e for e in document.entities if e.orientation is not None or e.type != "inserter"
        }
        assert len(result.entities) == len(document.entities)

    def test_smelter_grid_wires_every_pole(self):
        """Every pole of a composed smelter grid gets at least one wire."""
        _, result, _, _ = self._run_full_pipeline(
            SAMPLE_DIR / "smelter_unit.json", CompositionParams(rows=2, cols=3)
        )
        pole_ids = {
            index + 1
            for index, entity in enumerate(result.entities)
            if entity.type == "small-electric-pole"
        }
        wired = {node for edge in result.wires for node in (edge.a, edge.b)}
        assert wired == pole_ids

    def test_smelter_grid_flow(self):
        """Each smelter cell contributes its own supply and drain belts."""
        _, result, _, _ = self._run_full_pipeline(
            SAMPLE_DIR / "smelter_unit.json", CompositionParams(rows=1, cols=3)
        )
        report = analyze_flow(result.entities, required_throughput=30)
        # Each cell has its own input and output belt
        assert len(report.components) == 6
        assert len(report.supply_components) == 3
        assert report.drain_capacity_per_second == 30.0
        assert report.bottleneck is True
