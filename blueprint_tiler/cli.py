#!/usr/bin/env python3
"""
bptile CLI - Command-line interface for the blueprint tiler.

This module provides the entry point for the 'bptile' command installed via pip.

Usage:
    bptile compose unit.json --rows 2 --cols 4 -o tiled.json   # Tile a unit
    bptile compose unit.json --rows 2 --cols 4 --share-y        # Share the middle belt
    bptile transform unit.json --rotate 1 --flip-x              # Turn a whole layout
    bptile wire layout.json                                     # Rebuild pole wiring
    bptile flow layout.json --required 30                       # Throughput report
    bptile summary layout.json                                  # Entity counts
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from blueprint_tiler.src.blueprint.document import (
    BlueprintDocument,
    build_document,
    encode_blueprint_string,
    load_document,
    remap_wires,
)
from blueprint_tiler.src.blueprint.summary import summarize_entities
from blueprint_tiler.src.common.constants import DEFAULT_CONFIG, TilerConfig
from blueprint_tiler.src.common.diagnostics import LayoutDiagnostics
from blueprint_tiler.src.common.exceptions import LayoutError
from blueprint_tiler.src.common.tables import DEFAULT_TABLES, EntityTables
from blueprint_tiler.src.composition.compositor import CompositionParams, TileCompositor
from blueprint_tiler.src.composition.transform import transform_layout
from blueprint_tiler.src.connectors.wire_builder import WireBuilder
from blueprint_tiler.src.flow.analyzer import FlowAnalyzer


def parse_row_rotation(ctx, param, value):
    """Parse repeated ``ROW:STEPS`` values into a mapping."""
    rotations: Dict[int, int] = {}
    for item in value or ():
        row, sep, steps = item.partition(":")
        try:
            rotations[int(row)] = int(steps) if sep else 0
        except ValueError:
            raise click.BadParameter(f"expected ROW:STEPS, got '{item}'")
    return rotations


def setup_logging(level: str) -> None:
    """Setup logging configuration."""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")
    logging.basicConfig(level=numeric_level, format="%(levelname)s: %(message)s")


def load_tables(
    tables_file: Optional[Path],
    diagnostics: LayoutDiagnostics,
    document: Optional[BlueprintDocument] = None,
    use_draftsman: bool = False,
) -> EntityTables:
    """Resolve the entity tables for one command."""
    tables = DEFAULT_TABLES
    if tables_file is not None:
        tables = EntityTables.from_json_file(tables_file, diagnostics)
    if use_draftsman and document is not None:
        tables = tables.with_draftsman_sizes(e.type for e in document.entities)
    return tables


def render_document(document: Dict[str, Any], as_string: bool) -> str:
    if as_string:
        return encode_blueprint_string(document)
    return json.dumps(document, indent=2)


def compose_blueprint(
    document: BlueprintDocument,
    params: CompositionParams,
    tables: EntityTables = DEFAULT_TABLES,
    diagnostics: Optional[LayoutDiagnostics] = None,
    config: TilerConfig = DEFAULT_CONFIG,
) -> Dict[str, Any]:
    """
    Compose a unit blueprint into a tiled blueprint document.

    Args:
        document: The unit blueprint
        params: Grid and transform parameters
        tables: Size/priority/speed/role tables
        diagnostics: Collector for warnings (malformed entities, unresolved
            transfer orientations, footprint overlaps)
        config: Pipeline configuration

    Returns:
        The composed ``{"blueprint": {...}}`` document
    """
    diagnostics = diagnostics or LayoutDiagnostics()
    result = TileCompositor(tables, diagnostics, config).compose(document.entities, params)
    return build_document(
        result.entities,
        document.metadata,
        result.wire_tuples(config.wire_port),
        config,
    )


def write_output(text: str, output: Optional[Path], verbose: bool) -> None:
    if output:
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(text + "\n", encoding="utf-8")
        except OSError as e:
            click.echo(f"Failed to write output file: {e}", err=True)
            sys.exit(1)
        if verbose:
            click.echo(f"Wrote {output}", err=True)
    else:
        click.echo(text)


def report_diagnostics(diagnostics: LayoutDiagnostics, verbose: bool) -> None:
    if verbose and diagnostics.diagnostics:
        click.echo(diagnostics.format_for_user(), err=True)


def _run(ctx: click.Context, action) -> None:
    """Run ``action`` and translate layout errors into a failing exit."""
    try:
        action()
    except LayoutError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def input_argument(func):
    return click.argument(
        "input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
    )(func)


def output_options(func):
    func = click.option(
        "--string",
        "as_string",
        is_flag=True,
        help="Emit a blueprint exchange string instead of JSON",
    )(func)
    func = click.option(
        "-o",
        "--output",
        type=click.Path(dir_okay=False, path_type=Path),
        help="Output file (default: stdout)",
    )(func)
    return func


def tables_option(func):
    func = click.option(
        "--draftsman-sizes",
        is_flag=True,
        help="Fill in missing entity sizes from draftsman prototype data",
    )(func)
    func = click.option(
        "--tables",
        "tables_file",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="JSON file overriding sizes/priorities/speeds/role lists",
    )(func)
    return func


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="warning",
    help="Set the logging level",
)
@click.pass_context
def main(ctx, log_level):
    """Tile, transform, wire and analyze Factorio blueprint layouts."""
    setup_logging(log_level)
    ctx.ensure_object(dict)
    verbose = log_level.lower() in ("debug", "info")
    ctx.obj["verbose"] = verbose
    ctx.obj["diagnostics"] = LayoutDiagnostics(verbose=verbose, debug=log_level.lower() == "debug")


@main.command()
@input_argument
@click.option("--rows", type=int, default=1, show_default=True, help="Grid rows")
@click.option("--cols", type=int, default=1, show_default=True, help="Grid columns")
@click.option("--spacing-x", type=float, default=1, show_default=True, help="Extra tiles between columns")
@click.option("--spacing-y", type=float, default=1, show_default=True, help="Extra tiles between rows")
@click.option("--rotate", type=click.IntRange(0, 3), default=0, help="Clockwise quarter turns")
@click.option("--flip-x", is_flag=True, help="Mirror the unit horizontally")
@click.option("--flip-y", is_flag=True, help="Mirror the unit vertically")
@click.option("--share-x", is_flag=True, help="Overlap adjacent columns by one tile")
@click.option("--share-y", is_flag=True, help="Overlap adjacent rows by one tile")
@click.option("--flip-row", type=int, multiple=True, help="Vertically flip this row (repeatable)")
@click.option(
    "--rotate-row",
    multiple=True,
    callback=parse_row_rotation,
    help="Extra quarter turns for a row as ROW:STEPS (repeatable)",
)
@click.option("--rotate-bottom", is_flag=True, help="Vertically flip the bottom half of the rows")
@click.option("--no-normalize", is_flag=True, help="Keep unit coordinates as-is")
@tables_option
@output_options
@click.pass_context
def compose(
    ctx,
    input_file,
    rows,
    cols,
    spacing_x,
    spacing_y,
    rotate,
    flip_x,
    flip_y,
    share_x,
    share_y,
    flip_row,
    rotate_row,
    rotate_bottom,
    no_normalize,
    tables_file,
    draftsman_sizes,
    output,
    as_string,
):
    """Tile a unit blueprint into a ROWS x COLS grid."""
    diagnostics: LayoutDiagnostics = ctx.obj["diagnostics"]
    verbose = ctx.obj["verbose"]

    def action():
        document = load_document(input_file, diagnostics)
        tables = load_tables(tables_file, diagnostics, document, draftsman_sizes)
        params = CompositionParams(
            rows=rows,
            cols=cols,
            spacing_x=spacing_x,
            spacing_y=spacing_y,
            rotate=rotate,
            flip_x=flip_x,
            flip_y=flip_y,
            share_x=share_x,
            share_y=share_y,
            per_row_flip=frozenset(flip_row),
            per_row_rotate=rotate_row,
            flip_bottom_half=rotate_bottom,
            normalize=not no_normalize,
        )
        composed = compose_blueprint(document, params, tables, diagnostics)
        write_output(render_document(composed, as_string), output, verbose)

    _run(ctx, action)
    report_diagnostics(diagnostics, verbose)


@main.command()
@input_argument
@click.option("--rotate", type=click.IntRange(0, 3), default=0, help="Clockwise quarter turns")
@click.option("--flip-x", is_flag=True, help="Mirror horizontally")
@click.option("--flip-y", is_flag=True, help="Mirror vertically")
@click.option(
    "--strip-entity-numbers",
    is_flag=True,
    help="Drop existing entity numbers and renumber sequentially",
)
@tables_option
@output_options
@click.pass_context
def transform(
    ctx,
    input_file,
    rotate,
    flip_x,
    flip_y,
    strip_entity_numbers,
    tables_file,
    draftsman_sizes,
    output,
    as_string,
):
    """Reflect and rotate a whole blueprint about its origin."""
    diagnostics: LayoutDiagnostics = ctx.obj["diagnostics"]
    verbose = ctx.obj["verbose"]

    def action():
        document = load_document(input_file, diagnostics)
        tables = load_tables(tables_file, diagnostics, document, draftsman_sizes)
        result = transform_layout(
            document.entities,
            rotate=rotate,
            flip_x=flip_x,
            flip_y=flip_y,
            strip_numbers=strip_entity_numbers,
            tables=tables,
            diagnostics=diagnostics,
        )
        wires = None
        if strip_entity_numbers and "wires" in document.metadata:
            number_map = {
                entity.extras["entity_number"]: index + 1
                for index, entity in enumerate(document.entities)
                if "entity_number" in entity.extras
            }
            wires = remap_wires(document.metadata["wires"], number_map, diagnostics)
        body = build_document(
            result.entities, document.metadata, wires, renumber=strip_entity_numbers
        )
        if not document.wrapped:
            body = body["blueprint"]
        write_output(render_document(body, as_string), output, verbose)

    _run(ctx, action)
    report_diagnostics(diagnostics, verbose)


@main.command()
@input_argument
@click.option(
    "--reach",
    type=float,
    default=DEFAULT_CONFIG.wire_reach,
    show_default=True,
    help="Maximum wire span in tiles",
)
@tables_option
@output_options
@click.pass_context
def wire(ctx, input_file, reach, tables_file, draftsman_sizes, output, as_string):
    """Rebuild distribution-node wiring for an existing blueprint."""
    diagnostics: LayoutDiagnostics = ctx.obj["diagnostics"]
    verbose = ctx.obj["verbose"]

    def action():
        document = load_document(input_file, diagnostics)
        tables = load_tables(tables_file, diagnostics, document, draftsman_sizes)
        edges = WireBuilder(tables).build(document.entities, reach=reach)
        wires = [edge.to_tuple(DEFAULT_CONFIG.wire_port) for edge in edges]
        body = build_document(document.entities, document.metadata, wires)
        write_output(render_document(body, as_string), output, verbose)

    _run(ctx, action)
    report_diagnostics(diagnostics, verbose)


@main.command()
@input_argument
@click.option(
    "--required",
    type=float,
    default=0.0,
    show_default=True,
    help="Required throughput in items per second",
)
@click.option("--per-minute", is_flag=True, help="Interpret --required as items per minute")
@tables_option
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file for the JSON report (default: stdout)",
)
@click.pass_context
def flow(ctx, input_file, required, per_minute, tables_file, draftsman_sizes, output):
    """Report transport components, lane capacity and bottlenecks."""
    diagnostics: LayoutDiagnostics = ctx.obj["diagnostics"]
    verbose = ctx.obj["verbose"]

    def action():
        document = load_document(input_file, diagnostics)
        tables = load_tables(tables_file, diagnostics, document, draftsman_sizes)
        required_per_second = required / 60.0 if per_minute else required
        report = FlowAnalyzer(tables, diagnostics).analyze(document.entities, required_per_second)
        payload = {"input_file": str(input_file), **report.to_dict()}
        write_output(json.dumps(payload, indent=2), output, verbose)

    _run(ctx, action)
    report_diagnostics(diagnostics, verbose)


@main.command()
@input_argument
@tables_option
@click.pass_context
def summary(ctx, input_file, tables_file, draftsman_sizes):
    """Count entities by type and role."""
    diagnostics: LayoutDiagnostics = ctx.obj["diagnostics"]

    def action():
        document = load_document(input_file, diagnostics)
        tables = load_tables(tables_file, diagnostics, document, draftsman_sizes)
        payload = {"input_file": str(input_file), **summarize_entities(document.entities, tables)}
        click.echo(json.dumps(payload, indent=2))

    _run(ctx, action)
    report_diagnostics(diagnostics, ctx.obj["verbose"])


if __name__ == "__main__":
    main()
