"""CLI entrypoints."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from .config import load_config
from .exceptions import ShapeWarpError
from .geometry.delaunay import TriangleMesher
from .geometry.procrustes import MeanShape, train_mean_shape
from .logging_utils import configure_logging
from .pipeline import LandmarkPipeline
from .record import Record
from .schemas import load_records
from .utils.io import ensure_dir, read_json, write_image, write_json
from .viz.overlays import MeshRenderer

app = typer.Typer()


def _setup(config_path: Optional[Path]):
    try:
        cfg = load_config(config_path)
    except ValidationError as exc:
        typer.echo(f"invalid configuration: {exc}", err=True)
        raise typer.Exit(code=1)
    configure_logging(cfg.logging.level, cfg.logging.json_logs)
    return cfg


@app.command()
def train(
    manifest: Path,
    model: Path = typer.Option(Path("models/mean_shape.npz"), help="Where to store the mean shape"),
    config: Optional[Path] = typer.Option(None, help="YAML config file"),
):
    """Train the mean shape from every record in MANIFEST."""
    _setup(config)
    try:
        mean_shape = train_mean_shape(load_records(manifest))
    except (ShapeWarpError, FileNotFoundError, ValidationError) as exc:
        typer.echo(f"training failed: {exc}", err=True)
        raise typer.Exit(code=1)
    mean_shape.store(model)
    typer.echo(f"Stored mean shape with {mean_shape.point_count} points in {model}")


@app.command()
def warp(
    manifest: Path,
    model: Path = typer.Option(Path("models/mean_shape.npz"), help="Trained mean shape"),
    out: Path = typer.Option(Path("outputs/warp"), help="Output directory"),
    scale_factor: Optional[float] = typer.Option(None, help="Output canvas scale"),
    no_warp: bool = typer.Option(False, "--no-warp", help="Only compute alignment and mesh"),
    config: Optional[Path] = typer.Option(None, help="YAML config file"),
):
    """Align, triangulate and warp every record in MANIFEST."""
    cfg = _setup(config)
    if scale_factor is not None:
        cfg.mesh.scale_factor = scale_factor
    if no_warp:
        cfg.align.warp = False
        cfg.mesh.warp = False
    try:
        pipeline = LandmarkPipeline.from_config(MeanShape.load(model), cfg)
        results = pipeline.process_many(load_records(manifest), workers=cfg.pipeline.workers)
    except (ShapeWarpError, FileNotFoundError, ValidationError) as exc:
        typer.echo(f"warp failed: {exc}", err=True)
        raise typer.Exit(code=1)
    ensure_dir(out)
    for record in results:
        write_image(out / f"{record.name}.png", record.image)
        write_json(out / f"{record.name}.json", record.to_metadata())
    typer.echo(f"Wrote {len(results)} records to {out}")


@app.command()
def draw(
    manifest: Path,
    out: Path = typer.Option(Path("outputs/mesh"), help="Output directory"),
    sidecars: Optional[Path] = typer.Option(
        None, help="Directory of warp sidecar JSON files to take the triangles from"
    ),
    config: Optional[Path] = typer.Option(None, help="YAML config file"),
):
    """Write the Delaunay mesh of every record in MANIFEST over its image.

    Without --sidecars the mesh is rebuilt from the manifest landmarks.
    """
    _setup(config)
    mesher = TriangleMesher()
    renderer = MeshRenderer()
    try:
        records = load_records(manifest)
        if sidecars is None:
            meshed = [mesher.triangulate(r) for r in records]
        else:
            meshed = [
                Record.from_metadata(r.image, read_json(sidecars / f"{r.name}.json"))
                for r in records
            ]
    except (ShapeWarpError, FileNotFoundError, ValueError) as exc:
        typer.echo(f"draw failed: {exc}", err=True)
        raise typer.Exit(code=1)
    ensure_dir(out)
    for record in meshed:
        drawn = renderer.render(record)
        write_image(out / f"{drawn.name}.png", drawn.image)
    typer.echo(f"Wrote {len(records)} overlays to {out}")


def main() -> None:  # pragma: no cover - CLI entry
    app()
