# SPDX-License-Identifier: Apache-2.0
"""Landmark-driven shape alignment and piecewise affine image normalization."""

from __future__ import annotations

from shapewarp.exceptions import (
    DegenerateShapeError,
    EmptyTrainingSetError,
    MeshContractError,
    MissingAlignmentError,
    ModelFormatError,
    PointCountMismatchError,
    ShapeWarpError,
)
from shapewarp.geometry.delaunay import TriangleMesher
from shapewarp.geometry.normalize import full_point_set, normalize_points
from shapewarp.geometry.procrustes import MeanShape, ShapeAligner, train_mean_shape
from shapewarp.pipeline import LandmarkPipeline
from shapewarp.record import AlignmentParameters, Mesh, Record, Rect, Triangle
from shapewarp.viz.overlays import MeshRenderer, draw_mesh
from shapewarp.warp.piecewise import MeshWarp

__all__: list[str] = [
    "AlignmentParameters",
    "DegenerateShapeError",
    "EmptyTrainingSetError",
    "LandmarkPipeline",
    "MeanShape",
    "Mesh",
    "MeshContractError",
    "MeshRenderer",
    "MeshWarp",
    "MissingAlignmentError",
    "ModelFormatError",
    "PointCountMismatchError",
    "Record",
    "Rect",
    "ShapeAligner",
    "ShapeWarpError",
    "Triangle",
    "TriangleMesher",
    "draw_mesh",
    "full_point_set",
    "normalize_points",
    "train_mean_shape",
]
__version__ = "0.1.0"
