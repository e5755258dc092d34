# SPDX-License-Identifier: Apache-2.0
"""Mean shape training and orthogonal Procrustes alignment.

Every shape is the record's landmarks plus the four corners of its primary
bounding region, centered on its centroid and scaled to unit norm. Training
averages these shapes into a :class:`MeanShape`; alignment finds the rotation
``R`` minimizing ``||S R - mean||`` for a new normalized shape ``S``. The
rotation comes from the SVD of ``S^T mean`` with no reflection correction, so
symmetric or degenerate shapes can produce ``det(R) == -1``.
"""

from __future__ import annotations

import zipfile
from dataclasses import dataclass
from typing import ClassVar, Iterable, List

import numpy as np
from scipy.linalg import orthogonal_procrustes

from shapewarp.exceptions import (
    EmptyTrainingSetError,
    ModelFormatError,
    PointCountMismatchError,
)
from shapewarp.geometry.normalize import full_point_set, normalize_points
from shapewarp.logging_utils import get_logger
from shapewarp.record import AlignmentParameters, Record
from shapewarp.utils.io import PathOrFile, load_npz, save_npz

LOGGER = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class MeanShape:
    """Read-only ``(point_count, 2)`` reference shape in normalized space."""

    points: np.ndarray

    FORMAT_VERSION: ClassVar[int] = 1

    def __post_init__(self) -> None:
        pts = np.array(self.points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise ValueError(f"mean shape must be (n, 2), got {pts.shape}")
        pts.flags.writeable = False
        object.__setattr__(self, "points", pts)

    @property
    def point_count(self) -> int:
        return int(self.points.shape[0])

    def store(self, target: PathOrFile) -> None:
        """Write the shape as version, rows, cols and row-major values."""
        rows, cols = self.points.shape
        save_npz(
            target,
            format_version=np.array(self.FORMAT_VERSION),
            rows=np.array(rows),
            cols=np.array(cols),
            values=self.points.ravel(),
        )

    @classmethod
    def load(cls, source: PathOrFile) -> "MeanShape":
        try:
            data = load_npz(source)
        except FileNotFoundError:
            raise
        except (OSError, EOFError, ValueError, zipfile.BadZipFile) as exc:
            raise ModelFormatError(f"unable to read mean shape: {exc}") from exc
        missing = {"format_version", "rows", "cols", "values"} - data.keys()
        if missing:
            raise ModelFormatError(f"mean shape archive lacks {sorted(missing)}")
        version = int(data["format_version"])
        if version != cls.FORMAT_VERSION:
            raise ModelFormatError(
                f"unsupported mean shape format {version}, expected {cls.FORMAT_VERSION}"
            )
        rows, cols = int(data["rows"]), int(data["cols"])
        values = np.asarray(data["values"], dtype=np.float64).ravel()
        if cols != 2 or rows * cols != values.size:
            raise ModelFormatError(
                f"mean shape header {rows}x{cols} does not match {values.size} values"
            )
        return cls(values.reshape(rows, cols))


def _shape_of(record: Record) -> np.ndarray | None:
    rect = record.bounding_rect
    if len(record.points) == 0 or rect is None:
        return None
    return full_point_set(record.points, rect)


def train_mean_shape(records: Iterable[Record]) -> MeanShape:
    """Average the normalized shapes of every record with points and a rect.

    Raises
    ------
    EmptyTrainingSetError
        No record carried both landmarks and a bounding region.
    PointCountMismatchError
        The usable records do not share one point count.
    DegenerateShapeError
        A shape has all of its points coincident.
    """
    shapes: List[np.ndarray] = []
    for record in records:
        points = _shape_of(record)
        if points is None:
            LOGGER.debug("training_record_skipped", record=record.name)
            continue
        if shapes and len(points) != len(shapes[0]):
            raise PointCountMismatchError(len(shapes[0]), len(points), record.name)
        normalized, _, _ = normalize_points(points)
        shapes.append(normalized)

    if not shapes:
        raise EmptyTrainingSetError(
            "unable to calculate normalized points: no record has both landmarks and a bounding rect"
        )

    mean = np.mean(np.stack(shapes), axis=0)
    LOGGER.info("mean_shape_trained", records=len(shapes), points=len(mean))
    return MeanShape(mean)


class ShapeAligner:
    """Rotate records onto a trained :class:`MeanShape`.

    ``warp`` additionally attaches the rotated, normalized shape to each
    record as ``aligned_points``. The record's ``points`` stay in image space
    so the mesher still triangulates the source landmarks.
    """

    def __init__(self, mean_shape: MeanShape, warp: bool = True):
        self.mean_shape = mean_shape
        self.warp = warp

    @classmethod
    def train(cls, records: Iterable[Record], warp: bool = True) -> "ShapeAligner":
        return cls(train_mean_shape(records), warp=warp)

    @classmethod
    def load(cls, source: PathOrFile, warp: bool = True) -> "ShapeAligner":
        return cls(MeanShape.load(source), warp=warp)

    def store(self, target: PathOrFile) -> None:
        self.mean_shape.store(target)

    def rotation_for(self, normalized: np.ndarray) -> np.ndarray:
        """Rotation ``R = U V^T`` from the SVD of ``normalized^T mean``."""
        rotation, _ = orthogonal_procrustes(normalized, self.mean_shape.points)
        return rotation

    def align(self, record: Record) -> Record:
        points = _shape_of(record)
        if points is None:
            LOGGER.warning(
                "procrustes_skipped",
                record=record.name,
                reason="points or rects are empty",
            )
            return record
        if len(points) != self.mean_shape.point_count:
            LOGGER.warning(
                "procrustes_skipped",
                record=record.name,
                reason="point count differs from mean shape",
                expected=self.mean_shape.point_count,
                found=len(points),
            )
            return record

        normalized, centroid, norm = normalize_points(points)
        rotation = self.rotation_for(normalized)
        det = float(np.linalg.det(rotation))
        if det < 0:
            LOGGER.debug("improper_rotation", record=record.name, determinant=det)

        alignment = AlignmentParameters(
            rotation=rotation,
            mean_x=float(centroid[0]),
            mean_y=float(centroid[1]),
            norm=norm,
        )
        changes = {"alignment": alignment}
        if self.warp:
            changes["aligned_points"] = normalized @ rotation
        return record.evolve(**changes)
