# SPDX-License-Identifier: Apache-2.0
"""Errors raised by shapewarp.

Per-record problems at inference time (missing landmarks, vertices outside
the image) are not exceptions: the affected record is passed through
unchanged and a warning is logged. Everything here aborts the run.
"""

from __future__ import annotations


class ShapeWarpError(Exception):
    """Base class for all shapewarp errors."""


class EmptyTrainingSetError(ShapeWarpError, ValueError):
    """No training record carried both landmarks and a bounding region."""


class DegenerateShapeError(ShapeWarpError, ValueError):
    """A point set has zero (or numerically zero) spread around its centroid."""


class PointCountMismatchError(ShapeWarpError, ValueError):
    """Training shapes do not all have the same number of points."""

    def __init__(self, expected: int, found: int, name: str | None = None):
        where = f" in record {name!r}" if name else ""
        super().__init__(
            f"expected {expected} points (landmarks + 4 anchors), found {found}{where}"
        )
        self.expected = expected
        self.found = found


class MissingAlignmentError(ShapeWarpError, RuntimeError):
    """A mesh warp was requested on a record without alignment parameters."""


class MeshContractError(ShapeWarpError, ValueError):
    """A flat triangle vertex list is not grouped in threes."""


class ModelFormatError(ShapeWarpError, ValueError):
    """A persisted mean shape cannot be read back."""
