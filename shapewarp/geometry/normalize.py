# SPDX-License-Identifier: Apache-2.0
"""Point set centering and scale normalization."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from shapewarp.exceptions import DegenerateShapeError
from shapewarp.record import Rect

# Below this the point set has no usable spread.
MIN_NORM = 1e-12


def full_point_set(points: np.ndarray, rect: Rect) -> np.ndarray:
    """Landmarks followed by the four corners of ``rect`` as anchor points."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return np.vstack([pts, rect.corners()])


def normalize_points(points: np.ndarray) -> Tuple[np.ndarray, np.ndarray, float]:
    """Center ``points`` on their centroid and scale them to unit norm.

    Parameters
    ----------
    points:
        ``(n, 2)`` array of image coordinates.

    Returns
    -------
    tuple
        ``(normalized, centroid, scale)`` where ``normalized`` has centroid
        ``(0, 0)`` and Frobenius norm 1, ``centroid`` is the mean point and
        ``scale`` the norm of the centered coordinates, so
        ``normalized * scale + centroid`` recovers the input.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) == 0:
        raise DegenerateShapeError("cannot normalize an empty point set")
    centroid = pts.mean(axis=0)
    centered = pts - centroid
    scale = float(np.linalg.norm(centered))
    if not np.isfinite(scale) or scale <= MIN_NORM:
        raise DegenerateShapeError(
            f"point set of {len(pts)} points has norm {scale:.3g} around its centroid"
        )
    return centered / scale, centroid, scale
