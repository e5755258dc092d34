# SPDX-License-Identifier: Apache-2.0
"""Delaunay triangulation of a record's landmarks and bounding-rect anchors."""

from __future__ import annotations

from typing import List

import cv2
import numpy as np

from shapewarp.geometry.normalize import full_point_set
from shapewarp.logging_utils import get_logger
from shapewarp.record import Mesh, Record, Triangle

LOGGER = get_logger(__name__)


def points_inside(points: np.ndarray, width: int, height: int) -> bool:
    """True when every point satisfies ``0 <= x < width`` and ``0 <= y < height``."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return bool(
        np.all(pts[:, 0] >= 0)
        and np.all(pts[:, 1] >= 0)
        and np.all(pts[:, 0] < width)
        and np.all(pts[:, 1] < height)
    )


def triangulate_points(points: np.ndarray, width: int, height: int) -> Mesh:
    """Triangulate ``points`` inside a ``width`` x ``height`` image.

    The points must already be strictly inside the image; ``Subdiv2D``
    rejects anything on or past the far edges. Triangles with a vertex
    outside ``[0, width] x [0, height]`` are dropped and the rest keep the
    order ``getTriangleList`` returns them in.
    """
    subdiv = cv2.Subdiv2D((0, 0, int(width), int(height)))
    for x, y in np.asarray(points, dtype=np.float64).reshape(-1, 2):
        subdiv.insert((float(x), float(y)))

    triangles: List[Triangle] = []
    for row in subdiv.getTriangleList():
        tri = Triangle.from_vertices(np.asarray(row).reshape(3, 2))
        if tri.is_within(width, height):
            triangles.append(tri)
    return Mesh(tuple(triangles))


class TriangleMesher:
    """Attach a Delaunay :class:`Mesh` to records.

    The mesh vertices are the landmarks followed by the four corners of the
    primary bounding rect. Records whose vertices are not all strictly inside
    the image are passed through unchanged with a warning.
    """

    def triangulate(self, record: Record) -> Record:
        rect = record.bounding_rect
        if len(record.points) == 0 or rect is None:
            LOGGER.warning(
                "delaunay_skipped",
                record=record.name,
                reason="points or rects are empty",
            )
            return record

        width, height = record.width, record.height
        points = full_point_set(record.points, rect)
        if not points_inside(points, width, height):
            LOGGER.warning(
                "delaunay_out_of_bounds",
                record=record.name,
                reason="points lie on or outside the image boundary",
                width=width,
                height=height,
            )
            return record

        mesh = triangulate_points(points, width, height)
        LOGGER.debug("delaunay_built", record=record.name, triangles=len(mesh))
        return record.evolve(mesh=mesh)
