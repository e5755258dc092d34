# SPDX-License-Identifier: Apache-2.0
"""Piecewise affine warp of a record into the canonical mean-shape frame.

Each mesh triangle is mapped into the aligned frame, scaled by
``scale_factor`` and centered on the output canvas. The source image is
resampled through the per-triangle affine map and the triangle patches are
composited with a first-writer-wins rule: a pixel already written by an
earlier triangle is never overwritten by a later one. Mesh order therefore
decides which triangle owns a pixel where destination triangles overlap.
"""

from __future__ import annotations

from typing import List

import cv2
import numpy as np

from shapewarp.exceptions import MissingAlignmentError
from shapewarp.logging_utils import get_logger
from shapewarp.record import AlignmentParameters, Record, Rect, Triangle
from shapewarp.utils.geometry import (
    affine_between,
    triangle_area,
    triangle_mask,
    written_pixels,
)

LOGGER = get_logger(__name__)


def canonical_triangle(triangle: Triangle, alignment: AlignmentParameters) -> np.ndarray:
    """Triangle vertices in the normalized, rotated mean-shape frame."""
    return alignment.to_canonical(triangle.vertices())


def destination_triangle(
    triangle: Triangle,
    alignment: AlignmentParameters,
    scale_factor: float,
    width: int,
    height: int,
) -> np.ndarray:
    """Output pixel coordinates of ``triangle`` on a ``width`` x ``height`` canvas."""
    offset = np.array([width // 2, height // 2], dtype=np.float64)
    dst = canonical_triangle(triangle, alignment) * scale_factor + offset
    return dst.astype(np.float32)


def composite_triangle(
    output: np.ndarray,
    source: np.ndarray,
    src: np.ndarray,
    dst: np.ndarray,
) -> np.ndarray:
    """Resample ``source`` into triangle ``dst`` and add it to ``output``.

    Pixels of ``output`` that are already non-zero are left alone.
    """
    height, width = source.shape[:2]
    buffer = cv2.warpAffine(source, affine_between(src, dst), (width, height))
    mask = triangle_mask(source.shape, dst)
    mask[written_pixels(output)] = 0
    patch = cv2.bitwise_and(buffer, buffer, mask=mask)
    return cv2.add(output, patch)


class MeshWarp:
    """Resample records through their mesh into the aligned frame.

    With ``warp`` disabled the record keeps its original image and only the
    mesh computed upstream is carried along.
    """

    def __init__(self, scale_factor: float = 1.0, warp: bool = True):
        self.scale_factor = scale_factor
        self.warp = warp

    def apply(self, record: Record) -> Record:
        if record.mesh is None:
            LOGGER.warning("mesh_warp_skipped", record=record.name, reason="record has no mesh")
            return record
        if not self.warp:
            return record
        if record.alignment is None:
            raise MissingAlignmentError(
                f"record {record.name!r} has a mesh but no alignment parameters; "
                "run the Procrustes aligner first"
            )

        source = record.image
        height, width = source.shape[:2]
        output = np.zeros_like(source)
        mapped: List[np.ndarray] = []

        for triangle in record.mesh:
            src = triangle.vertices()
            dst = destination_triangle(
                triangle, record.alignment, self.scale_factor, width, height
            )
            mapped.append(dst)
            if triangle_area(src) == 0.0:
                LOGGER.debug("degenerate_triangle", record=record.name, vertices=src.tolist())
                continue
            output = composite_triangle(output, source, src, dst)

        if not mapped:
            LOGGER.warning("mesh_warp_empty", record=record.name)
            return record.evolve(image=output, rects=[Rect(0.0, 0.0, 0.0, 0.0)])

        bounds = Rect.from_points(np.concatenate(mapped))
        LOGGER.info(
            "mesh_warped",
            record=record.name,
            triangles=len(mapped),
            bounds=bounds.to_list(),
        )
        return record.evolve(image=output, rects=[bounds])
