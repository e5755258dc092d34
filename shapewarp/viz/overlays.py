"""Mesh overlay drawing for visual inspection."""
from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np

from ..logging_utils import get_logger
from ..record import Mesh, Record

LOGGER = get_logger(__name__)


def _pixel(point: np.ndarray) -> tuple:
    return (int(round(float(point[0]))), int(round(float(point[1]))))


def draw_mesh(
    image: np.ndarray,
    mesh: Mesh,
    color: Sequence[float] = (0, 0, 0),
    thickness: int = 1,
) -> np.ndarray:
    canvas = image.copy()
    for a, b, c in mesh.vertices():
        cv2.line(canvas, _pixel(a), _pixel(b), color, thickness)
        cv2.line(canvas, _pixel(b), _pixel(c), color, thickness)
        cv2.line(canvas, _pixel(c), _pixel(a), color, thickness)
    return canvas


class MeshRenderer:
    """Draw a record's triangle edges over a copy of its image."""

    def __init__(self, color: Sequence[float] = (0, 0, 0), thickness: int = 1):
        self.color = tuple(color)
        self.thickness = thickness

    def render(self, record: Record) -> Record:
        if record.mesh is None:
            LOGGER.warning("mesh_render_skipped", record=record.name, reason="record has no mesh")
            return record
        return record.evolve(image=draw_mesh(record.image, record.mesh, self.color, self.thickness))
