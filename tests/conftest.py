from __future__ import annotations

import numpy as np
import pytest

from shapewarp.logging_utils import configure_logging
from shapewarp.record import Record, Rect

# Five landmarks and a bounding rect whose nine points are centered on (50, 50).
LANDMARKS = np.array(
    [[30.0, 40.0], [70.0, 40.0], [50.0, 50.0], [35.0, 60.0], [65.0, 60.0]]
)
BOUNDING_RECT = Rect(1.0, 1.0, 98.0, 98.0)


def gradient_image(width: int = 100, height: int = 100) -> np.ndarray:
    """Smooth 3-channel image with no zero-valued pixels."""
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    img = np.empty((height, width, 3), dtype=np.uint8)
    img[..., 0] = 20 + xs * 200 / max(width - 1, 1)
    img[..., 1] = 20 + ys * 200 / max(height - 1, 1)
    img[..., 2] = 120
    return img


def rotate_about(points: np.ndarray, degrees: float, center=(50.0, 50.0)) -> np.ndarray:
    theta = np.deg2rad(degrees)
    rot = np.array([[np.cos(theta), -np.sin(theta)], [np.sin(theta), np.cos(theta)]])
    c = np.asarray(center)
    return (np.asarray(points) - c) @ rot.T + c


@pytest.fixture
def image() -> np.ndarray:
    return gradient_image()


@pytest.fixture
def record(image: np.ndarray) -> Record:
    return Record(image=image, points=LANDMARKS.copy(), rects=[BOUNDING_RECT], name="face")


@pytest.fixture
def population(image: np.ndarray) -> list[Record]:
    """Translated and scaled copies of the reference constellation."""
    records = []
    for i, (scale, dx, dy) in enumerate([(1.0, 0, 0), (0.8, 5, -3), (0.6, -8, 10)]):
        center = np.array([50.0, 50.0])
        pts = (LANDMARKS - center) * scale + center + [dx, dy]
        rect = Rect(
            (BOUNDING_RECT.x - 50) * scale + 50 + dx,
            (BOUNDING_RECT.y - 50) * scale + 50 + dy,
            BOUNDING_RECT.width * scale,
            BOUNDING_RECT.height * scale,
        )
        records.append(Record(image=image, points=pts, rects=[rect], name=f"train_{i}"))
    return records


@pytest.fixture
def debug_logging():
    """Let debug events through to ``capture_logs`` for one test."""
    configure_logging("DEBUG")
    yield
    configure_logging()
