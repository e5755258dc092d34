# SPDX-License-Identifier: Apache-2.0
"""Typed per-image record and the geometry values passed between stages.

A :class:`Record` carries one image, its landmarks and bounding regions, and
the typed results of each stage: ``alignment`` (set by the Procrustes
aligner) and ``mesh`` (set by the Delaunay mesher). The legacy flat encodings
``ProcrustesStats`` and ``DelaunayTriangles`` are only produced when the
record is exported as metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from shapewarp.exceptions import MeshContractError

PROCRUSTES_STATS_KEY = "ProcrustesStats"
DELAUNAY_TRIANGLES_KEY = "DelaunayTriangles"

Point = Tuple[float, float]


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle with corner accessors."""

    x: float
    y: float
    width: float
    height: float

    @property
    def top_left(self) -> Point:
        return (self.x, self.y)

    @property
    def top_right(self) -> Point:
        return (self.x + self.width, self.y)

    @property
    def bottom_left(self) -> Point:
        return (self.x, self.y + self.height)

    @property
    def bottom_right(self) -> Point:
        return (self.x + self.width, self.y + self.height)

    def corners(self) -> np.ndarray:
        """Corners in anchor order: top-left, top-right, bottom-left, bottom-right."""
        return np.array(
            [self.top_left, self.top_right, self.bottom_left, self.bottom_right],
            dtype=np.float64,
        )

    def to_list(self) -> List[float]:
        return [self.x, self.y, self.width, self.height]

    @classmethod
    def from_list(cls, values: Sequence[float]) -> "Rect":
        x, y, w, h = (float(v) for v in values)
        return cls(x, y, w, h)

    @classmethod
    def from_points(cls, points: np.ndarray) -> "Rect":
        """Integer bounding box of a point cloud (OpenCV ``boundingRect``)."""
        pts = np.asarray(points, dtype=np.float32).reshape(-1, 1, 2)
        x, y, w, h = cv2.boundingRect(pts)
        return cls(float(x), float(y), float(w), float(h))


@dataclass(frozen=True, eq=False)
class AlignmentParameters:
    """Rotation, centroid and scale relating a record to the mean shape."""

    rotation: np.ndarray
    mean_x: float
    mean_y: float
    norm: float

    def __post_init__(self) -> None:
        rotation = np.array(self.rotation, dtype=np.float64).reshape(2, 2)
        rotation.flags.writeable = False
        object.__setattr__(self, "rotation", rotation)

    @property
    def centroid(self) -> np.ndarray:
        return np.array([self.mean_x, self.mean_y], dtype=np.float64)

    def to_canonical(self, points: np.ndarray) -> np.ndarray:
        """Map image-space points into the normalized, rotated mean-shape frame."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        return ((pts - self.centroid) / self.norm) @ self.rotation

    def to_list(self) -> List[float]:
        """Flat form: R00, R10, R11, R01, mean_x, mean_y, norm."""
        r = self.rotation
        return [
            float(r[0, 0]),
            float(r[1, 0]),
            float(r[1, 1]),
            float(r[0, 1]),
            float(self.mean_x),
            float(self.mean_y),
            float(self.norm),
        ]

    @classmethod
    def from_list(cls, values: Sequence[float]) -> "AlignmentParameters":
        if len(values) != 7:
            raise ValueError(f"{PROCRUSTES_STATS_KEY} needs 7 values, got {len(values)}")
        r00, r10, r11, r01, mean_x, mean_y, norm = (float(v) for v in values)
        return cls(np.array([[r00, r01], [r10, r11]]), mean_x, mean_y, norm)


@dataclass(frozen=True)
class Triangle:
    """Three image-space vertices of one mesh cell."""

    a: Point
    b: Point
    c: Point

    def vertices(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c], dtype=np.float32)

    def is_within(self, width: float, height: float) -> bool:
        # Inclusive on the far edges, so triangles touching the border survive.
        return all(0 <= x <= width and 0 <= y <= height for x, y in (self.a, self.b, self.c))

    @classmethod
    def from_vertices(cls, vertices: Iterable[Sequence[float]]) -> "Triangle":
        a, b, c = (tuple(float(v) for v in p) for p in vertices)
        return cls(a, b, c)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Mesh:
    """Ordered triangles of a record. Order is the draw order of the warp."""

    triangles: Tuple[Triangle, ...] = ()

    def __len__(self) -> int:
        return len(self.triangles)

    def __iter__(self) -> Iterator[Triangle]:
        return iter(self.triangles)

    def vertices(self) -> np.ndarray:
        """All vertices as an ``(n_triangles, 3, 2)`` float32 array."""
        if not self.triangles:
            return np.zeros((0, 3, 2), dtype=np.float32)
        return np.stack([t.vertices() for t in self.triangles])

    def to_flat(self) -> List[List[float]]:
        flat: List[List[float]] = []
        for tri in self.triangles:
            flat.extend([list(tri.a), list(tri.b), list(tri.c)])
        return flat

    @classmethod
    def from_flat(cls, points: Sequence[Sequence[float]]) -> "Mesh":
        if len(points) % 3:
            raise MeshContractError(
                f"{DELAUNAY_TRIANGLES_KEY} holds {len(points)} points, not a multiple of 3"
            )
        return cls(
            tuple(Triangle.from_vertices(points[i : i + 3]) for i in range(0, len(points), 3))
        )


@dataclass(eq=False)
class Record:
    """One image with landmarks, bounding regions and per-stage results."""

    image: np.ndarray
    points: np.ndarray = field(default_factory=lambda: np.zeros((0, 2)))
    rects: List[Rect] = field(default_factory=list)
    name: str = ""
    alignment: Optional[AlignmentParameters] = None
    mesh: Optional[Mesh] = None
    aligned_points: Optional[np.ndarray] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.points = np.asarray(self.points, dtype=np.float64).reshape(-1, 2)
        self.rects = list(self.rects)

    @property
    def bounding_rect(self) -> Optional[Rect]:
        """The primary bounding region: the last rect appended."""
        return self.rects[-1] if self.rects else None

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    def evolve(self, **changes: Any) -> "Record":
        """Copy of the record with ``changes`` applied; the input is untouched."""
        if "metadata" not in changes:
            changes["metadata"] = dict(self.metadata)
        return replace(self, **changes)

    def to_metadata(self) -> Dict[str, Any]:
        """JSON-friendly metadata including the legacy stage keys."""
        data: Dict[str, Any] = dict(self.metadata)
        data["name"] = self.name
        data["points"] = self.points.tolist()
        data["rects"] = [r.to_list() for r in self.rects]
        if self.alignment is not None:
            data[PROCRUSTES_STATS_KEY] = self.alignment.to_list()
        if self.mesh is not None:
            data[DELAUNAY_TRIANGLES_KEY] = self.mesh.to_flat()
        if self.aligned_points is not None:
            data["aligned_points"] = np.asarray(self.aligned_points).tolist()
        return data

    @classmethod
    def from_metadata(cls, image: np.ndarray, data: Dict[str, Any]) -> "Record":
        extra = {
            k: v
            for k, v in data.items()
            if k not in {"name", "points", "rects", "aligned_points",
                         PROCRUSTES_STATS_KEY, DELAUNAY_TRIANGLES_KEY}
        }
        stats = data.get(PROCRUSTES_STATS_KEY)
        flat = data.get(DELAUNAY_TRIANGLES_KEY)
        aligned = data.get("aligned_points")
        return cls(
            image=image,
            points=np.asarray(data.get("points", []), dtype=np.float64),
            rects=[Rect.from_list(r) for r in data.get("rects", [])],
            name=data.get("name", ""),
            alignment=AlignmentParameters.from_list(stats) if stats is not None else None,
            mesh=Mesh.from_flat(flat) if flat is not None else None,
            aligned_points=np.asarray(aligned, dtype=np.float64) if aligned is not None else None,
            metadata=extra,
        )
