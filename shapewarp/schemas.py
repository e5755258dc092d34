# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from pathlib import Path
from typing import List

import numpy as np
from pydantic import BaseModel, field_validator

from shapewarp.record import Record, Rect
from shapewarp.utils.io import read_image, read_json, write_json


class RecordSpec(BaseModel):
    image: str
    name: str = ""
    points: List[List[float]] = []
    rects: List[List[float]] = []

    @field_validator("points")
    @classmethod
    def _pairs(cls, value: List[List[float]]) -> List[List[float]]:
        if any(len(p) != 2 for p in value):
            raise ValueError("each point must be [x, y]")
        return value

    @field_validator("rects")
    @classmethod
    def _boxes(cls, value: List[List[float]]) -> List[List[float]]:
        if any(len(r) != 4 for r in value):
            raise ValueError("each rect must be [x, y, width, height]")
        return value

    def to_record(self, root: Path) -> Record:
        path = Path(self.image)
        if not path.is_absolute():
            path = root / path
        return Record(
            image=read_image(path),
            points=np.asarray(self.points, dtype=np.float64),
            rects=[Rect.from_list(r) for r in self.rects],
            name=self.name or path.stem,
        )


class Manifest(BaseModel):
    records: List[RecordSpec]

    def to_json(self, path: Path) -> None:
        write_json(path, self.model_dump())

    @classmethod
    def from_json(cls, path: Path) -> "Manifest":
        return cls(**read_json(path))


def load_records(manifest_path: Path) -> List[Record]:
    """Read a manifest and its images; relative image paths resolve next to it."""
    manifest = Manifest.from_json(manifest_path)
    root = Path(manifest_path).parent
    return [spec.to_record(root) for spec in manifest.records]
