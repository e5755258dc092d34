# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, BinaryIO, Dict, Union

import cv2
import numpy as np

PathOrFile = Union[str, Path, BinaryIO]


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_json(path: Path) -> Any:
    return json.loads(Path(path).read_text())


def write_json(path: Path, data: Any) -> None:
    ensure_dir(Path(path).parent)
    Path(path).write_text(json.dumps(data, indent=2))


def load_npz(target: PathOrFile) -> Dict[str, np.ndarray]:
    with np.load(target, allow_pickle=False) as data:
        return {k: data[k] for k in data.files}


def save_npz(target: PathOrFile, **arrays: np.ndarray) -> None:
    if isinstance(target, (str, Path)):
        ensure_dir(Path(target).parent)
    np.savez(target, **arrays)


def read_image(path: Path) -> np.ndarray:
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise FileNotFoundError(f"unable to read image {path}")
    return img


def write_image(path: Path, image: np.ndarray) -> None:
    ensure_dir(Path(path).parent)
    if not cv2.imwrite(str(path), image):
        raise OSError(f"unable to write image {path}")
