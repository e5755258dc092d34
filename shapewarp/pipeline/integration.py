"""End-to-end pipeline orchestration."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List

from ..config import Config, load_config
from ..geometry.delaunay import TriangleMesher
from ..geometry.procrustes import MeanShape, ShapeAligner, train_mean_shape
from ..logging_utils import get_logger
from ..record import Record
from ..warp.piecewise import MeshWarp

LOGGER = get_logger(__name__)


class LandmarkPipeline:
    """Align, triangulate and warp records against one trained mean shape.

    The mean shape is the only state shared between records, and it is
    read-only, so :meth:`process_many` may run records on several threads.
    """

    def __init__(self, aligner: ShapeAligner, mesher: TriangleMesher, warper: MeshWarp):
        self.aligner = aligner
        self.mesher = mesher
        self.warper = warper

    @classmethod
    def from_config(cls, mean_shape: MeanShape, config: Config | None = None) -> "LandmarkPipeline":
        cfg = config or load_config()
        return cls(
            ShapeAligner(mean_shape, warp=cfg.align.warp),
            TriangleMesher(),
            MeshWarp(scale_factor=cfg.mesh.scale_factor, warp=cfg.mesh.warp),
        )

    @classmethod
    def train(cls, records: Iterable[Record], config: Config | None = None) -> "LandmarkPipeline":
        return cls.from_config(train_mean_shape(records), config)

    def process(self, record: Record) -> Record:
        aligned = self.aligner.align(record)
        meshed = self.mesher.triangulate(aligned)
        if meshed.mesh is None:
            return meshed
        if self.warper.warp and meshed.alignment is None:
            # the aligner already logged why; leave the image untouched
            return meshed
        return self.warper.apply(meshed)

    def process_many(self, records: Iterable[Record], workers: int = 1) -> List[Record]:
        items = list(records)
        if workers <= 1:
            results = [self.process(r) for r in items]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(self.process, items))
        warped = sum(1 for r in results if r.mesh is not None)
        LOGGER.info("pipeline_complete", records=len(results), meshed=warped)
        return results
