from __future__ import annotations

import os
from pathlib import Path
from pydantic import BaseModel, ConfigDict, field_validator
import yaml


class AlignConfig(BaseModel):
    warp: bool = True


class MeshConfig(BaseModel):
    scale_factor: float = 1.0
    warp: bool = True


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    level: str = "INFO"
    json_logs: bool = True

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            allowed = ", ".join(LOG_LEVELS)
            raise ValueError(f"log level must be one of {allowed}, got {value!r}")
        return level


class PipelineConfig(BaseModel):
    workers: int = 1


class Config(BaseModel):
    align: AlignConfig = AlignConfig()
    mesh: MeshConfig = MeshConfig()
    logging: LoggingConfig = LoggingConfig()
    pipeline: PipelineConfig = PipelineConfig()


def _env_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_config(path: Path | None = None) -> Config:
    path = path or Path(__file__).with_name("config.yaml")
    if path.exists():
        data = yaml.safe_load(path.read_text()) or {}
        cfg = Config(**data)
    else:
        cfg = Config()

    # environment overrides
    warp = os.getenv("SHAPEWARP_WARP")
    if warp is not None:
        cfg.align.warp = _env_bool(warp)
        cfg.mesh.warp = _env_bool(warp)
    scale = os.getenv("SHAPEWARP_SCALE_FACTOR")
    if scale:
        cfg.mesh.scale_factor = float(scale)
    level = os.getenv("SHAPEWARP_LOG_LEVEL")
    if level:
        cfg.logging.level = level
    workers = os.getenv("SHAPEWARP_WORKERS")
    if workers:
        cfg.pipeline.workers = int(workers)
    return cfg
