# SPDX-License-Identifier: Apache-2.0
from .integration import LandmarkPipeline

__all__ = ["LandmarkPipeline"]
