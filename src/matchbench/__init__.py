"""Feature detection, description and matching benchmark over frame sequences."""

from matchbench.config.config import BenchConfig, get_config
from matchbench.datatypes import Frame, FrameMetrics, Keypoint, Match, RegionOfInterest
from matchbench.errors import (
    BackendInvocationError,
    EmptyBufferError,
    InsufficientHistoryError,
    MatchBenchError,
    PipelineError,
    ResourceError,
)
from matchbench.pipeline import FramePipeline

__all__ = [
    "BackendInvocationError",
    "BenchConfig",
    "EmptyBufferError",
    "Frame",
    "FrameMetrics",
    "FramePipeline",
    "InsufficientHistoryError",
    "Keypoint",
    "Match",
    "MatchBenchError",
    "PipelineError",
    "RegionOfInterest",
    "ResourceError",
    "get_config",
]
