from typing import Protocol

import numpy as np

from matchbench.datatypes import FrameMetrics


class MetricsSink(Protocol):
    """Anything that accepts per-frame metrics in processing order."""

    def record(self, metrics: FrameMetrics) -> None: ...


class MetricsRecorder:
    """Keep per-frame metrics in memory."""

    def __init__(self) -> None:
        self.frames: list[FrameMetrics] = []

    def record(self, metrics: FrameMetrics) -> None:
        self.frames.append(metrics)

    def as_tuples(self) -> list[tuple[float, float, int]]:
        """(detection_time, description_time, match_count) for every frame."""
        return [m.as_tuple() for m in self.frames]

    def __len__(self) -> int:
        return len(self.frames)


def summarize_metrics(metrics: list[FrameMetrics]) -> dict:
    """
    Aggregate per-frame metrics.

    Args:
        metrics: Metrics in processing order.

    Returns:
        summary: frame count, mean detection/description time in seconds,
            mean keypoints per frame, total and mean matches over the frames
            that had a predecessor.

    """
    if not metrics:
        return {
            "num_frames": 0,
            "mean_detection_time": 0.0,
            "mean_description_time": 0.0,
            "mean_keypoints": 0.0,
            "total_matches": 0,
            "mean_matches": 0.0,
        }

    matched = metrics[1:]
    return {
        "num_frames": len(metrics),
        "mean_detection_time": float(np.mean([m.detection_time for m in metrics])),
        "mean_description_time": float(
            np.mean([m.description_time for m in metrics])
        ),
        "mean_keypoints": float(np.mean([m.num_keypoints for m in metrics])),
        "total_matches": int(sum(m.match_count for m in metrics)),
        # the first frame has nothing to match against
        "mean_matches": float(np.mean([m.match_count for m in matched]))
        if matched
        else 0.0,
    }
