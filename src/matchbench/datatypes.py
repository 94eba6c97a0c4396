"""Passive data structures for the matching benchmark."""

from dataclasses import dataclass, field

import cv2
import numpy as np


@dataclass(frozen=True)
class Keypoint:
    """
    A located, scored point of interest.

    Attributes:
        x: Column coordinate (subpixel).
        y: Row coordinate (subpixel).
        size: Diameter of the support region.
        response: Detector score, 0.0 when the detector does not score.
        angle: Orientation in degrees, -1 if not applicable.
        octave: Pyramid octave the keypoint was found in.
        class_id: Optional group tag, -1 if unused.

    """

    x: float
    y: float
    size: float
    response: float = 0.0
    angle: float = -1.0
    octave: int = 0
    class_id: int = -1

    @classmethod
    def from_cv(cls, kp: cv2.KeyPoint) -> "Keypoint":
        return cls(
            x=float(kp.pt[0]),
            y=float(kp.pt[1]),
            size=float(kp.size),
            response=float(kp.response),
            angle=float(kp.angle),
            octave=int(kp.octave),
            class_id=int(kp.class_id),
        )

    def to_cv(self) -> cv2.KeyPoint:
        return cv2.KeyPoint(
            x=self.x,
            y=self.y,
            size=self.size,
            angle=self.angle,
            response=self.response,
            octave=self.octave,
            class_id=self.class_id,
        )


@dataclass(frozen=True)
class Match:
    """
    A claimed correspondence between two frames.

    Attributes:
        query_idx: Keypoint index in the source (previous) frame.
        train_idx: Keypoint index in the reference (current) frame.
        distance: Descriptor distance, lower is better.

    """

    query_idx: int
    train_idx: int
    distance: float

    @classmethod
    def from_cv(cls, m: cv2.DMatch) -> "Match":
        return cls(int(m.queryIdx), int(m.trainIdx), float(m.distance))


@dataclass(frozen=True)
class RegionOfInterest:
    """Axis-aligned rectangle, half-open like an OpenCV rect."""

    x: int
    y: int
    width: int
    height: int

    def contains(self, px: float, py: float) -> bool:
        return (
            self.x <= px < self.x + self.width and self.y <= py < self.y + self.height
        )


@dataclass
class Frame:
    """
    A single processed camera image.

    Attributes:
        frame_index: Sequential index of the frame in the run.
        image: Grayscale image data.
        keypoints: Detected keypoints, replaced wholesale by each stage.
        descriptors: (N, D) array, row i describes keypoints[i].
        matches: Matches against the previous buffered frame.
        path: Source file, if the frame was loaded from disk.

    """

    frame_index: int
    image: np.ndarray
    keypoints: list[Keypoint] = field(default_factory=list)
    descriptors: np.ndarray = field(
        default_factory=lambda: np.empty((0, 0), dtype=np.uint8)
    )
    matches: list[Match] = field(default_factory=list)
    path: str | None = None


@dataclass
class FrameMetrics:
    """
    Timing and count measurements for one frame.

    Attributes:
        frame_index: Frame the measurements belong to.
        detection_time: Seconds spent detecting keypoints.
        description_time: Seconds spent describing keypoints.
        match_count: Matches kept after filtering, 0 for the first frame.
        num_keypoints: Keypoints left after region filtering and capping.
        num_candidates: Matches before filtering.
        match_time: Seconds spent matching and filtering.
        cap_mode: "response", "order" or None if no cap was applied.

    """

    frame_index: int
    detection_time: float
    description_time: float
    match_count: int = 0
    num_keypoints: int = 0
    num_candidates: int = 0
    match_time: float = 0.0
    cap_mode: str | None = None

    def as_tuple(self) -> tuple[float, float, int]:
        return self.detection_time, self.description_time, self.match_count
