from dataclasses import dataclass, field

from matchbench.datatypes import RegionOfInterest
from matchbench.utils.enums import (
    DescriptorType,
    DetectorType,
    DistanceType,
    MatcherType,
    SelectorType,
    default_distance_type,
)

# keypoints on the preceding vehicle in the KITTI sequence
KITTI_VEHICLE_ROI = RegionOfInterest(535, 180, 180, 150)


@dataclass
class BenchConfig:
    """Configuration data class for the matching benchmark."""

    # algorithm selection
    detector_type: DetectorType = DetectorType.FAST
    descriptor_type: DescriptorType = DescriptorType.BRISK
    matcher_type: MatcherType = MatcherType.BF
    distance_type: DistanceType | None = None  # derived from the descriptor if unset
    selector_type: SelectorType = SelectorType.KNN

    # keypoint filtering
    region_of_interest: RegionOfInterest | None = field(
        default_factory=lambda: KITTI_VEHICLE_ROI
    )
    max_keypoints: int | None = None

    # matching
    ratio_threshold: float = 0.8
    unique_matches: bool = True  # at most one match per current-frame keypoint

    # suppression of dense response maps
    max_overlap: float = 0.0

    # ring buffer
    buffer_capacity: int = 2

    # harris
    harris_block_size: int = 2
    harris_aperture_size: int = 3
    harris_k: float = 0.04
    harris_min_response: float = 100.0

    # shi-tomasi
    shitomasi_block_size: int = 4
    shitomasi_quality_level: float = 0.01
    shitomasi_k: float = 0.04

    # fast
    fast_threshold: int = 30
    fast_nonmax_suppression: bool = True

    # brisk descriptor
    brisk_threshold: int = 30
    brisk_octaves: int = 3
    brisk_pattern_scale: float = 1.0

    # print progress
    verbose: bool = True

    def __post_init__(self) -> None:
        if self.distance_type is None:
            self.distance_type = default_distance_type(self.descriptor_type)
        if (
            self.matcher_type == MatcherType.BF
            and self.distance_type == DistanceType.BINARY
            and default_distance_type(self.descriptor_type) != DistanceType.BINARY
        ):
            msg = (
                f"{self.descriptor_type.name} descriptors are not binary, "
                "brute-force matching needs DistanceType.HOG"
            )
            raise ValueError(msg)
        if self.buffer_capacity < 1:
            msg = f"buffer_capacity must be >= 1, got {self.buffer_capacity}"
            raise ValueError(msg)
        if self.max_keypoints is not None and self.max_keypoints < 0:
            msg = f"max_keypoints must be >= 0, got {self.max_keypoints}"
            raise ValueError(msg)
        if self.ratio_threshold < 0:
            msg = f"ratio_threshold must be >= 0, got {self.ratio_threshold}"
            raise ValueError(msg)


def get_config(preset: str = "kitti", **overrides) -> BenchConfig:
    """
    Return the configuration for a named preset.

    Args:
        preset: Name of the preset (kitti, full_frame, harris).
        **overrides: Field values applied on top of the preset.

    Returns:
        The configuration object with preset-specific overrides.

    Raises:
        ValueError: If the preset is unknown.

    """
    cfg = BenchConfig()

    if preset == "kitti":
        cfg.region_of_interest = KITTI_VEHICLE_ROI

    elif preset == "full_frame":
        cfg.region_of_interest = None

    elif preset == "harris":
        cfg.detector_type = DetectorType.HARRIS
        cfg.descriptor_type = DescriptorType.BRIEF
        cfg.region_of_interest = None

    else:
        msg = f"Unknown preset: {preset}"
        raise ValueError(msg)

    for name, value in overrides.items():
        if not hasattr(cfg, name):
            msg = f"Unknown config field: {name}"
            raise ValueError(msg)
        setattr(cfg, name, value)

    if "distance_type" not in overrides:
        cfg.distance_type = None

    # re-run validation and derivation after overrides
    cfg.__post_init__()
    return cfg
