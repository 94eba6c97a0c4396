from abc import ABC, abstractmethod
from collections.abc import Callable

import cv2
import numpy as np

from matchbench.config.config import BenchConfig
from matchbench.datatypes import Keypoint
from matchbench.errors import BackendInvocationError
from matchbench.utils.enums import DescriptorType, DetectorType


class FeatureDetector(ABC):
    """Detector that returns discrete keypoints."""

    name: str = "detector"
    # False when the detector leaves Keypoint.response unset
    provides_response: bool = True

    @abstractmethod
    def detect(self, image: np.ndarray) -> list[Keypoint]:
        """Detect keypoints in a grayscale image."""


class ResponseMapDetector(ABC):
    """Detector that scores every pixel and leaves keypoint selection to NMS."""

    name: str = "response map"
    provides_response: bool = True

    def __init__(self, threshold: float, keypoint_size: float) -> None:
        """
        Args:
            threshold: Minimum response for a cell to become a keypoint.
            keypoint_size: Support diameter of the synthesized keypoints.

        """
        self.threshold = threshold
        self.keypoint_size = keypoint_size

    @abstractmethod
    def respond(self, image: np.ndarray) -> np.ndarray:
        """Return an (H, W) response map for a grayscale image."""


Detector = FeatureDetector | ResponseMapDetector


class OpenCVDetector(FeatureDetector):
    """Wrap any cv2.Feature2D that implements detect()."""

    def __init__(self, name: str, detector: cv2.Feature2D) -> None:
        self.name = name
        self.detector = detector

    def detect(self, image: np.ndarray) -> list[Keypoint]:
        kps = self.detector.detect(image, None)
        return [Keypoint.from_cv(kp) for kp in kps]


class ShiTomasiDetector(FeatureDetector):
    """Good-features-to-track corners, returned best first without scores."""

    name = "SHITOMASI"
    provides_response = False

    def __init__(
        self,
        block_size: int = 4,
        quality_level: float = 0.01,
        k: float = 0.04,
        max_overlap: float = 0.0,
    ) -> None:
        self.block_size = block_size
        self.quality_level = quality_level
        self.k = k
        self.min_distance = (1.0 - max_overlap) * block_size

    def detect(self, image: np.ndarray) -> list[Keypoint]:
        h, w = image.shape[:2]
        max_corners = int(h * w / max(1.0, self.min_distance))

        corners = cv2.goodFeaturesToTrack(
            image,
            maxCorners=max_corners,
            qualityLevel=self.quality_level,
            minDistance=self.min_distance,
            mask=None,
            blockSize=self.block_size,
            useHarrisDetector=False,
            k=self.k,
        )
        if corners is None:
            return []

        return [
            Keypoint(x=float(x), y=float(y), size=float(self.block_size))
            for x, y in corners.reshape(-1, 2)
        ]


class HarrisDetector(ResponseMapDetector):
    """Harris corner response, min-max normalized to [0, 255]."""

    name = "HARRIS"

    def __init__(
        self,
        block_size: int = 2,
        aperture_size: int = 3,
        k: float = 0.04,
        min_response: float = 100.0,
    ) -> None:
        super().__init__(threshold=min_response, keypoint_size=2 * aperture_size)
        self.block_size = block_size
        self.aperture_size = aperture_size
        self.k = k

    def respond(self, image: np.ndarray) -> np.ndarray:
        dst = cv2.cornerHarris(
            image,
            self.block_size,
            self.aperture_size,
            self.k,
            borderType=cv2.BORDER_DEFAULT,
        )
        dst_norm = cv2.normalize(dst, None, 0, 255, cv2.NORM_MINMAX, cv2.CV_32F)
        # scores are compared and stored as whole numbers
        return np.trunc(dst_norm)


class DescriptorExtractor:
    """Wrap any cv2.Feature2D that implements compute()."""

    def __init__(self, name: str, extractor: cv2.Feature2D) -> None:
        self.name = name
        self.extractor = extractor

    def describe(
        self, image: np.ndarray, keypoints: list[Keypoint]
    ) -> tuple[list[Keypoint], np.ndarray]:
        """
        Compute one descriptor per keypoint.

        OpenCV drops keypoints it cannot describe (e.g. too close to the
        border), so the surviving keypoints are returned alongside.

        Args:
            image: Grayscale image the keypoints were detected in.
            keypoints: Keypoints to describe.

        Returns:
            kept_keypoints: Keypoints that received a descriptor.
            descriptors: (N, D) array aligned with kept_keypoints.

        """
        if not keypoints:
            return [], self._empty()

        cv_kps, des = self.extractor.compute(image, [kp.to_cv() for kp in keypoints])
        if des is None or len(cv_kps) == 0:
            return [], self._empty()

        if len(des) != len(cv_kps):
            msg = (
                f"{self.name} returned {len(des)} descriptors "
                f"for {len(cv_kps)} keypoints"
            )
            raise BackendInvocationError(msg)

        return [Keypoint.from_cv(kp) for kp in cv_kps], des

    def _empty(self) -> np.ndarray:
        dtype = np.float32 if self.extractor.descriptorType() == cv2.CV_32F else np.uint8
        return np.empty((0, self.extractor.descriptorSize()), dtype=dtype)


# registries
_DETECTORS: dict[DetectorType, Callable[[BenchConfig], Detector]] = {}
_DESCRIPTORS: dict[DescriptorType, Callable[[BenchConfig], DescriptorExtractor]] = {}


def register_detector(detector_type: DetectorType) -> Callable:
    def wrap(builder: Callable[[BenchConfig], Detector]) -> Callable:
        _DETECTORS[detector_type] = builder
        return builder

    return wrap


def register_descriptor(descriptor_type: DescriptorType) -> Callable:
    def wrap(builder: Callable[[BenchConfig], DescriptorExtractor]) -> Callable:
        _DESCRIPTORS[descriptor_type] = builder
        return builder

    return wrap


@register_detector(DetectorType.SHITOMASI)
def _shitomasi(cfg: BenchConfig) -> Detector:
    return ShiTomasiDetector(
        block_size=cfg.shitomasi_block_size,
        quality_level=cfg.shitomasi_quality_level,
        k=cfg.shitomasi_k,
        max_overlap=cfg.max_overlap,
    )


@register_detector(DetectorType.HARRIS)
def _harris(cfg: BenchConfig) -> Detector:
    return HarrisDetector(
        block_size=cfg.harris_block_size,
        aperture_size=cfg.harris_aperture_size,
        k=cfg.harris_k,
        min_response=cfg.harris_min_response,
    )


@register_detector(DetectorType.FAST)
def _fast(cfg: BenchConfig) -> Detector:
    detector = cv2.FastFeatureDetector_create(
        threshold=cfg.fast_threshold,
        nonmaxSuppression=cfg.fast_nonmax_suppression,
        type=cv2.FAST_FEATURE_DETECTOR_TYPE_9_16,
    )
    return OpenCVDetector("FAST", detector)


@register_detector(DetectorType.BRISK)
def _brisk_detector(cfg: BenchConfig) -> Detector:
    return OpenCVDetector("BRISK", cv2.BRISK_create())


@register_detector(DetectorType.ORB)
def _orb_detector(cfg: BenchConfig) -> Detector:
    return OpenCVDetector("ORB", cv2.ORB_create())


@register_detector(DetectorType.AKAZE)
def _akaze_detector(cfg: BenchConfig) -> Detector:
    return OpenCVDetector("AKAZE", cv2.AKAZE_create())


@register_detector(DetectorType.SIFT)
def _sift_detector(cfg: BenchConfig) -> Detector:
    return OpenCVDetector("SIFT", cv2.SIFT_create())


@register_descriptor(DescriptorType.BRISK)
def _brisk_descriptor(cfg: BenchConfig) -> DescriptorExtractor:
    extractor = cv2.BRISK_create(
        thresh=cfg.brisk_threshold,
        octaves=cfg.brisk_octaves,
        patternScale=cfg.brisk_pattern_scale,
    )
    return DescriptorExtractor("BRISK", extractor)


@register_descriptor(DescriptorType.BRIEF)
def _brief_descriptor(cfg: BenchConfig) -> DescriptorExtractor:
    # needs the contrib build of opencv
    return DescriptorExtractor(
        "BRIEF", cv2.xfeatures2d.BriefDescriptorExtractor_create()
    )


@register_descriptor(DescriptorType.ORB)
def _orb_descriptor(cfg: BenchConfig) -> DescriptorExtractor:
    return DescriptorExtractor("ORB", cv2.ORB_create())


@register_descriptor(DescriptorType.FREAK)
def _freak_descriptor(cfg: BenchConfig) -> DescriptorExtractor:
    return DescriptorExtractor("FREAK", cv2.xfeatures2d.FREAK_create())


@register_descriptor(DescriptorType.AKAZE)
def _akaze_descriptor(cfg: BenchConfig) -> DescriptorExtractor:
    return DescriptorExtractor("AKAZE", cv2.AKAZE_create())


@register_descriptor(DescriptorType.SIFT)
def _sift_descriptor(cfg: BenchConfig) -> DescriptorExtractor:
    return DescriptorExtractor("SIFT", cv2.SIFT_create())


def create_detector(cfg: BenchConfig) -> Detector:
    """
    Create the keypoint detector selected by the configuration.

    Args:
        cfg: Benchmark configuration.

    Returns:
        A detector instance.

    Raises:
        ValueError: If the detector type is not supported.

    """
    builder = _DETECTORS.get(cfg.detector_type)
    if builder is None:
        msg = f"Unsupported detector type: {cfg.detector_type}"
        raise ValueError(msg)
    return builder(cfg)


def create_descriptor(cfg: BenchConfig) -> DescriptorExtractor:
    """
    Create the descriptor extractor selected by the configuration.

    Args:
        cfg: Benchmark configuration.

    Returns:
        A descriptor extractor instance.

    Raises:
        ValueError: If the descriptor type is not supported.

    """
    builder = _DESCRIPTORS.get(cfg.descriptor_type)
    if builder is None:
        msg = f"Unsupported descriptor type: {cfg.descriptor_type}"
        raise ValueError(msg)
    return builder(cfg)
