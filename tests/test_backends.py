import numpy as np
import pytest

from matchbench.config.config import get_config
from matchbench.datatypes import Keypoint
from matchbench.modules.feature_matching import DescriptorMatcher, create_matcher
from matchbench.modules.frontend import (
    DescriptorExtractor,
    HarrisDetector,
    OpenCVDetector,
    ShiTomasiDetector,
    create_descriptor,
    create_detector,
)
from matchbench.utils.enums import (
    DescriptorType,
    DetectorType,
    DistanceType,
    MatcherType,
)


@pytest.mark.parametrize("detector_type", list(DetectorType))
def test_every_detector_is_registered(detector_type: DetectorType) -> None:
    detector = create_detector(get_config("full_frame", detector_type=detector_type))
    if detector_type == DetectorType.HARRIS:
        assert isinstance(detector, HarrisDetector)
    elif detector_type == DetectorType.SHITOMASI:
        assert isinstance(detector, ShiTomasiDetector)
        assert not detector.provides_response
    else:
        assert isinstance(detector, OpenCVDetector)
        assert detector.name == detector_type.name


@pytest.mark.parametrize("descriptor_type", list(DescriptorType))
def test_every_descriptor_is_registered(descriptor_type: DescriptorType) -> None:
    descriptor = create_descriptor(
        get_config("full_frame", descriptor_type=descriptor_type)
    )
    assert isinstance(descriptor, DescriptorExtractor)
    assert descriptor.name == descriptor_type.name


def test_harris_response_map(textured_image: np.ndarray) -> None:
    detector = HarrisDetector()
    response = detector.respond(textured_image)

    assert response.shape == textured_image.shape
    assert response.min() >= 0
    assert response.max() == 255
    # whole-number scores
    assert np.array_equal(response, np.trunc(response))
    assert detector.keypoint_size == 6
    assert detector.threshold == 100


def test_shitomasi_detects_corners(textured_image: np.ndarray) -> None:
    kps = ShiTomasiDetector().detect(textured_image)
    assert len(kps) > 0
    assert all(kp.size == 4 for kp in kps)


def test_shitomasi_on_flat_image() -> None:
    assert ShiTomasiDetector().detect(np.zeros((32, 32), dtype=np.uint8)) == []


def test_orb_describe_is_aligned(textured_image: np.ndarray) -> None:
    cfg = get_config(
        "full_frame",
        detector_type=DetectorType.ORB,
        descriptor_type=DescriptorType.ORB,
    )
    kps = create_detector(cfg).detect(textured_image)
    kept, des = create_descriptor(cfg).describe(textured_image, kps)

    assert len(kps) > 0
    assert len(kept) == len(des)
    assert des.dtype == np.uint8
    assert des.shape[1] == 32


def test_describe_drops_border_keypoints(textured_image: np.ndarray) -> None:
    descriptor = create_descriptor(
        get_config("full_frame", descriptor_type=DescriptorType.ORB)
    )
    kps = [
        Keypoint(x=0.0, y=0.0, size=31.0),
        Keypoint(x=160.0, y=120.0, size=31.0),
    ]
    kept, des = descriptor.describe(textured_image, kps)

    assert len(kept) == len(des) == 1
    assert (kept[0].x, kept[0].y) == (160.0, 120.0)


@pytest.mark.parametrize(
    "descriptor_type, dtype",
    [(DescriptorType.ORB, np.uint8), (DescriptorType.SIFT, np.float32)],
)
def test_describe_nothing(textured_image, descriptor_type, dtype) -> None:
    descriptor = create_descriptor(
        get_config("full_frame", descriptor_type=descriptor_type)
    )
    kept, des = descriptor.describe(textured_image, [])

    assert kept == []
    assert des.shape[0] == 0
    assert des.dtype == dtype


class TestMatcher:
    def _descriptors(self, n: int, seed: int = 0) -> np.ndarray:
        rng = np.random.default_rng(seed)
        return rng.integers(0, 256, size=(n, 32)).astype(np.uint8)

    def test_match_self(self) -> None:
        des = self._descriptors(20)
        matches = DescriptorMatcher().match(des, des)

        assert len(matches) == 20
        assert all(m.query_idx == m.train_idx and m.distance == 0 for m in matches)

    def test_knn_shapes(self) -> None:
        des_a = self._descriptors(15, seed=1)
        des_b = self._descriptors(10, seed=2)
        knn = DescriptorMatcher().knn_match(des_a, des_b, k=2)

        assert len(knn) == 15
        for neighbours in knn:
            assert len(neighbours) == 2
            assert neighbours[0].distance <= neighbours[1].distance

    def test_knn_with_single_reference(self) -> None:
        knn = DescriptorMatcher().knn_match(
            self._descriptors(3), self._descriptors(1, seed=5), k=2
        )
        assert [len(n) for n in knn] == [1, 1, 1]

    @pytest.mark.parametrize("matcher_type", [MatcherType.BF, MatcherType.FLANN])
    def test_knn_with_fewer_references_than_k(self, matcher_type) -> None:
        des = self._descriptors(5)
        knn = DescriptorMatcher(matcher_type, DistanceType.BINARY).knn_match(
            des, des[:1], k=2
        )

        assert len(knn) == 5
        assert all(len(n) == 1 and n[0].train_idx == 0 for n in knn)

    def test_empty_sides(self) -> None:
        matcher = DescriptorMatcher()
        des = self._descriptors(4)
        empty = des[:0]

        assert matcher.match(empty, des) == []
        assert matcher.match(des, empty) == []
        assert matcher.knn_match(empty, des, k=2) == []
        assert matcher.knn_match(des, empty, k=2) == [[], [], [], []]

    def test_flann_accepts_binary(self) -> None:
        des = self._descriptors(30)
        matcher = DescriptorMatcher(MatcherType.FLANN, DistanceType.BINARY)
        knn = matcher.knn_match(des, des, k=2)

        assert len(knn) == 30
        assert all(len(n) == 2 for n in knn)

    def test_factory_follows_config(self) -> None:
        cfg = get_config(
            "full_frame",
            matcher_type=MatcherType.FLANN,
            descriptor_type=DescriptorType.SIFT,
        )
        matcher = create_matcher(cfg)
        assert matcher.matcher_type == MatcherType.FLANN
        assert matcher.distance_type == DistanceType.HOG
