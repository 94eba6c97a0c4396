import cv2
import numpy as np
import pytest

from matchbench.datatypes import Keypoint
from matchbench.modules.frontend import FeatureDetector


def make_textured_image(seed: int = 0, shape: tuple[int, int] = (240, 320)) -> np.ndarray:
    """Blocky random texture with plenty of corners."""
    rng = np.random.default_rng(seed)
    h, w = shape
    small = rng.integers(0, 256, size=(h // 8, w // 8)).astype(np.uint8)
    return cv2.resize(small, (w, h), interpolation=cv2.INTER_NEAREST)


class FixedDetector(FeatureDetector):
    """Returns the same keypoints for every image."""

    name = "FIXED"

    def __init__(self, keypoints: list[Keypoint], provides_response: bool = True):
        self.keypoints = keypoints
        self.provides_response = provides_response
        self.calls = 0

    def detect(self, image: np.ndarray) -> list[Keypoint]:
        self.calls += 1
        return list(self.keypoints)


class CoordinateDescriptor:
    """Describes a keypoint by its (x, y) location."""

    name = "COORD"

    def __init__(self) -> None:
        self.calls = 0

    def describe(self, image, keypoints):
        self.calls += 1
        des = np.array([[kp.x, kp.y] for kp in keypoints], dtype=np.float32)
        return list(keypoints), des.reshape(-1, 2)


@pytest.fixture
def textured_image() -> np.ndarray:
    return make_textured_image()


@pytest.fixture
def grid_keypoints() -> list[Keypoint]:
    return [
        Keypoint(x=float(x), y=float(y), size=6.0, response=float(x + y))
        for y in range(20, 200, 40)
        for x in range(20, 300, 40)
    ]
