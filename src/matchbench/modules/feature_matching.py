import cv2
import numpy as np

from matchbench.config.config import BenchConfig
from matchbench.datatypes import Match
from matchbench.errors import BackendInvocationError
from matchbench.utils.enums import DistanceType, MatcherType


class DescriptorMatcher:
    """Brute-force or FLANN matching of two descriptor sets."""

    def __init__(
        self,
        matcher_type: MatcherType = MatcherType.BF,
        distance_type: DistanceType = DistanceType.BINARY,
    ) -> None:
        self.matcher_type = matcher_type
        self.distance_type = distance_type

        if matcher_type == MatcherType.BF:
            # hamming only makes sense for binary descriptors
            norm_type = (
                cv2.NORM_HAMMING if distance_type == DistanceType.BINARY else cv2.NORM_L2
            )
            self.matcher = cv2.BFMatcher(norm_type, crossCheck=False)
        elif matcher_type == MatcherType.FLANN:
            self.matcher = cv2.FlannBasedMatcher()
        else:
            msg = f"Unsupported matcher type: {matcher_type}"
            raise ValueError(msg)

    @property
    def name(self) -> str:
        return self.matcher_type.name

    def _prepare(
        self, desc_a: np.ndarray, desc_b: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        # the kd-tree index only accepts float descriptors
        if self.matcher_type == MatcherType.FLANN:
            desc_a = desc_a.astype(np.float32, copy=False)
            desc_b = desc_b.astype(np.float32, copy=False)
        return desc_a, desc_b

    def match(self, desc_a: np.ndarray, desc_b: np.ndarray) -> list[Match]:
        """
        Best match in desc_b for every row of desc_a.

        Args:
            desc_a: (N, D) source descriptors.
            desc_b: (M, D) reference descriptors.

        Returns:
            One match per source descriptor, empty if either side is empty.

        """
        if len(desc_a) == 0 or len(desc_b) == 0:
            return []

        desc_a, desc_b = self._prepare(desc_a, desc_b)
        matches = self.matcher.match(desc_a, desc_b)
        return [Match.from_cv(m) for m in matches]

    def knn_match(
        self, desc_a: np.ndarray, desc_b: np.ndarray, k: int = 2
    ) -> list[list[Match]]:
        """
        The k nearest neighbours in desc_b for every row of desc_a.

        Args:
            desc_a: (N, D) source descriptors.
            desc_b: (M, D) reference descriptors.
            k: Neighbours per source descriptor.

        Returns:
            N lists of matches, nearest first. Lists are shorter than k only
            when desc_b holds fewer than k descriptors.

        Raises:
            BackendInvocationError: If the matcher output is malformed.

        """
        if len(desc_a) == 0:
            return []
        if len(desc_b) == 0:
            return [[] for _ in range(len(desc_a))]

        desc_a, desc_b = self._prepare(desc_a, desc_b)
        # flann asserts k <= index size, so never ask for more than desc_b holds
        knn_matches = self.matcher.knnMatch(desc_a, desc_b, k=min(k, len(desc_b)))

        if len(knn_matches) != len(desc_a):
            msg = (
                f"{self.name} knn returned {len(knn_matches)} lists "
                f"for {len(desc_a)} descriptors"
            )
            raise BackendInvocationError(msg)

        expected = min(k, len(desc_b))
        result = []
        for neighbours in knn_matches:
            if len(neighbours) < expected:
                msg = (
                    f"{self.name} knn returned {len(neighbours)} neighbours, "
                    f"expected {expected}"
                )
                raise BackendInvocationError(msg)
            result.append([Match.from_cv(m) for m in neighbours])

        return result


def create_matcher(cfg: BenchConfig) -> DescriptorMatcher:
    """
    Create the descriptor matcher selected by the configuration.

    Args:
        cfg: Benchmark configuration.

    Returns:
        A matcher instance.

    Raises:
        ValueError: If the matcher type is not supported.

    """
    return DescriptorMatcher(cfg.matcher_type, cfg.distance_type)
