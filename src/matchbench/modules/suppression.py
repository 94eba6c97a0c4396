import numpy as np

from matchbench.datatypes import Keypoint


def keypoint_overlap(kp1: Keypoint, kp2: Keypoint) -> float:
    """
    Intersection over union of two circular keypoint supports.

    Args:
        kp1: First keypoint, support diameter kp1.size.
        kp2: Second keypoint, support diameter kp2.size.

    Returns:
        Overlap ratio in [0, 1].

    """
    ovrl = _overlap_many(
        kp1.x,
        kp1.y,
        kp1.size,
        np.array([kp2.x]),
        np.array([kp2.y]),
        np.array([kp2.size]),
    )
    return float(ovrl[0])


def _overlap_many(
    x: float,
    y: float,
    size: float,
    xs: np.ndarray,
    ys: np.ndarray,
    sizes: np.ndarray,
) -> np.ndarray:
    """Overlap of one keypoint against many, same maths as cv::KeyPoint::overlap."""
    a = size * 0.5
    b = sizes * 0.5
    a_2 = a * a
    b_2 = b * b
    c = np.hypot(xs - x, ys - y)

    ovrl = np.zeros(len(xs), dtype=np.float64)

    # one circle completely inside the other
    inside = np.minimum(a, b) + c <= np.maximum(a, b)
    if np.any(inside):
        ovrl[inside] = np.minimum(a_2, b_2[inside]) / np.maximum(a_2, b_2[inside])

    # circles intersect
    cross = ~inside & (c < a + b)
    if np.any(cross):
        bc, b2c, cc = b[cross], b_2[cross], c[cross]
        c_2 = cc * cc
        cos_alpha = np.clip((b2c + c_2 - a_2) / (2 * bc * cc), -1.0, 1.0)
        cos_beta = np.clip((a_2 + c_2 - b2c) / (2 * a * cc), -1.0, 1.0)
        alpha = np.arccos(cos_alpha)
        beta = np.arccos(cos_beta)
        intersection = a_2 * (beta - 0.5 * np.sin(2 * beta)) + b2c * (
            alpha - 0.5 * np.sin(2 * alpha)
        )
        union = (a_2 + b2c) * np.pi - intersection
        ovrl[cross] = intersection / union

    return ovrl


class ResponseMapSuppressor:
    """
    Greedy raster-order non-maximum suppression of a dense response map.

    Cells are visited row by row. A candidate that overlaps kept keypoints by
    more than ``max_overlap`` overwrites every weaker one of them in place and
    is otherwise dropped; a candidate with no collision is appended. The result
    depends on scan order and is reproducible, not a global optimum.
    """

    def __init__(
        self, threshold: float, keypoint_size: float, max_overlap: float = 0.0
    ) -> None:
        """
        Args:
            threshold: Cells must score strictly above this to become candidates.
            keypoint_size: Support diameter given to every candidate.
            max_overlap: Largest overlap tolerated between kept keypoints.

        """
        self.threshold = threshold
        self.keypoint_size = keypoint_size
        self.max_overlap = max_overlap

    def suppress(self, response_map: np.ndarray) -> list[Keypoint]:
        """
        Turn a response map into a sparse keypoint list.

        Args:
            response_map: (H, W) array of per-pixel scores.

        Returns:
            Kept keypoints, in insertion order.

        Raises:
            ValueError: If the map is not two-dimensional.

        """
        if response_map.ndim != 2:
            msg = f"response map must be 2D, got shape {response_map.shape}"
            raise ValueError(msg)

        # np.nonzero walks in C order: ascending row, then column
        rows, cols = np.nonzero(response_map > self.threshold)

        keypoints: list[Keypoint] = []
        xs: list[float] = []
        ys: list[float] = []
        sizes: list[float] = []

        for row, col in zip(rows, cols):
            candidate = Keypoint(
                x=float(col),
                y=float(row),
                size=float(self.keypoint_size),
                response=float(response_map[row, col]),
                class_id=0,
            )

            collided = False
            if keypoints:
                overlaps = _overlap_many(
                    candidate.x,
                    candidate.y,
                    candidate.size,
                    np.asarray(xs),
                    np.asarray(ys),
                    np.asarray(sizes),
                )
                colliding = np.flatnonzero(overlaps > self.max_overlap)
                collided = len(colliding) > 0
                for idx in colliding:
                    if candidate.response > keypoints[idx].response:
                        keypoints[idx] = candidate
                        xs[idx], ys[idx], sizes[idx] = (
                            candidate.x,
                            candidate.y,
                            candidate.size,
                        )

            if not collided:
                keypoints.append(candidate)
                xs.append(candidate.x)
                ys.append(candidate.y)
                sizes.append(candidate.size)

        return keypoints


def keypoints_to_response_map(
    keypoints: list[Keypoint], shape: tuple[int, int]
) -> np.ndarray:
    """
    Rasterize keypoints back into a response map, zero elsewhere.

    Args:
        keypoints: Keypoints with integer-valued locations inside ``shape``.
        shape: (H, W) of the map.

    Returns:
        Map holding each keypoint's response at its location.

    """
    response_map = np.zeros(shape, dtype=np.float32)
    for kp in keypoints:
        response_map[int(round(kp.y)), int(round(kp.x))] = kp.response
    return response_map
