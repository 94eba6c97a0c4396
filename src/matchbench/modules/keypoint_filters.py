from matchbench.datatypes import Keypoint, RegionOfInterest


def filter_by_region(
    keypoints: list[Keypoint], roi: RegionOfInterest
) -> list[Keypoint]:
    """
    Keep keypoints whose location falls inside a rectangle.

    Args:
        keypoints: Detected keypoints.
        roi: Region to keep.

    Returns:
        The subset inside ``roi``, in original order. May be empty.

    """
    return [kp for kp in keypoints if roi.contains(kp.x, kp.y)]


def cap_keypoints(
    keypoints: list[Keypoint], max_keypoints: int, by_response: bool = True
) -> list[Keypoint]:
    """
    Limit the number of keypoints.

    Args:
        keypoints: Keypoints to limit.
        max_keypoints: Maximum number to keep.
        by_response: Rank by response (descending, stable on ties). When the
            detector does not score its keypoints, keep the first ones instead.

    Returns:
        At most ``max_keypoints`` keypoints.

    """
    if len(keypoints) <= max_keypoints:
        return list(keypoints)
    if not by_response:
        return keypoints[:max_keypoints]
    # sorted() is stable so equal responses keep their original order
    ranked = sorted(keypoints, key=lambda kp: -kp.response)
    return ranked[:max_keypoints]
