from enum import Enum


class DetectorType(Enum):
    """Enum for keypoint detectors."""

    SHITOMASI = "SHITOMASI"
    HARRIS = "HARRIS"
    FAST = "FAST"
    BRISK = "BRISK"
    ORB = "ORB"
    AKAZE = "AKAZE"
    SIFT = "SIFT"


class DescriptorType(Enum):
    """Enum for keypoint descriptors."""

    BRISK = "BRISK"
    BRIEF = "BRIEF"
    ORB = "ORB"
    FREAK = "FREAK"
    AKAZE = "AKAZE"
    SIFT = "SIFT"


class MatcherType(Enum):
    """Enum for descriptor matchers."""

    BF = "MAT_BF"
    FLANN = "MAT_FLANN"


class DistanceType(Enum):
    """Enum for descriptor families, which decide the distance norm."""

    BINARY = "DES_BINARY"
    HOG = "DES_HOG"


class SelectorType(Enum):
    """Enum for match selection strategies."""

    NN = "SEL_NN"
    KNN = "SEL_KNN"


class Stage(Enum):
    """Stages a frame passes through, in order."""

    INGEST = "ingest"
    DETECT = "detect"
    REGION_FILTER = "region_filter"
    CAP = "cap"
    DESCRIBE = "describe"
    MATCH = "match"
    RECORD = "record"


def default_distance_type(descriptor_type: DescriptorType) -> DistanceType:
    """
    Pick the distance family for a descriptor.

    Args:
        descriptor_type: Descriptor that produces the vectors.

    Returns:
        HOG for gradient-histogram descriptors (SIFT), BINARY otherwise.

    """
    if descriptor_type == DescriptorType.SIFT:
        return DistanceType.HOG
    return DistanceType.BINARY
