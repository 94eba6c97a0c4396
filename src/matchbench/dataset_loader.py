"""Image sources for the matching benchmark."""

from abc import ABC, abstractmethod
from pathlib import Path

import cv2
import numpy as np

from matchbench.errors import ResourceError


def load_image(path: str | Path) -> np.ndarray:
    """
    Load an image from disk.

    Args:
        path: Image file.

    Returns:
        The image as loaded by OpenCV (BGR or grayscale).

    Raises:
        ResourceError: If the file is missing or cannot be decoded.

    """
    path = Path(path)
    if not path.is_file():
        msg = f"Image not found: {path}"
        raise ResourceError(msg)

    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        msg = f"Could not decode image: {path}"
        raise ResourceError(msg)
    return img


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Convert an image to single-channel 8 bit.

    Raises:
        ResourceError: If the image layout is not supported.

    """
    if image.ndim == 2:
        gray = image
    elif image.ndim == 3 and image.shape[2] == 1:
        gray = image[:, :, 0]
    elif image.ndim == 3 and image.shape[2] == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    elif image.ndim == 3 and image.shape[2] == 4:
        gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    else:
        msg = f"Unsupported image shape: {image.shape}"
        raise ResourceError(msg)

    if gray.dtype != np.uint8:
        # 16 bit or float images are rescaled into 0-255
        gray = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX, cv2.CV_8U)
    return gray


class BaseDataset(ABC):
    """Abstract base class for a dataset loader."""

    def __init__(self, base_path: Path) -> None:
        """
        Initialize the dataset loader.

        Args:
            base_path: The root directory of the dataset.

        """
        self.base_path = Path(base_path)
        self.image_files: list[Path] = []

    @abstractmethod
    def load(self) -> None:
        """Collect the dataset's image paths."""
        pass

    def __len__(self) -> int:
        return len(self.image_files)


class KittiDataset(BaseDataset):
    """Numbered KITTI raw images, e.g. ``image_00/data/0000000000.png``."""

    def __init__(
        self,
        base_path: Path,
        prefix: str = "KITTI/2011_09_26/image_00/data/000000",
        start_index: int = 0,
        end_index: int = 9,
        fill_width: int = 4,
        file_type: str = ".png",
        verbose: bool = True,
    ) -> None:
        """
        Initialize KITTI loader.

        Args:
            base_path: Root image directory.
            prefix: Path prefix in front of the zero-padded file index.
            start_index: First file index to load.
            end_index: Last file index to load (inclusive).
            fill_width: Number of digits in the file index.
            file_type: File extension including the dot.
            verbose: Print how many images were found.

        """
        super().__init__(base_path)
        self.prefix = prefix
        self.start_index = start_index
        self.end_index = end_index
        self.fill_width = fill_width
        self.file_type = file_type
        self.verbose = verbose
        self.load()

    def load(self) -> None:
        """Assemble file names for every index in the range."""
        self.image_files = [
            self.base_path / f"{self.prefix}{idx:0{self.fill_width}d}{self.file_type}"
            for idx in range(self.start_index, self.end_index + 1)
        ]
        if self.verbose:
            print(
                f"Assembled {len(self.image_files)} image paths "
                f"({self.start_index}..{self.end_index}) from {self.base_path}"
            )


class FolderDataset(BaseDataset):
    """Every image in one directory, sorted by name."""

    def __init__(
        self, base_path: Path, pattern: str = "*.png", verbose: bool = True
    ) -> None:
        """
        Initialize folder loader.

        Args:
            base_path: Directory holding the images.
            pattern: Glob pattern for image files.
            verbose: Print how many images were found.

        """
        super().__init__(base_path)
        self.pattern = pattern
        self.verbose = verbose
        self.load()

    def load(self) -> None:
        """Glob the image paths."""
        self.image_files = sorted(self.base_path.glob(self.pattern))
        if self.verbose:
            print(f"Loaded {len(self.image_files)} image paths from {self.base_path}")
