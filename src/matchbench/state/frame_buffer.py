from collections import deque
from collections.abc import Iterator

from matchbench.datatypes import Frame
from matchbench.errors import EmptyBufferError, InsufficientHistoryError


class FrameRingBuffer:
    """
    Fixed-capacity sliding window over the most recent frames.

    Pushing into a full buffer evicts the oldest frame first. Single writer,
    single reader; there is no locking.
    """

    def __init__(self, capacity: int) -> None:
        """
        Initialize an empty buffer.

        Args:
            capacity: Maximum number of frames held at once (>= 1).

        Raises:
            ValueError: If capacity is smaller than 1.

        """
        if capacity < 1:
            msg = f"capacity must be >= 1, got {capacity}"
            raise ValueError(msg)
        self._frames: deque[Frame] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._frames.maxlen

    @property
    def has_history(self) -> bool:
        """True once a previous frame is available."""
        return len(self._frames) >= 2

    def push(self, frame: Frame) -> None:
        # deque with maxlen drops the leftmost (oldest) entry
        self._frames.append(frame)

    def current(self) -> Frame:
        """
        Return the most recently pushed frame.

        Raises:
            EmptyBufferError: If the buffer holds no frames.

        """
        if not self._frames:
            msg = "frame buffer is empty"
            raise EmptyBufferError(msg)
        return self._frames[-1]

    def previous(self) -> Frame:
        """
        Return the frame pushed immediately before the current one.

        Raises:
            InsufficientHistoryError: If fewer than two frames are held.

        """
        if len(self._frames) < 2:
            msg = f"need two frames for history, buffer holds {len(self._frames)}"
            raise InsufficientHistoryError(msg)
        return self._frames[-2]

    def clear(self) -> None:
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Frame]:
        # oldest to newest
        return iter(self._frames)
