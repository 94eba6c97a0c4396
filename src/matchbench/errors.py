"""Exceptions raised by the matching benchmark."""

from typing import Any


class MatchBenchError(Exception):
    """Base class for all benchmark errors."""


class EmptyBufferError(MatchBenchError):
    """The frame buffer holds no frames."""


class InsufficientHistoryError(MatchBenchError):
    """The frame buffer holds fewer than two frames."""


class PipelineError(MatchBenchError):
    """
    Fatal error while carrying a frame through the pipeline.

    Attributes:
        frame_index: Index of the frame being processed, if known.
        stage: Pipeline stage that failed, if known.

    """

    def __init__(
        self, message: str, frame_index: int | None = None, stage: Any = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.frame_index = frame_index
        self.stage = stage

    def attach(self, frame_index: int, stage: Any) -> None:
        """Fill in missing context without overwriting what the raiser set."""
        if self.frame_index is None:
            self.frame_index = frame_index
        if self.stage is None:
            self.stage = stage

    def __str__(self) -> str:
        context = []
        if self.frame_index is not None:
            context.append(f"frame {self.frame_index}")
        if self.stage is not None:
            context.append(f"stage {getattr(self.stage, 'value', self.stage)}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class BackendInvocationError(PipelineError):
    """A detector, descriptor or matcher backend failed or returned bad shapes."""


class ResourceError(PipelineError):
    """An image could not be loaded or converted."""
