"""Frame-by-frame detection, description and matching."""

import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import cv2
import numpy as np

from matchbench.config.config import BenchConfig
from matchbench.dataset_loader import load_image, to_grayscale
from matchbench.datatypes import Frame, FrameMetrics, Keypoint, Match
from matchbench.errors import (
    BackendInvocationError,
    InsufficientHistoryError,
    PipelineError,
)
from matchbench.modules.feature_matching import DescriptorMatcher, create_matcher
from matchbench.modules.frontend import (
    DescriptorExtractor,
    Detector,
    ResponseMapDetector,
    create_descriptor,
    create_detector,
)
from matchbench.modules.keypoint_filters import cap_keypoints, filter_by_region
from matchbench.modules.ratio_filter import RatioMatchFilter
from matchbench.modules.suppression import ResponseMapSuppressor
from matchbench.modules.utils import MetricsSink
from matchbench.state.frame_buffer import FrameRingBuffer
from matchbench.utils.enums import SelectorType, Stage


class FramePipeline:
    """Main pipeline class that owns the frame buffer and the metrics."""

    def __init__(
        self,
        config: BenchConfig,
        detector: Detector | None = None,
        descriptor: DescriptorExtractor | None = None,
        matcher: DescriptorMatcher | None = None,
        sink: MetricsSink | None = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            config: Benchmark configuration.
            detector: Keypoint detector, created from the config if None.
            descriptor: Descriptor extractor, created from the config if None.
            matcher: Descriptor matcher, created from the config if None.
            sink: Optional receiver for every recorded FrameMetrics.

        """
        self.cfg = config
        self.detector = detector if detector is not None else create_detector(config)
        self.descriptor = (
            descriptor if descriptor is not None else create_descriptor(config)
        )
        self.matcher = matcher if matcher is not None else create_matcher(config)
        self.sink = sink

        self.buffer = FrameRingBuffer(config.buffer_capacity)
        self.match_filter = RatioMatchFilter(
            ratio_threshold=config.ratio_threshold,
            selector=config.selector_type,
            unique=config.unique_matches,
        )
        self.suppressor = None
        if isinstance(self.detector, ResponseMapDetector):
            self.suppressor = ResponseMapSuppressor(
                threshold=self.detector.threshold,
                keypoint_size=self.detector.keypoint_size,
                max_overlap=config.max_overlap,
            )

        self.metrics: list[FrameMetrics] = []
        self.frame_id = 0

    def _log(self, msg: str) -> None:
        if self.cfg.verbose:
            print(msg)

    def _invoke(self, stage: Stage, fn: Callable, *args: Any) -> Any:
        """Call a backend, attaching frame and stage to any failure."""
        try:
            return fn(*args)
        except PipelineError as err:
            err.attach(self.frame_id, stage)
            raise
        except cv2.error as err:
            msg = f"{stage.value} backend failed: {err}"
            raise BackendInvocationError(msg, self.frame_id, stage) from err

    def run(self, paths: Iterable[str | Path]) -> list[FrameMetrics]:
        """
        Process image files in order.

        A failing frame stops the run; metrics recorded before it stay in
        ``self.metrics``.

        Args:
            paths: Image files in temporal order.

        Returns:
            Metrics of every processed frame.

        """
        for path in paths:
            self.process_path(path)
        return self.metrics

    def process_path(self, path: str | Path) -> FrameMetrics:
        """Load one image from disk and process it."""
        try:
            img = load_image(path)
        except PipelineError as err:
            err.attach(self.frame_id, Stage.INGEST)
            raise
        return self.process(img, path=str(path))

    def process(self, image: np.ndarray, path: str | None = None) -> FrameMetrics:
        """
        Carry one image through all stages.

        Args:
            image: Image data, converted to grayscale on ingest.
            path: Source file, kept on the frame for reference.

        Returns:
            The metrics recorded for this frame.

        """
        self._log("________________________________________________________")
        self._log(f"IMAGE NO : {self.frame_id}")

        # 1. ingest
        frame = self._ingest(image, path)

        # 2. detect
        t = time.perf_counter()
        keypoints = self._detect(frame.image)
        detection_time = time.perf_counter() - t
        self._log(
            f"{self.detector.name} detection with n={len(keypoints)} keypoints "
            f"in {1000 * detection_time:.3f} ms"
        )

        # 3. region filter
        if self.cfg.region_of_interest is not None:
            keypoints = filter_by_region(keypoints, self.cfg.region_of_interest)
            self._log(f"Keypoints inside the region of interest: {len(keypoints)}")

        # 4. cap
        cap_mode = None
        if self.cfg.max_keypoints is not None:
            by_response = self.detector.provides_response
            cap_mode = "response" if by_response else "order"
            keypoints = cap_keypoints(keypoints, self.cfg.max_keypoints, by_response)
            self._log(f"NOTE: Keypoints have been limited by {cap_mode}!")

        frame.keypoints = keypoints

        # 5. describe
        t = time.perf_counter()
        frame.keypoints, frame.descriptors = self._invoke(
            Stage.DESCRIBE, self.descriptor.describe, frame.image, frame.keypoints
        )
        description_time = time.perf_counter() - t
        self._log(
            f"{self.descriptor.name} descriptor extraction in "
            f"{1000 * description_time:.3f} ms"
        )

        metrics = FrameMetrics(
            frame_index=frame.frame_index,
            detection_time=detection_time,
            description_time=description_time,
            num_keypoints=len(frame.keypoints),
            cap_mode=cap_mode,
        )

        # 6. match, skipped until there is a previous frame
        try:
            prev_frame = self.buffer.previous()
        except InsufficientHistoryError:
            prev_frame = None

        if prev_frame is not None:
            t = time.perf_counter()
            frame.matches, metrics.num_candidates = self._match(prev_frame, frame)
            metrics.match_time = time.perf_counter() - t
            metrics.match_count = len(frame.matches)

        # 7. record
        self.metrics.append(metrics)
        if self.sink is not None:
            self.sink.record(metrics)

        self.frame_id += 1
        return metrics

    def _ingest(self, image: np.ndarray, path: str | None) -> Frame:
        try:
            gray = to_grayscale(image)
        except PipelineError as err:
            err.attach(self.frame_id, Stage.INGEST)
            raise

        frame = Frame(frame_index=self.frame_id, image=gray, path=path)
        self.buffer.push(frame)
        return frame

    def _detect(self, image: np.ndarray) -> list[Keypoint]:
        if self.suppressor is None:
            return self._invoke(Stage.DETECT, self.detector.detect, image)

        response_map = self._invoke(Stage.DETECT, self.detector.respond, image)
        if response_map.shape != image.shape[:2]:
            msg = (
                f"{self.detector.name} response map has shape {response_map.shape}, "
                f"image has {image.shape[:2]}"
            )
            raise BackendInvocationError(msg, self.frame_id, Stage.DETECT)
        return self.suppressor.suppress(response_map)

    def _match(self, prev_frame: Frame, frame: Frame) -> tuple[list[Match], int]:
        """Match previous (source) against current (reference) descriptors."""
        if self.cfg.selector_type == SelectorType.NN:
            nn = self._invoke(
                Stage.MATCH, self.matcher.match, prev_frame.descriptors, frame.descriptors
            )
            candidates = [[m] for m in nn]
        else:
            candidates = self._invoke(
                Stage.MATCH,
                self.matcher.knn_match,
                prev_frame.descriptors,
                frame.descriptors,
                2,
            )

        result = self.match_filter.filter(candidates)
        self._log(
            f"{self.matcher.name} matching ({self.cfg.selector_type.name}) with "
            f"n={result.num_candidates} candidates, kept {len(result.matches)}"
        )
        if self.cfg.selector_type == SelectorType.KNN:
            self._log(f"# keypoints removed = {result.num_removed}")

        return result.matches, result.num_candidates
