from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import tyro

from matchbench.config.config import get_config
from matchbench.dataset_loader import BaseDataset, FolderDataset, KittiDataset
from matchbench.errors import PipelineError
from matchbench.modules.utils import MetricsRecorder, summarize_metrics
from matchbench.pipeline import FramePipeline
from matchbench.utils.enums import (
    DescriptorType,
    DetectorType,
    DistanceType,
    MatcherType,
    SelectorType,
)


@dataclass
class Args:
    dataset: Literal["kitti", "folder"] = "kitti"
    path: Path = Path("images")
    # kitti image sequence
    prefix: str = "KITTI/2011_09_26/image_00/data/000000"
    start_index: int = 0
    end_index: int = 9
    fill_width: int = 4
    # folder of images
    pattern: str = "*.png"
    # algorithms
    detector: DetectorType = DetectorType.FAST
    descriptor: DescriptorType = DescriptorType.BRISK
    matcher: MatcherType = MatcherType.BF
    selector: SelectorType = SelectorType.KNN
    distance: DistanceType | None = None  # derived from the descriptor if unset
    # filtering
    focus_on_vehicle: bool = True
    max_keypoints: int | None = None
    ratio_threshold: float = 0.8
    buffer_size: int = 2
    verbose: bool = False


def main(args: Args) -> int:
    # setup
    loader: BaseDataset
    if args.dataset == "kitti":
        loader = KittiDataset(
            args.path,
            prefix=args.prefix,
            start_index=args.start_index,
            end_index=args.end_index,
            fill_width=args.fill_width,
        )
    elif args.dataset == "folder":
        loader = FolderDataset(args.path, pattern=args.pattern)

    if not loader.image_files:
        print("Error: No images found.")
        return 1

    overrides = dict(
        detector_type=args.detector,
        descriptor_type=args.descriptor,
        matcher_type=args.matcher,
        selector_type=args.selector,
        max_keypoints=args.max_keypoints,
        ratio_threshold=args.ratio_threshold,
        buffer_capacity=args.buffer_size,
        verbose=args.verbose,
    )
    if args.distance is not None:
        overrides["distance_type"] = args.distance
    cfg = get_config("kitti" if args.focus_on_vehicle else "full_frame", **overrides)

    recorder = MetricsRecorder()
    pipeline = FramePipeline(cfg, sink=recorder)

    print(
        f"Benchmarking {cfg.detector_type.name} + {cfg.descriptor_type.name} "
        f"({cfg.matcher_type.name}, {cfg.selector_type.name})"
    )
    status = 0
    for path in loader.image_files:
        try:
            stats = pipeline.process_path(path)
        except PipelineError as err:
            print(f"!!! Benchmark FAILED: {err} !!!")
            status = 1
            break

        print(
            f"Frame {stats.frame_index:04d} | "
            f"Kpts: {stats.num_keypoints:04d} | "
            f"Det: {1000 * stats.detection_time:8.3f} ms | "
            f"Desc: {1000 * stats.description_time:8.3f} ms | "
            f"Matches: {stats.match_count:04d}/{stats.num_candidates:04d}"
        )

    summary = summarize_metrics(recorder.frames)
    print(
        f"Frames: {summary['num_frames']} | "
        f"mean det: {1000 * summary['mean_detection_time']:.3f} ms | "
        f"mean desc: {1000 * summary['mean_description_time']:.3f} ms | "
        f"mean kpts: {summary['mean_keypoints']:.1f} | "
        f"total matches: {summary['total_matches']}"
    )
    print("Done.")
    return status


def entrypoint() -> None:
    raise SystemExit(main(tyro.cli(Args)))


if __name__ == "__main__":
    entrypoint()
