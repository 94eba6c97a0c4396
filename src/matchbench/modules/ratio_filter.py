from collections.abc import Sequence
from dataclasses import dataclass

from matchbench.datatypes import Match
from matchbench.utils.enums import SelectorType


@dataclass
class FilterResult:
    """Matches kept by the filter and the number of candidates it saw."""

    matches: list[Match]
    num_candidates: int

    @property
    def num_removed(self) -> int:
        return self.num_candidates - len(self.matches)


def unique_reference_matches(matches: list[Match]) -> list[Match]:
    """
    Keep at most one match per reference keypoint.

    The lowest distance wins, the earliest match on ties. Source order of the
    survivors is preserved.
    """
    best: dict[int, int] = {}
    for i, m in enumerate(matches):
        j = best.get(m.train_idx)
        if j is None or m.distance < matches[j].distance:
            best[m.train_idx] = i
    keep = set(best.values())
    return [m for i, m in enumerate(matches) if i in keep]


class RatioMatchFilter:
    """Turn per-descriptor candidate lists into a sparse match set."""

    def __init__(
        self,
        ratio_threshold: float = 0.8,
        selector: SelectorType = SelectorType.KNN,
        unique: bool = False,
    ) -> None:
        self.ratio_threshold = ratio_threshold
        self.selector = selector
        self.unique = unique

    def filter(self, candidates: Sequence[Sequence[Match]]) -> FilterResult:
        """
        Filter candidate lists, one list per source descriptor.

        Args:
            candidates: Nearest-first matches for each source descriptor.

        Returns:
            Kept matches in source order, with the candidate count.

        """
        if self.selector == SelectorType.NN:
            kept = [c[0] for c in candidates if len(c) > 0]
        else:
            kept = []
            for c in candidates:
                # cannot run the ratio test without a second neighbour
                if len(c) < 2:
                    continue
                best, second = c[0], c[1]
                if best.distance < self.ratio_threshold * second.distance:
                    kept.append(best)

        if self.unique:
            kept = unique_reference_matches(kept)

        return FilterResult(matches=kept, num_candidates=len(candidates))
