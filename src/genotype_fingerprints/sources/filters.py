"""Call filters applied between a source and the accumulator.

- RegionFilter: keep only calls inside regions of interest from a BED file,
  e.g. exome targets to compute an exome-compatible fingerprint from a genome.
- drop_clustered: drop SNVs that sit closer than `min_distance` bp to the
  previous or next call of the same individual on the same chromosome.
"""

from __future__ import annotations
import bisect
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ..errors import GenotypeSourceError
from ..fingerprints.metrics import SKIP_REGION, SKIP_TOO_CLOSE
from .base import GenotypeCall, read_lines

SkipHook = Callable[[GenotypeCall, str], None]


def _chrom_key(chromosome: str) -> str:
    return chromosome[3:] if chromosome.lower().startswith("chr") else chromosome


class RegionFilter:
    """Regions of interest from a BED file (0-based, half-open intervals)."""

    def __init__(self, intervals: Dict[str, List[Tuple[int, int]]]):
        self._starts: Dict[str, List[int]] = {}
        self._ends: Dict[str, List[int]] = {}
        for chrom, spans in intervals.items():
            merged: List[Tuple[int, int]] = []
            for start, end in sorted(spans):
                if merged and start <= merged[-1][1]:
                    merged[-1] = (merged[-1][0], max(merged[-1][1], end))
                else:
                    merged.append((start, end))
            key = _chrom_key(chrom)
            self._starts[key] = [s for s, _ in merged]
            self._ends[key] = [e for _, e in merged]

    @classmethod
    def from_bed(cls, path: str) -> RegionFilter:
        intervals: Dict[str, List[Tuple[int, int]]] = {}
        for line_num, line in read_lines(path):
            if not line.strip() or line.startswith(("#", "track", "browser")):
                continue
            fields = line.split()
            try:
                intervals.setdefault(fields[0], []).append((int(fields[1]), int(fields[2])))
            except (IndexError, ValueError) as e:
                raise GenotypeSourceError(f"{path}:{line_num}: malformed BED line {line!r}") from e
        return cls(intervals)

    def contains(self, chromosome: str, position: int) -> bool:
        """True if the 1-based `position` falls inside a region."""
        key = _chrom_key(chromosome)
        starts = self._starts.get(key)
        if not starts:
            return False
        i = bisect.bisect_left(starts, position) - 1
        return i >= 0 and position <= self._ends[key][i]

    def apply(self, calls: Iterable[GenotypeCall], on_skip: Optional[SkipHook] = None) -> Iterator[GenotypeCall]:
        for call in calls:
            if self.contains(call.chromosome, call.position):
                yield call
            elif on_skip:
                on_skip(call, SKIP_REGION)


def drop_clustered(
    calls: Iterable[GenotypeCall],
    min_distance: int,
    on_skip: Optional[SkipHook] = None,
) -> Iterator[GenotypeCall]:
    """Drop both members of every consecutive pair closer than `min_distance` bp."""
    if not min_distance:
        yield from calls
        return

    pending: Dict[Optional[str], Tuple[GenotypeCall, bool]] = {}

    def release(call: GenotypeCall, too_close: bool) -> Iterator[GenotypeCall]:
        if not too_close:
            yield call
        elif on_skip:
            on_skip(call, SKIP_TOO_CLOSE)

    for call in calls:
        prev = pending.get(call.sample)
        close = False
        if prev is not None:
            prev_call, prev_close = prev
            close = (
                prev_call.chromosome == call.chromosome
                and abs(call.position - prev_call.position) < min_distance
            )
            yield from release(prev_call, prev_close or close)
        pending[call.sample] = (call, close)

    for call, too_close in pending.values():
        yield from release(call, too_close)
