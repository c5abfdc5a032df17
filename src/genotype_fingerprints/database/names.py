"""Display-name simplification.

Input filenames usually share a directory prefix and an extension suffix:

    data/run1/sample.A.outn.gz
    data/run1/sample.B.outn.gz

Splitting every name on `/` and `.`, the leading and trailing segment
positions that hold the same value in all names are dropped, and the middle
segments are joined with `.`; the example yields `A` and `B`. When no position
differs (a single name, or identical names) the raw filename is kept.
"""

from __future__ import annotations
import re
from typing import Dict, List, Sequence

_SPLIT_RE = re.compile(r"[/.]")


def simplify_names(names: Sequence[str]) -> Dict[str, str]:
    """Map every name to its simplified display name."""
    names = list(names)
    if not names:
        return {}
    split: List[List[str]] = [_SPLIT_RE.split(n) for n in names]
    width = max(len(p) for p in split)

    def distinct(i: int) -> int:
        return len({p[i] for p in split if i < len(p)})

    start = 0
    while start < width and distinct(start) == 1:
        start += 1
    end = width - 1
    while end >= start and distinct(end) == 1:
        end -= 1
    if start > end:
        return {n: n for n in names}

    simple = {n: ".".join(parts[start:end + 1]) or n for n, parts in zip(names, split)}

    # two different names must not share a display name
    owners: Dict[str, set] = {}
    for n, s in simple.items():
        owners.setdefault(s, set()).add(n)
    return {n: (s if len(owners[s]) == 1 else n) for n, s in simple.items()}
