"""Accumulation metrics: how many calls were used and why the rest were skipped."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict

SKIP_CHROMOSOME = "non_autosomal"
SKIP_GENOTYPE = "malformed_genotype"
SKIP_UNKNOWN_VARIANT = "unknown_variant"
SKIP_VARIANT_ID = "bad_variant_id"
SKIP_REGION = "outside_regions"
SKIP_TOO_CLOSE = "too_close"


@dataclass
class AccumulatorMetrics:
    """Counters for one fingerprint computation."""

    total_calls: int = 0
    accepted_calls: int = 0
    skipped: Dict[str, int] = field(default_factory=dict)

    @property
    def skipped_calls(self) -> int:
        return sum(self.skipped.values())

    @property
    def acceptance_rate_pct(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return 100.0 * self.accepted_calls / self.total_calls

    def record_accepted(self) -> None:
        self.total_calls += 1
        self.accepted_calls += 1

    def record_skipped(self, reason: str) -> None:
        self.total_calls += 1
        self.skipped[reason] = self.skipped.get(reason, 0) + 1

    def summary(self) -> str:
        lines = [
            f"Calls seen: {self.total_calls}",
            f"Calls used: {self.accepted_calls} ({self.acceptance_rate_pct:.2f}%)",
            f"Calls skipped: {self.skipped_calls}",
        ]
        for reason, n in sorted(self.skipped.items(), key=lambda x: -x[1]):
            lines.append(f"  skipped {reason}: {n}")
        return "\n".join(lines)
