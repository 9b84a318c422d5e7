"""Small helpers to summarise sequencer progress in a ROS-free way."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SequencerStats:
    dispatched: int = 0
    succeeded: int = 0
    failed: int = 0
    laps: int = 0

    @property
    def success_rate(self) -> float:
        return success_rate(self.succeeded + self.failed, self.succeeded)


def success_rate(total: int, succeeded: int) -> float:
    """Return the fraction of finished goals that succeeded, clamped to [0, 1]."""

    if total <= 0:
        return 0.0
    return max(0.0, min(1.0, succeeded / float(total)))


def format_stats(stats: SequencerStats) -> str:
    return (
        f"dispatched={stats.dispatched} succeeded={stats.succeeded} "
        f"failed={stats.failed} laps={stats.laps} success_rate={stats.success_rate:.2f}"
    )


__all__ = ["SequencerStats", "success_rate", "format_stats"]
